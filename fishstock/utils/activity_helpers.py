from sqlalchemy.ext.asyncio import AsyncSession
from fishstock.models.support.activity_models import UserActivity
from fishstock.constants.activity_templates import ACTIVITY_TEMPLATES
from fishstock.constants.activity_codes import ActivityCode


def render_activity(code: ActivityCode, user, **context) -> str:
    if code not in ACTIVITY_TEMPLATES:
        raise ValueError(f"No activity template for code {code}")

    try:
        return ACTIVITY_TEMPLATES[code].format(
            actor_role=user.role.capitalize(),
            actor_id=user.id,
            **context,
        )
    except KeyError as e:
        raise ValueError(f"Missing activity context key: {e.args[0]} for {code}")


async def emit_activity(
    db: AsyncSession,
    *,
    user,
    code: ActivityCode,
    **context,
) -> UserActivity:
    """Stage an activity row in the caller's transaction; the caller commits."""
    activity = UserActivity(
        actor_id=user.id,
        actor_role=user.role,
        code=code.value,
        message=render_activity(code, user, **context),
    )
    db.add(activity)
    return activity
