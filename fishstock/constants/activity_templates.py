from fishstock.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- LOCATIONS ----------------
    ActivityCode.CREATE_LOCATION:
        "{actor_role} ({actor_id}) created storage location {target_name}",

    ActivityCode.UPDATE_LOCATION:
        "{actor_role} ({actor_id}) updated storage location {target_name}: {changes}",

    # ---------------- STOCK ----------------
    ActivityCode.INGEST_BATCH:
        "{actor_role} ({actor_id}) added batch {batch_number} ({weight_kg} kg) to {target_name}",

    ActivityCode.DISPOSE_STOCK:
        "{actor_role} ({actor_id}) disposed {quantity} pcs of size {size_class} from {target_name}: {reason}",

    ActivityCode.DISPATCH_STOCK:
        "{actor_role} ({actor_id}) dispatched {quantity} pcs of size {size_class} from {target_name}",

    # ---------------- TRANSFERS ----------------
    ActivityCode.CREATE_TRANSFER:
        "{actor_role} ({actor_id}) requested transfer {target_name}",

    ActivityCode.COMPLETE_TRANSFER:
        "{actor_role} ({actor_id}) approved and completed transfer {target_name}",

    ActivityCode.REJECT_TRANSFER:
        "{actor_role} ({actor_id}) rejected transfer {target_name}: {reason}",

    # ---------------- ORDERS ----------------
    ActivityCode.RECORD_OUTLET_ORDER:
        "{actor_role} ({actor_id}) recorded outlet order {target_name}",
}
