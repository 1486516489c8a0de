# fishstock/schemas/types.py

from decimal import Decimal
from typing import Annotated

from pydantic import Field, PlainSerializer

# kg with one fractional digit, rendered as a JSON number
WeightKg = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

PositiveWeightKg = Annotated[
    Decimal,
    Field(gt=0, max_digits=12, decimal_places=1),
    PlainSerializer(float, return_type=float, when_used="json"),
]

SizeClass = Annotated[int, Field(gt=0)]
Pieces = Annotated[int, Field(gt=0)]
