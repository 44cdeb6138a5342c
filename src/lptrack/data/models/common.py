"""Shared field types for the data models."""

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

# Exact in memory, plain JSON number on the wire
Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

ZERO = Decimal(0)
