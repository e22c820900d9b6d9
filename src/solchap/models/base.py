"""Shared pieces of the request models."""

import math
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# JSON true/false must not pass as 1/0
Amount = Union[StrictInt, StrictFloat]


class RequestModel(BaseModel):
    """Request bodies use camelCase keys; fields are snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')


def fold_case(value: Any, upper: bool = False) -> Any:
    if isinstance(value, str):
        return value.strip().upper() if upper else value.strip().lower()
    return value


def positive_amount(value: Union[int, float], name: str) -> Union[int, float]:
    """Reject zero, negatives, NaN and infinities."""
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f'{name} must be greater than 0')
    return value
