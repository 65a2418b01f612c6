"""Base model for arbitrage API payloads.

Every response model inherits from :class:`ArbiDashBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase API keys map automatically to
  snake_case fields, and ``model_dump(by_alias=True)`` gives the camelCase
  shape the view layer consumes.
* A ``model_validator(mode="before")`` that drops sentinel values
  (``None``, ``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload (excluded from dumps).
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_SENTINEL_STRINGS = frozenset({"", "--", "NaN", "nan"})


def _is_sentinel(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _SENTINEL_STRINGS
    return isinstance(value, float) and math.isnan(value)


class ArbiDashBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original API payload."""

    @model_validator(mode="before")
    @classmethod
    def _drop_sentinels(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if not _is_sentinel(value)}
        cleaned.setdefault("raw", dict(values))
        return cleaned
