"""Boundary validation for calculation requests.

Payloads use the camelCase wire names (principal, days, withholdingTax,
usdStartRate, usdEndRate, tiers[{min, max, rate, exempt}]). Every problem
is reported together as a ValidationError; nothing reaches the engine unless
the whole payload is valid.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from compounder.errors import FieldError, ValidationError
from compounder.models import CalculationRequest, Tier

WITHHOLDING_TAX_MAX = 100.0


class _WireModel(BaseModel):
    # Numbers stay numbers: no "100" -> 100.0, no True -> 1, no NaN/inf.
    model_config = ConfigDict(strict=True, allow_inf_nan=False)


class TierIn(_WireModel):
    min: float = Field(ge=0)
    max: float | None = None  # None or absent = unbounded
    rate: float = Field(ge=0)
    exempt: float = Field(ge=0)

    def to_tier(self) -> Tier:
        return Tier(min=self.min, max=self.max, rate=self.rate, exempt=self.exempt)


class CalculationRequestIn(_WireModel):
    """Wire form of a calculation request.

    withholdingTax is accepted in [0, 100] but the engine applies it as a
    fraction, so values above 1 yield a negative net multiplier.
    """

    principal: float = Field(gt=0)
    days: int = Field(gt=0)
    withholding_tax: float = Field(alias="withholdingTax", ge=0, le=WITHHOLDING_TAX_MAX)
    usd_start_rate: float = Field(alias="usdStartRate", gt=0)
    usd_end_rate: float = Field(alias="usdEndRate", gt=0)
    tiers: list[TierIn]

    def to_request(self) -> CalculationRequest:
        return CalculationRequest(
            principal=self.principal,
            days=self.days,
            withholding_tax=self.withholding_tax,
            usd_start_rate=self.usd_start_rate,
            usd_end_rate=self.usd_end_rate,
            tiers=[t.to_tier() for t in self.tiers],
        )


def _field_path(loc: tuple[int | str, ...]) -> str:
    """("tiers", 2, "rate") -> "tiers[2].rate"; the empty loc is the payload."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else part
    return path or "$"


def parse_request(payload: Mapping[str, Any]) -> CalculationRequest:
    """Validate a wire payload and build a CalculationRequest."""
    try:
        model = CalculationRequestIn.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            [FieldError(_field_path(e["loc"]), e["msg"]) for e in exc.errors()]
        ) from exc
    return model.to_request()
