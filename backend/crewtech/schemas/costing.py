# backend/crewtech/schemas/costing.py
from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from .mission_order import MarginType, SalaryType

# Manual figures arrive straight from form inputs, so text is accepted here
# and sanitized by the engine rather than rejected.
Amount = Union[float, str, None]


class MarginConfig(BaseModel):
    enabled: bool = True
    type: MarginType = MarginType.PERCENTAGE
    value: Amount = 0


class ManualRates(BaseModel):
    daily_salary: Amount = None
    daily_per_diem: Amount = None
    monthly_salary: Amount = None
    lump_sum: Amount = None


class CostParams(BaseModel):
    aircraft_registration: Optional[str] = None
    position: Optional[str] = None
    manual_mode: bool = False
    manual_rates: ManualRates = Field(default_factory=ManualRates)
    duration_days: Any = None
    payment_mode: SalaryType = SalaryType.DAILY
    per_diem_enabled: bool = False
    margin: Optional[MarginConfig] = None


class CostResult(BaseModel):
    daily_salary: float
    total_salary: float
    daily_per_diem: float
    total_per_diem: float
    total_cost: float
    margin_amount: float
    total_with_margin: float
    payment_mode: SalaryType
    is_manual: bool


class EstimateOut(BaseModel):
    # null when the rate table cannot price the request
    result: Optional[CostResult] = None
