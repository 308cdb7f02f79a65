# backend/crewtech/services/costing.py
"""
Crew compensation and client billing calculation.

`calculate` is pure: same params, same result, no I/O. It never raises;
malformed figures are sanitized to 0 and a request that cannot be priced
(unknown aircraft or position in automatic mode, no usable duration or
totals that overflow a float) returns None so callers can tell
"not computable yet" from "computed to 0".
"""
from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from crewtech.schemas.costing import CostParams, CostResult, ManualRates, MarginConfig
from crewtech.schemas.mission_order import Contract, Fees, MarginType, SalaryType
from crewtech.services import rates
from crewtech.services.errors import ValidationError

logger = logging.getLogger(__name__)

# Monthly salaries are prorated on a flat 30-day month.
MONTH_DAYS = 30

# Longest duration the engine will price (about a century).
MAX_DURATION_DAYS = 36500


def ensure_positive(value: Any) -> float:
    """Parse a figure; anything non-numeric, non-finite or negative becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        num = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(num) or math.isinf(num) or num < 0:
        return 0.0
    return num


def parse_days(value: Any) -> Optional[int]:
    """Whole number of days in [1, MAX_DURATION_DAYS], or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, str):
            value = value.strip()
            days = int(float(value)) if value else 0
        else:
            if isinstance(value, float) and not math.isfinite(value):
                return None
            days = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return days if 1 <= days <= MAX_DURATION_DAYS else None


def _margin_amount(total_cost: float, margin: Optional[MarginConfig]) -> float:
    if margin is None or not margin.enabled:
        return 0.0
    value = ensure_positive(margin.value)
    if margin.type == MarginType.PERCENTAGE:
        return (total_cost * min(value, 100.0)) / 100
    return value


def calculate(params: Union[CostParams, Mapping[str, Any]]) -> Optional[CostResult]:
    if not isinstance(params, CostParams):
        try:
            params = CostParams.model_validate(params)
        except PydanticValidationError as exc:
            logger.debug("Cost params rejected: %s", exc.errors())
            return None

    days = parse_days(params.duration_days)
    if days is None:
        return None

    mode = params.payment_mode
    daily_salary = 0.0
    daily_per_diem = 0.0
    total_salary = 0.0
    total_per_diem = 0.0

    if params.manual_mode:
        manual = params.manual_rates
        if mode == SalaryType.DAILY:
            daily_salary = ensure_positive(manual.daily_salary)
            total_salary = daily_salary * days
        elif mode == SalaryType.MONTHLY:
            daily_salary = ensure_positive(manual.monthly_salary) / MONTH_DAYS
            total_salary = daily_salary * days
        else:
            total_salary = ensure_positive(manual.lump_sum)
            daily_salary = total_salary / days
        if mode != SalaryType.LUMP_SUM and params.per_diem_enabled:
            daily_per_diem = ensure_positive(manual.daily_per_diem)
    else:
        resolved = rates.resolve(params.aircraft_registration, params.position)
        if resolved is None:
            return None
        if mode == SalaryType.DAILY:
            daily_salary = resolved.daily
            total_salary = daily_salary * days
        elif mode == SalaryType.MONTHLY:
            daily_salary = resolved.monthly / MONTH_DAYS
            total_salary = daily_salary * days
        else:
            # automatic lump sum is the daily scale over the whole mission
            total_salary = resolved.daily * days
            daily_salary = total_salary / days
        if mode != SalaryType.LUMP_SUM and params.per_diem_enabled:
            daily_per_diem = resolved.per_diem

    total_per_diem = daily_per_diem * days
    total_cost = total_salary + total_per_diem
    margin_amount = _margin_amount(total_cost, params.margin)
    total_with_margin = total_cost + margin_amount
    figures = (daily_salary, total_salary, total_per_diem, total_cost, total_with_margin)
    if not all(math.isfinite(v) for v in figures):
        logger.debug("Cost figures overflowed for %d day(s)", days)
        return None

    return CostResult(
        daily_salary=max(0.0, daily_salary),
        total_salary=max(0.0, total_salary),
        daily_per_diem=max(0.0, daily_per_diem),
        total_per_diem=max(0.0, total_per_diem),
        total_cost=max(0.0, total_cost),
        margin_amount=max(0.0, margin_amount),
        total_with_margin=max(0.0, total_with_margin),
        payment_mode=mode,
        is_manual=params.manual_mode,
    )


def params_for_contract(contract: Contract, margin: Optional[MarginConfig] = None) -> CostParams:
    """Manual-mode params reproducing what a contract pays."""
    manual = ManualRates(daily_per_diem=contract.per_diem_amount)
    if contract.salary_type == SalaryType.DAILY:
        manual.daily_salary = contract.salary_amount
    elif contract.salary_type == SalaryType.MONTHLY:
        manual.monthly_salary = contract.salary_amount
    else:
        manual.lump_sum = contract.salary_amount
    return CostParams(
        manual_mode=True,
        manual_rates=manual,
        duration_days=contract.duration_days,
        payment_mode=contract.salary_type,
        per_diem_enabled=contract.has_per_diem,
        margin=margin,
    )


def fees_for_contract(
    contract: Contract,
    margin: Optional[MarginConfig] = None,
    currency: Optional[str] = None,
) -> Fees:
    result = calculate(params_for_contract(contract, margin))
    if result is None:
        raise ValidationError(
            ["contract: duration or amounts are outside the range that can be priced"],
            "Contract cannot be priced",
        )
    applied = margin if margin is not None and margin.enabled else None
    return Fees(
        daily_salary=result.daily_salary,
        total_salary=result.total_salary,
        daily_per_diem=result.daily_per_diem,
        total_per_diem=result.total_per_diem,
        total_cost=result.total_cost,
        margin_type=applied.type if applied else None,
        margin_value=ensure_positive(applied.value) if applied else 0,
        margin_amount=result.margin_amount,
        total_with_margin=result.total_with_margin,
        duration_days=contract.duration_days,
        currency=currency or contract.salary_currency,
    )
