# backend/crewtech/routers/costing.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body

from crewtech.schemas.costing import EstimateOut
from crewtech.services import costing, rates


router = APIRouter(prefix="/costing", tags=["costing"])


@router.post("/estimate", response_model=EstimateOut)
def estimate(params: Any = Body(None)):
    """
    POST /costing/estimate
    Body: CostParams. `result` is null when the request cannot be priced.
    """
    return EstimateOut(result=costing.calculate(params or {}))


@router.get("/rates")
def list_rates():
    return rates.as_dict()
