# backend/crewtech/services/rates.py
"""
Static rate table: aircraft registry, pay matrix (position x aircraft type)
and per-diem matrix.

Lookups are case-insensitive on positions ("captain", "First_Officer" and
"First Officer" all resolve) and exact on registrations after upper-casing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Aircraft:
    id: str
    registration: str
    type: str
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    status: str = "available"
    coefficient: float = 1.0


@dataclass(frozen=True)
class SalaryRate:
    daily: float
    monthly: float
    currency: str = "EUR"


@dataclass(frozen=True)
class PerDiemRate:
    amount: float
    currency: str = "EUR"


@dataclass(frozen=True)
class ResolvedRate:
    """Everything the engine needs for an automatic-mode calculation."""
    aircraft: Aircraft
    position: str
    coefficient: float
    base_daily: float
    base_monthly: float
    per_diem: float
    currency: str

    @property
    def daily(self) -> float:
        return self.base_daily * self.coefficient

    @property
    def monthly(self) -> float:
        return self.base_monthly * self.coefficient


AIRCRAFT: List[Aircraft] = [
    Aircraft("aircraft-001", "F-HCTA", "Citation CJ3+", "Cessna", "Business Jet"),
    Aircraft("aircraft-002", "F-HCTB", "King Air 350", "Beechcraft", "Turboprop"),
    Aircraft("aircraft-003", "F-HCTC", "Phenom 300", "Embraer", "Light Jet", status="maintenance"),
    Aircraft("AC004", "F-HDEF", "Citation CJ3"),
    Aircraft("AC005", "F-HGHJ", "King Air 350"),
]

PAY_MATRIX: Dict[str, Dict[str, SalaryRate]] = {
    "Captain": {
        "Citation CJ3+": SalaryRate(850, 18500),
        "Citation CJ3": SalaryRate(850, 18500),
        "King Air 350": SalaryRate(750, 16500),
        "Phenom 300": SalaryRate(900, 19500),
    },
    "First Officer": {
        "Citation CJ3+": SalaryRate(650, 14500),
        "Citation CJ3": SalaryRate(650, 14500),
        "King Air 350": SalaryRate(550, 12500),
        "Phenom 300": SalaryRate(700, 15500),
    },
    "Flight Attendant": {
        "Citation CJ3+": SalaryRate(450, 10500),
        "Citation CJ3": SalaryRate(450, 10500),
        "King Air 350": SalaryRate(400, 9500),
        "Phenom 300": SalaryRate(500, 11500),
    },
    "Senior Flight Attendant": {
        "Citation CJ3+": SalaryRate(550, 12500),
        "Citation CJ3": SalaryRate(550, 12500),
        "King Air 350": SalaryRate(500, 11500),
        "Phenom 300": SalaryRate(600, 13500),
    },
}

PER_DIEM: Dict[str, PerDiemRate] = {
    "Captain": PerDiemRate(120),
    "First Officer": PerDiemRate(100),
    "Flight Attendant": PerDiemRate(80),
    "Senior Flight Attendant": PerDiemRate(90),
}


def _norm(s: str) -> str:
    return " ".join(s.replace("_", " ").split()).casefold()


_POSITIONS = {_norm(name): name for name in PAY_MATRIX}


def canonical_position(position: Optional[str]) -> Optional[str]:
    """Map free-form position text to the matrix key, or None."""
    if not position:
        return None
    return _POSITIONS.get(_norm(position))


def get_aircraft(registration: Optional[str]) -> Optional[Aircraft]:
    if not registration:
        return None
    reg = registration.strip().upper()
    for ac in AIRCRAFT:
        if ac.registration == reg:
            return ac
    return None


def available_aircraft() -> List[Aircraft]:
    return [ac for ac in AIRCRAFT if ac.status != "maintenance"]


def salary_rate(position: Optional[str], aircraft_type: Optional[str]) -> Optional[SalaryRate]:
    key = canonical_position(position)
    if key is None or not aircraft_type:
        return None
    return PAY_MATRIX[key].get(aircraft_type)


def per_diem_rate(position: Optional[str]) -> Optional[PerDiemRate]:
    key = canonical_position(position)
    return PER_DIEM.get(key) if key else None


def resolve(registration: Optional[str], position: Optional[str]) -> Optional[ResolvedRate]:
    """None when either the aircraft or the position is unknown to the table."""
    aircraft = get_aircraft(registration)
    if aircraft is None:
        return None
    rate = salary_rate(position, aircraft.type)
    if rate is None:
        return None
    pd = per_diem_rate(position)
    return ResolvedRate(
        aircraft=aircraft,
        position=canonical_position(position),
        coefficient=aircraft.coefficient,
        base_daily=rate.daily,
        base_monthly=rate.monthly,
        per_diem=pd.amount if pd else 0.0,
        currency=rate.currency,
    )


def as_dict() -> dict:
    """Plain view of the whole table for the rates endpoint."""
    return {
        "aircraft": [
            {
                "id": ac.id,
                "registration": ac.registration,
                "type": ac.type,
                "manufacturer": ac.manufacturer,
                "category": ac.category,
                "status": ac.status,
                "coefficient": ac.coefficient,
            }
            for ac in AIRCRAFT
        ],
        "pay_matrix": {
            pos: {t: {"daily": r.daily, "monthly": r.monthly, "currency": r.currency} for t, r in row.items()}
            for pos, row in PAY_MATRIX.items()
        },
        "per_diem": {pos: {"amount": r.amount, "currency": r.currency} for pos, r in PER_DIEM.items()},
        "available_registrations": [ac.registration for ac in available_aircraft()],
    }
