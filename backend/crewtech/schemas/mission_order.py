# backend/crewtech/schemas/mission_order.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator


class MissionStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    PENDING_FINANCE_REVIEW = "pending_finance_review"
    PENDING_CLIENT_APPROVAL = "pending_client_approval"
    APPROVED = "approved"
    CLIENT_REJECTED = "client_rejected"
    REJECTED = "rejected"
    PENDING_EXECUTION = "pending_execution"
    IN_PROGRESS = "in_progress"
    MISSION_OVER = "mission_over"
    PENDING_VALIDATION = "pending_validation"
    PENDING_DATE_MODIFICATION = "pending_date_modification"
    VALIDATED = "validated"


class MissionType(str, Enum):
    EXTRA_DAY = "extra_day"
    FREELANCE = "freelance"
    SERVICE = "service"


class SalaryType(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    LUMP_SUM = "lump_sum"


class CrewType(str, Enum):
    INTERNAL = "internal"
    FREELANCER = "freelancer"


class DateModificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ----------------------------------------------------------------------
# Snapshots copied into the mission at creation time
# ----------------------------------------------------------------------
class CrewSnapshot(BaseModel):
    id: str
    name: str
    position: str
    type: CrewType = CrewType.INTERNAL
    email: Optional[str] = None
    phone: Optional[str] = None
    ggid: Optional[str] = None


class AircraftSnapshot(BaseModel):
    id: Optional[str] = None
    registration: str
    type: Optional[str] = None


class FlightLeg(BaseModel):
    flight: str
    departure: Optional[str] = None
    arrival: Optional[str] = None
    flight_date: Optional[date] = None
    departure_time: Optional[str] = None


class ActorRef(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


# ----------------------------------------------------------------------
# Contract
# ----------------------------------------------------------------------
class ZeroHourContract(BaseModel):
    contract_number: str
    generated_at: datetime
    payment_terms: str
    cancellation_notice: str = "24 hours"
    responsibilities: List[str] = Field(default_factory=list)


class Contract(BaseModel):
    start_date: date
    end_date: date

    salary_amount: float = Field(0, ge=0)
    salary_type: SalaryType = SalaryType.DAILY
    salary_currency: str = "EUR"
    salary_locked: bool = True
    salary_comment: Optional[str] = None

    has_per_diem: bool = False
    per_diem_amount: float = Field(0, ge=0)
    per_diem_currency: str = "EUR"
    per_diem_locked: bool = True
    per_diem_comment: Optional[str] = None

    additional_notes: Optional[str] = None
    zero_hour_contract: Optional[ZeroHourContract] = None

    @model_validator(mode="after")
    def _check_dates_and_overrides(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on/after start_date")
        missing = []
        if not self.salary_locked and not (self.salary_comment or "").strip():
            missing.append("salary_comment")
        if not self.per_diem_locked and not (self.per_diem_comment or "").strip():
            missing.append("per_diem_comment")
        if missing:
            raise ValueError(
                "manual override requires a reason: " + ", ".join(missing)
            )
        return self

    @property
    def duration_days(self) -> int:
        """Inclusive day count."""
        return (self.end_date - self.start_date).days + 1


# ----------------------------------------------------------------------
# Billing
# ----------------------------------------------------------------------
class MarginType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Fees(BaseModel):
    """Engine output frozen into the mission when billing is prepared."""
    daily_salary: float
    total_salary: float
    daily_per_diem: float
    total_per_diem: float
    total_cost: float
    margin_type: Optional[MarginType] = None
    margin_value: float = 0
    margin_amount: float = 0
    total_with_margin: float
    duration_days: int
    currency: str = "EUR"


class EmailData(BaseModel):
    owner_email: str
    subject: Optional[str] = None
    message: Optional[str] = None
    fees: Optional[Fees] = None
    billing_notes: Optional[str] = None
    payment_terms: Optional[str] = None
    sent_at: Optional[datetime] = None


class ClientResponse(BaseModel):
    approved: bool
    responded_at: datetime
    comments: Optional[str] = None
    rejection_reason: Optional[str] = None


# ----------------------------------------------------------------------
# Post-mission records
# ----------------------------------------------------------------------
class ValidationRecord(BaseModel):
    requested_at: Optional[datetime] = None
    validated_at: Optional[datetime] = None
    crew_comments: Optional[str] = None
    rib_confirmed: bool = False
    issues_reported: List[str] = Field(default_factory=list)
    payment_issue: bool = False
    payment_issue_details: Optional[str] = None
    new_rib: Optional[str] = None


class DateModification(BaseModel):
    requested_at: datetime
    requested_by: Optional[str] = None
    original_start_date: date
    original_end_date: date
    new_start_date: date
    new_end_date: date
    reason: str
    status: DateModificationStatus = DateModificationStatus.PENDING
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    approver_comment: Optional[str] = None

    @property
    def is_outstanding(self) -> bool:
        return self.status == DateModificationStatus.PENDING


class ServiceInvoiceLine(BaseModel):
    description: str
    quantity: float = Field(1, ge=0)
    unit_price: float = Field(0, ge=0)
    total: float = 0
    category: Optional[str] = None


class ServiceInvoice(BaseModel):
    lines: List[ServiceInvoiceLine] = Field(default_factory=list)
    tax_rate: float = Field(0, ge=0, le=100)
    currency: str = "EUR"
    contract_subtotal: float = 0
    expenses_subtotal: float = 0
    subtotal: float = 0
    tax_amount: float = 0
    total: float = 0
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    company_name: Optional[str] = None
    vat_number: Optional[str] = None
    notes: Optional[str] = None


class OwnerApproval(BaseModel):
    """Internal-only owner sign-off carried by extra-day missions."""
    approved: bool = False
    comment: Optional[str] = None


# ----------------------------------------------------------------------
# The aggregate
# ----------------------------------------------------------------------
class MissionOrderBase(BaseModel):
    id: str
    status: MissionStatus
    version: int = 1

    crew: CrewSnapshot
    aircraft: AircraftSnapshot
    flights: List[FlightLeg] = Field(default_factory=list)
    contract: Contract

    email_data: Optional[EmailData] = None
    client_response: Optional[ClientResponse] = None
    validation: Optional[ValidationRecord] = None
    date_modification: Optional[DateModification] = None

    # execution
    actual_end_date: Optional[date] = None
    was_extended: bool = False
    extension_reason: Optional[str] = None

    # audit
    created_at: datetime
    created_by: str
    updated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approver: Optional[ActorRef] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[ActorRef] = None
    rejection_reason: Optional[str] = None
    client_approved_at: Optional[datetime] = None
    client_rejected_at: Optional[datetime] = None
    assigned_to_crew_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
    execution_started_at: Optional[datetime] = None
    execution_completed_at: Optional[datetime] = None
    executed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    validation_requested_at: Optional[datetime] = None
    validated_at: Optional[datetime] = None
    date_modification_requested_at: Optional[datetime] = None
    date_modification_approved_at: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id must not be blank")
        return v


class ExtraDayMission(MissionOrderBase):
    type: Literal["extra_day"] = "extra_day"
    owner_approval: Optional[OwnerApproval] = None


class FreelanceMission(MissionOrderBase):
    type: Literal["freelance"] = "freelance"


class ServiceMission(MissionOrderBase):
    type: Literal["service"] = "service"
    service_invoice: Optional[ServiceInvoice] = None


MissionOrder = Annotated[
    Union[ExtraDayMission, FreelanceMission, ServiceMission],
    Field(discriminator="type"),
]

mission_adapter: TypeAdapter = TypeAdapter(MissionOrder)


def load_mission(data: dict) -> MissionOrderBase:
    """Rebuild the right variant from a stored JSON snapshot."""
    return mission_adapter.validate_python(data)


def dump_mission(mission: MissionOrderBase) -> dict:
    return mission.model_dump(mode="json")
