# backend/crewtech/schemas/payloads.py
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, model_validator

from .costing import MarginConfig
from .mission_order import (
    AircraftSnapshot,
    Contract,
    CrewSnapshot,
    FlightLeg,
    MissionType,
    OwnerApproval,
)


def _required_text(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v.strip()


RequiredText = Annotated[str, AfterValidator(_required_text)]


class BillingIn(BaseModel):
    owner_email: RequiredText
    subject: Optional[str] = None
    message: Optional[str] = None
    billing_notes: Optional[str] = None
    payment_terms: Optional[str] = None
    currency: Optional[str] = None
    margin: Optional[MarginConfig] = None


class MissionCreate(BaseModel):
    type: MissionType
    crew: CrewSnapshot
    aircraft: AircraftSnapshot
    flights: List[FlightLeg] = Field(default_factory=list)
    contract: Contract
    billing: Optional[BillingIn] = None
    finance_review: bool = False
    owner_approval: Optional[OwnerApproval] = None

    @model_validator(mode="after")
    def _owner_approval_only_for_extra_day(self):
        if self.owner_approval is not None and self.type != MissionType.EXTRA_DAY:
            raise ValueError("owner_approval is only meaningful for extra_day missions")
        return self


class ApprovePayload(BaseModel):
    billing: Optional[BillingIn] = None


class RejectPayload(BaseModel):
    reason: RequiredText


class SubmitToClientPayload(BaseModel):
    billing: BillingIn


class ClientApprovalPayload(BaseModel):
    comments: Optional[str] = None


class ClientRejectionPayload(BaseModel):
    rejection_reason: RequiredText


class AssignPayload(BaseModel):
    assigned_at: Optional[datetime] = None
    generate_contract: bool = True


class StartExecutionPayload(BaseModel):
    started_at: Optional[datetime] = None


class CompleteExecutionPayload(BaseModel):
    completed_at: Optional[datetime] = None
    actual_end_date: Optional[date] = None
    extension_reason: Optional[str] = None


class DateModificationIn(BaseModel):
    original_start_date: Optional[date] = None
    original_end_date: Optional[date] = None
    new_start_date: date
    new_end_date: date
    reason: RequiredText

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.new_end_date < self.new_start_date:
            raise ValueError("new_end_date must be on/after new_start_date")
        return self


class ServiceInvoiceLineIn(BaseModel):
    description: str
    quantity: float = Field(1, ge=0)
    unit_price: float = Field(0, ge=0)
    category: Optional[str] = None


class ServiceInvoiceIn(BaseModel):
    lines: List[ServiceInvoiceLineIn] = Field(default_factory=list)
    tax_rate: float = Field(0, ge=0, le=100)
    currency: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    company_name: Optional[str] = None
    vat_number: Optional[str] = None
    notes: Optional[str] = None


class ValidatePayload(BaseModel):
    crew_comments: Optional[str] = None
    rib_confirmed: bool = False
    issues_reported: List[str] = Field(default_factory=list)
    payment_issue: bool = False
    payment_issue_details: Optional[str] = None
    new_rib: Optional[str] = None
    date_modification: Optional[DateModificationIn] = None
    service_invoice: Optional[ServiceInvoiceIn] = None


class ResolveDateModificationPayload(BaseModel):
    comment: Optional[str] = None
