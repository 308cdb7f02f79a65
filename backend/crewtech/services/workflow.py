# backend/crewtech/services/workflow.py
"""
Mission order lifecycle.

Every operation follows the same path: role check, load, crew-of-record
check, status precondition, payload validation, derived fields, conditional
write, then dispatch of the notification events it produced. This module is
the only place that assigns `MissionOrder.status`.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, FrozenSet, List, NamedTuple, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from crewtech.config import ADMIN_RECIPIENT
from crewtech.schemas.mission_order import (
    ActorRef,
    ClientResponse,
    Contract,
    CrewSnapshot,
    AircraftSnapshot,
    CrewType,
    DateModification,
    DateModificationStatus,
    EmailData,
    ExtraDayMission,
    FreelanceMission,
    MissionOrderBase,
    MissionStatus,
    MissionType,
    SalaryType,
    ServiceInvoice,
    ServiceInvoiceLine,
    ServiceMission,
    ValidationRecord,
    ZeroHourContract,
)
from crewtech.schemas.payloads import (
    ApprovePayload,
    AssignPayload,
    BillingIn,
    ClientApprovalPayload,
    ClientRejectionPayload,
    CompleteExecutionPayload,
    DateModificationIn,
    MissionCreate,
    RejectPayload,
    ResolveDateModificationPayload,
    ServiceInvoiceIn,
    StartExecutionPayload,
    SubmitToClientPayload,
    ValidatePayload,
)
from crewtech.services import rates
from crewtech.services.costing import fees_for_contract
from crewtech.services.errors import (
    AuthorizationError,
    ConcurrencyError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from crewtech.services.notifications import NotificationDispatcher, NotificationEvent, RecordingDispatcher
from crewtech.services.store import MissionStore

logger = logging.getLogger(__name__)

MISSION_PREFIX = "MO-"
ADMIN_ROLE = "admin"

S = MissionStatus
P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller. Any role other than admin acts as crew."""
    id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def ref(self) -> ActorRef:
        return ActorRef(id=self.id, name=self.name, email=self.email)

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id


@dataclass
class TransitionResult:
    mission: MissionOrderBase
    events: List[NotificationEvent] = field(default_factory=list)
    changed: bool = True


class Rule(NamedTuple):
    admin_only: bool
    # None means any status is accepted
    sources: Optional[FrozenSet[MissionStatus]]


TRANSITIONS: Dict[str, Rule] = {
    "approve": Rule(True, None),
    "reject": Rule(True, None),
    "submit_to_client": Rule(True, frozenset({S.PENDING_APPROVAL, S.PENDING_FINANCE_REVIEW})),
    "approve_client_response": Rule(True, frozenset({S.PENDING_CLIENT_APPROVAL})),
    "reject_client_response": Rule(True, frozenset({S.PENDING_CLIENT_APPROVAL})),
    "assign_to_crew": Rule(True, frozenset({S.APPROVED})),
    "start_execution": Rule(False, frozenset({S.PENDING_EXECUTION})),
    "complete_execution": Rule(False, frozenset({S.IN_PROGRESS, S.PENDING_EXECUTION})),
    "request_validation": Rule(True, frozenset({S.MISSION_OVER})),
    "validate": Rule(False, frozenset({S.PENDING_VALIDATION, S.PENDING_DATE_MODIFICATION})),
    "request_date_modification": Rule(False, None),
    "resolve_date_modification": Rule(True, None),
}

_VARIANTS: Dict[MissionType, Type[MissionOrderBase]] = {
    MissionType.EXTRA_DAY: ExtraDayMission,
    MissionType.FREELANCE: FreelanceMission,
    MissionType.SERVICE: ServiceMission,
}

ZERO_HOUR_RESPONSIBILITIES = [
    "Execute assigned mission duties",
    "Maintain professional standards",
    "Follow safety protocols",
    "Report mission completion",
]


def new_mission_id(now: datetime) -> str:
    return f"{MISSION_PREFIX}{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _label(operation: str) -> str:
    return operation.replace("_", " ")


class MissionWorkflow:
    def __init__(
        self,
        store: MissionStore,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.dispatcher = dispatcher if dispatcher is not None else RecordingDispatcher()
        self._clock = clock

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _now(self) -> datetime:
        return self._clock()

    @staticmethod
    def _require_admin(actor: Actor, operation: str) -> None:
        if not actor.is_admin:
            raise AuthorizationError(f"Forbidden: admin access required to {_label(operation)}")

    def _load(self, mission_id: str) -> MissionOrderBase:
        mission = self.store.get(mission_id)
        if mission is None:
            logger.info("Mission %s not found", mission_id)
            raise NotFoundError(details=f"mission {mission_id}")
        return mission

    @staticmethod
    def _check_crew_of_record(actor: Actor, mission: MissionOrderBase, operation: str) -> None:
        if actor.is_admin or mission.crew.id == actor.id:
            return
        logger.info("User %s denied %s on mission %s", actor.id, operation, mission.id)
        raise AuthorizationError(f"Forbidden: you can only {_label(operation)} your own missions")

    def _begin(self, operation: str, actor: Actor, mission_id: str) -> MissionOrderBase:
        rule = TRANSITIONS[operation]
        if rule.admin_only:
            self._require_admin(actor, operation)
        mission = self._load(mission_id)
        if not rule.admin_only:
            self._check_crew_of_record(actor, mission, operation)
        if rule.sources is not None and mission.status not in rule.sources:
            raise PreconditionError(_label(operation), mission.status.value, [s.value for s in rule.sources])
        return mission

    @staticmethod
    def _parse(model: Type[P], payload: Any) -> P:
        if isinstance(payload, model):
            return payload
        try:
            return model.model_validate(payload or {})
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc)

    def _commit(
        self,
        operation: str,
        before: MissionOrderBase,
        after: MissionOrderBase,
        events: List[NotificationEvent],
    ) -> TransitionResult:
        after.updated_at = self._now()
        stored = self.store.put(after, expected_version=before.version)
        self.dispatcher.dispatch(events)
        logger.info(
            "%s: mission %s %s -> %s (v%d)",
            operation, stored.id, before.status.value, stored.status.value, stored.version,
        )
        return TransitionResult(stored, events)

    @staticmethod
    def _to_crew(mission: MissionOrderBase, title: str, message: str, level: str = "info",
                 category: str = "mission", **meta) -> List[NotificationEvent]:
        if not mission.crew.id:
            return []
        return [NotificationEvent(
            recipient=mission.crew.id, title=title, message=message, level=level,
            category=category, mission_id=mission.id, metadata={"mission_id": mission.id, **meta},
        )]

    @staticmethod
    def _to_admin(mission: MissionOrderBase, title: str, message: str, level: str = "info",
                  category: str = "admin", **meta) -> List[NotificationEvent]:
        return [NotificationEvent(
            recipient=ADMIN_RECIPIENT, title=title, message=message, level=level,
            category=category, mission_id=mission.id, metadata={"mission_id": mission.id, **meta},
        )]

    # ------------------------------------------------------------------
    # Derived fields
    # ------------------------------------------------------------------
    @staticmethod
    def _apply_rate_table(contract: Contract, crew: CrewSnapshot, aircraft: AircraftSnapshot) -> Contract:
        """Locked salary / per diem follow the rate table when it has an entry."""
        resolved = rates.resolve(aircraft.registration, crew.position)
        if resolved is not None:
            daily, monthly, per_diem = resolved.daily, resolved.monthly, resolved.per_diem
            currency = resolved.currency
        else:
            rate = rates.salary_rate(crew.position, aircraft.type)
            pd = rates.per_diem_rate(crew.position)
            daily = rate.daily if rate else None
            monthly = rate.monthly if rate else None
            currency = rate.currency if rate else None
            per_diem = pd.amount if pd else None

        updates = {}
        if contract.salary_locked and contract.salary_type != SalaryType.LUMP_SUM:
            amount = daily if contract.salary_type == SalaryType.DAILY else monthly
            if amount is not None:
                updates["salary_amount"] = amount
                updates["salary_currency"] = currency
        if contract.per_diem_locked and contract.has_per_diem and per_diem is not None:
            updates["per_diem_amount"] = per_diem
        if not updates:
            return contract
        return contract.model_copy(update=updates)

    def _email_data(self, billing: BillingIn, contract: Contract, now: datetime) -> EmailData:
        return EmailData(
            owner_email=billing.owner_email,
            subject=billing.subject,
            message=billing.message,
            fees=fees_for_contract(contract, billing.margin, billing.currency),
            billing_notes=billing.billing_notes,
            payment_terms=billing.payment_terms,
            sent_at=now,
        )

    @staticmethod
    def _service_invoice(data: ServiceInvoiceIn, mission: MissionOrderBase) -> ServiceInvoice:
        lines = [
            ServiceInvoiceLine(
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total=line.quantity * line.unit_price,
                category=line.category,
            )
            for line in data.lines
        ]
        expenses = sum(line.total for line in lines)
        contract_subtotal = fees_for_contract(mission.contract).total_cost
        subtotal = contract_subtotal + expenses
        tax_amount = subtotal * data.tax_rate / 100
        return ServiceInvoice(
            lines=lines,
            tax_rate=data.tax_rate,
            currency=data.currency or mission.contract.salary_currency,
            contract_subtotal=contract_subtotal,
            expenses_subtotal=expenses,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=subtotal + tax_amount,
            invoice_number=data.invoice_number,
            invoice_date=data.invoice_date,
            company_name=data.company_name,
            vat_number=data.vat_number,
            notes=data.notes,
        )

    @staticmethod
    def _date_modification(data: DateModificationIn, mission: MissionOrderBase, actor: Actor,
                           now: datetime) -> DateModification:
        return DateModification(
            requested_at=now,
            requested_by=actor.id,
            original_start_date=data.original_start_date or mission.contract.start_date,
            original_end_date=data.original_end_date or mission.contract.end_date,
            new_start_date=data.new_start_date,
            new_end_date=data.new_end_date,
            reason=data.reason,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, actor: Actor, mission_id: str) -> MissionOrderBase:
        mission = self._load(mission_id)
        self._check_crew_of_record(actor, mission, "view")
        return mission

    def list(self, actor: Actor, status: Optional[MissionStatus] = None) -> List[MissionOrderBase]:
        missions = self.store.scan(MISSION_PREFIX)
        if not actor.is_admin:
            missions = [m for m in missions if m.crew.id == actor.id]
        if status is not None:
            missions = [m for m in missions if m.status == status]
        return missions

    # ------------------------------------------------------------------
    # Creation and approval
    # ------------------------------------------------------------------
    def create(self, actor: Actor, payload: Any) -> TransitionResult:
        self._require_admin(actor, "create")
        data = self._parse(MissionCreate, payload)
        now = self._now()

        contract = self._apply_rate_table(data.contract, data.crew, data.aircraft)
        if data.billing is not None:
            status = S.PENDING_CLIENT_APPROVAL
        elif data.finance_review:
            status = S.PENDING_FINANCE_REVIEW
        else:
            status = S.PENDING_APPROVAL

        fields = dict(
            id=new_mission_id(now),
            status=status,
            crew=data.crew,
            aircraft=data.aircraft,
            flights=data.flights,
            contract=contract,
            created_at=now,
            created_by=actor.id,
            updated_at=now,
        )
        if data.billing is not None:
            fields["email_data"] = self._email_data(data.billing, contract, now)
        if data.type == MissionType.EXTRA_DAY:
            fields["owner_approval"] = data.owner_approval

        mission = _VARIANTS[data.type](**fields)
        stored = self.store.put(mission, expected_version=None)
        logger.info("create: mission %s (%s) created by %s with status %s",
                    stored.id, stored.type, actor.id, stored.status.value)
        return TransitionResult(stored, [])

    def approve(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("approve", actor, mission_id)
        if mission.status == S.APPROVED:
            logger.info("approve: mission %s already approved", mission.id)
            return TransitionResult(mission, [], changed=False)
        data = self._parse(ApprovePayload, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        m.status = S.APPROVED
        m.approved_at = now
        m.approver = actor.ref()
        if data.billing is not None:
            m.email_data = self._email_data(data.billing, m.contract, now)

        total = m.email_data.fees.total_with_margin if m.email_data and m.email_data.fees else None
        events = self._to_crew(
            m, "Mission Approved", f"Mission {m.id} has been approved",
            level="success", total_amount=total,
        )
        return self._commit("approve", mission, m, events)

    def reject(self, actor: Actor, mission_id: str, payload: Any) -> TransitionResult:
        mission = self._begin("reject", actor, mission_id)
        data = self._parse(RejectPayload, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        m.status = S.REJECTED
        m.rejected_at = now
        m.rejected_by = actor.ref()
        m.rejection_reason = data.reason

        events = self._to_crew(
            m, "Mission Rejected", f"Mission {m.id} has been rejected: {data.reason}",
            level="error", reason=data.reason,
        )
        return self._commit("reject", mission, m, events)

    def submit_to_client(self, actor: Actor, mission_id: str, payload: Any) -> TransitionResult:
        mission = self._begin("submit_to_client", actor, mission_id)
        data = self._parse(SubmitToClientPayload, payload)

        m = mission.model_copy(deep=True)
        m.status = S.PENDING_CLIENT_APPROVAL
        m.email_data = self._email_data(data.billing, m.contract, self._now())
        # crew hears about it once the client has answered
        return self._commit("submit_to_client", mission, m, [])

    def approve_client_response(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("approve_client_response", actor, mission_id)
        data = self._parse(ClientApprovalPayload, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        m.status = S.APPROVED
        m.client_approved_at = now
        m.client_response = ClientResponse(approved=True, responded_at=now, comments=data.comments)

        events = self._to_crew(
            m, "Mission approved by client",
            f"Mission {m.id} has been approved by the client. Your mission order is now available.",
            level="success", client_approved=True,
        )
        return self._commit("approve_client_response", mission, m, events)

    def reject_client_response(self, actor: Actor, mission_id: str, payload: Any) -> TransitionResult:
        mission = self._begin("reject_client_response", actor, mission_id)
        data = self._parse(ClientRejectionPayload, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        m.status = S.CLIENT_REJECTED
        m.client_rejected_at = now
        m.client_response = ClientResponse(
            approved=False, responded_at=now, rejection_reason=data.rejection_reason,
        )

        events = self._to_crew(
            m, "Mission rejected by client",
            f"Mission {m.id} has been rejected by the client. Reason: {data.rejection_reason}",
            level="error", client_rejected=True, rejection_reason=data.rejection_reason,
        )
        return self._commit("reject_client_response", mission, m, events)

    # ------------------------------------------------------------------
    # Assignment and execution
    # ------------------------------------------------------------------
    def assign_to_crew(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("assign_to_crew", actor, mission_id)
        data = self._parse(AssignPayload, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        contract_generated = False
        if (
            data.generate_contract
            and m.crew.type == CrewType.FREELANCER
            and m.contract.zero_hour_contract is None
        ):
            m.contract.zero_hour_contract = ZeroHourContract(
                contract_number=f"CTR-{m.id}-{now:%Y%m%d%H%M%S}",
                generated_at=now,
                payment_terms="Per day" if m.contract.salary_type == SalaryType.DAILY else "Per mission",
                responsibilities=list(ZERO_HOUR_RESPONSIBILITIES),
            )
            contract_generated = True
            logger.info("assign_to_crew: zero-hour contract generated for mission %s", m.id)

        m.status = S.PENDING_EXECUTION
        m.assigned_to_crew_at = data.assigned_at or now
        m.assigned_by = actor.id

        suffix = " A zero-hour contract has been generated." if contract_generated else ""
        events = self._to_crew(
            m, "Mission Assigned", f"Mission {m.id} has been assigned to you.{suffix}",
            level="success", category="mission_assignment", contract_generated=contract_generated,
        )
        return self._commit("assign_to_crew", mission, m, events)

    def start_execution(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("start_execution", actor, mission_id)
        data = self._parse(StartExecutionPayload, payload)

        m = mission.model_copy(deep=True)
        m.status = S.IN_PROGRESS
        m.execution_started_at = data.started_at or self._now()
        m.executed_by = actor.id

        events = self._to_admin(
            m, "Mission Started", f"{m.crew.name or actor.display_name} has started mission {m.id}",
            category="mission", started_by=actor.id,
        )
        return self._commit("start_execution", mission, m, events)

    def complete_execution(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("complete_execution", actor, mission_id)
        data = self._parse(CompleteExecutionPayload, payload)
        now = self._now()

        contracted_end = mission.contract.end_date
        actual_end = data.actual_end_date or contracted_end
        if actual_end < mission.contract.start_date:
            raise ValidationError(["actual_end_date: must be on/after the contract start_date"])
        was_extended = actual_end != contracted_end
        reason = (data.extension_reason or "").strip()
        if was_extended and not reason:
            raise ValidationError(
                ["extension_reason: missing"],
                "extension_reason is required when the actual end date differs from the contract",
            )

        m = mission.model_copy(deep=True)
        m.status = S.MISSION_OVER
        m.execution_completed_at = data.completed_at or now
        m.completed_at = m.execution_completed_at
        m.actual_end_date = actual_end
        m.was_extended = was_extended
        m.extension_reason = reason if was_extended else None

        events = self._to_crew(
            m, "Mission Over - Validation Required",
            f"Mission {m.id} is over. Please validate payment details and confirm the dates.",
            category="validation", action="validate_mission",
        )
        extended = " (mission was extended)" if was_extended else ""
        events += self._to_admin(
            m, "Mission Completed",
            f"{m.crew.name or actor.display_name} has completed mission {m.id}{extended}",
            level="success", category="mission", completed_by=actor.id,
            was_extended=was_extended, extension_reason=m.extension_reason,
        )
        return self._commit("complete_execution", mission, m, events)

    # ------------------------------------------------------------------
    # Validation and date modifications
    # ------------------------------------------------------------------
    def request_validation(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("request_validation", actor, mission_id)
        now = self._now()

        m = mission.model_copy(deep=True)
        m.status = S.PENDING_VALIDATION
        m.validation_requested_at = now
        m.validation = ValidationRecord(requested_at=now)

        events = self._to_crew(
            m, "Mission Validation Required",
            f"Mission {m.id} requires your validation. Please review mission details "
            f"and confirm your payment information.",
            category="validation", action="validate_mission",
        )
        return self._commit("request_validation", mission, m, events)

    def validate(self, actor: Actor, mission_id: str, payload: Any = None) -> TransitionResult:
        mission = self._begin("validate", actor, mission_id)
        data = self._parse(ValidatePayload, payload)
        if data.service_invoice is not None and mission.type != MissionType.SERVICE.value:
            raise ValidationError(["service_invoice: only accepted on service missions"])
        now = self._now()

        m = mission.model_copy(deep=True)
        previous = m.validation
        m.validation = ValidationRecord(
            requested_at=previous.requested_at if previous else None,
            validated_at=now,
            crew_comments=data.crew_comments,
            rib_confirmed=data.rib_confirmed,
            issues_reported=data.issues_reported,
            payment_issue=data.payment_issue,
            payment_issue_details=data.payment_issue_details,
            new_rib=data.new_rib,
        )
        if data.service_invoice is not None:
            m.service_invoice = self._service_invoice(data.service_invoice, m)

        if data.date_modification is not None:
            m.status = S.PENDING_DATE_MODIFICATION
            m.date_modification = self._date_modification(data.date_modification, m, actor, now)
            m.date_modification_requested_at = now
            events = self._to_admin(
                m, "Date Modification Request",
                f"{actor.display_name} has requested a date modification during validation of mission {m.id}",
                user_id=actor.id, action="review_date_modification",
            )
        else:
            m.status = S.VALIDATED
            m.validated_at = now
            events = self._to_admin(
                m, "Mission Validated", f"{actor.display_name} has validated mission {m.id}",
                level="success", user_id=actor.id,
            )

        if data.new_rib:
            events += self._to_admin(
                m, "RIB Update Request",
                f"{actor.display_name} has requested a RIB update for mission {m.id}",
                user_id=actor.id,
            )
        if data.payment_issue:
            events += self._to_admin(
                m, "Payment Issue Reported",
                f"{actor.display_name} reported a payment issue for mission {m.id}",
                level="warning", user_id=actor.id, details=data.payment_issue_details,
            )
        if data.payment_issue or data.new_rib:
            events += self._to_crew(
                m, "Payment Details Received",
                f"Your payment details for mission {m.id} have been sent to administration for review.",
                level="warning" if data.payment_issue else "info",
                payment_issue=data.payment_issue, rib_update=bool(data.new_rib),
            )
        return self._commit("validate", mission, m, events)

    def request_date_modification(self, actor: Actor, mission_id: str, payload: Any) -> TransitionResult:
        mission = self._begin("request_date_modification", actor, mission_id)
        data = self._parse(DateModificationIn, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        if m.status != S.VALIDATED:
            m.status = S.PENDING_DATE_MODIFICATION
        m.date_modification = self._date_modification(data, m, actor, now)
        m.date_modification_requested_at = now

        events = self._to_admin(
            m, "Date Modification Request",
            f"{actor.display_name} has requested a date modification for mission {m.id}",
            user_id=actor.id, action="review_date_modification",
            new_start_date=data.new_start_date.isoformat(), new_end_date=data.new_end_date.isoformat(),
        )
        return self._commit("request_date_modification", mission, m, events)

    def resolve_date_modification(self, actor: Actor, mission_id: str, approve: bool,
                                  payload: Any = None) -> TransitionResult:
        mission = self._begin("resolve_date_modification", actor, mission_id)
        request = mission.date_modification
        if request is None or not request.is_outstanding:
            raise PreconditionError(
                "resolve date modification", mission.status.value, [],
                reason="no outstanding date modification request",
            )
        data = self._parse(ResolveDateModificationPayload, payload)
        now = self._now()

        m = mission.model_copy(deep=True)
        mod = m.date_modification
        mod.resolved_at = now
        mod.resolved_by = actor.id
        mod.approver_comment = data.comment

        if approve:
            mod.status = DateModificationStatus.APPROVED
            m.contract = m.contract.model_copy(
                update={"start_date": mod.new_start_date, "end_date": mod.new_end_date}
            )
            m.status = S.VALIDATED
            m.validated_at = now
            m.date_modification_approved_at = now
            events = self._to_crew(
                m, "Date modification approved",
                f"Your date modification request for mission {m.id} has been approved. "
                f"New dates: {mod.new_start_date.isoformat()} - {mod.new_end_date.isoformat()}",
                level="success", action="date_modification_approved",
            )
            operation = "resolve_date_modification(approve)"
        else:
            mod.status = DateModificationStatus.REJECTED
            events = self._to_crew(
                m, "Date modification rejected",
                f"Your date modification request for mission {m.id} has been rejected. "
                f"Please contact administration for clarification.",
                level="warning", action="date_modification_rejected",
            )
            operation = "resolve_date_modification(reject)"
        return self._commit(operation, mission, m, events)

    # ------------------------------------------------------------------
    # Completion sweep
    # ------------------------------------------------------------------
    def complete_due_missions(self, actor: Actor, today: Optional[date] = None) -> int:
        """
        Move approved missions whose contract has ended to pending_validation.

        Independent of complete_execution: missions that were started through
        the execution path are never touched here.
        """
        self._require_admin(actor, "check validation")
        now = self._now()
        today = today or now.date()

        updated = 0
        for mission in self.store.scan(MISSION_PREFIX):
            if mission.status != S.APPROVED:
                continue
            if mission.execution_started_at or mission.execution_completed_at:
                continue
            if not mission.contract.end_date < today:
                continue

            m = mission.model_copy(deep=True)
            m.status = S.PENDING_VALIDATION
            # end of the last contracted day
            m.completed_at = m.completed_at or datetime.combine(
                mission.contract.end_date, time.max, tzinfo=timezone.utc
            )
            m.validation_requested_at = now
            m.validation = ValidationRecord(requested_at=now)
            events = self._to_crew(
                m, "Mission Validation Required",
                f"Mission {m.id} requires your validation. Please review mission details "
                f"and confirm your payment information.",
                category="validation", action="validate_mission",
            )
            try:
                self._commit("complete_due_missions", mission, m, events)
            except ConcurrencyError:
                logger.warning("complete_due_missions: mission %s changed concurrently, skipped", mission.id)
                continue
            updated += 1

        logger.info("complete_due_missions: %d mission(s) moved to pending_validation", updated)
        return updated
