# backend/crewtech/routers/missions.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from crewtech.auth import get_actor
from crewtech.db import SessionLocal
from crewtech.schemas.mission_order import MissionStatus, dump_mission
from crewtech.services.notifications import SqlNotificationDispatcher
from crewtech.services.store import SqlMissionStore
from crewtech.services.workflow import Actor, MissionWorkflow, TransitionResult


router = APIRouter(prefix="/missions", tags=["missions"])


def get_workflow() -> MissionWorkflow:
    return MissionWorkflow(SqlMissionStore(SessionLocal), SqlNotificationDispatcher(SessionLocal))


def _result(res: TransitionResult) -> dict:
    return {
        "mission": dump_mission(res.mission),
        "events": [e.to_dict() for e in res.events],
        "changed": res.changed,
    }


# ---- Reads -------------------------------------------------------------------

@router.get("")
def list_missions(
    status: Optional[MissionStatus] = Query(None),
    actor: Actor = Depends(get_actor),
    wf: MissionWorkflow = Depends(get_workflow),
):
    """
    GET /missions
    GET /missions?status=pending_validation
    Crew members only see their own missions.
    """
    return {"missions": [dump_mission(m) for m in wf.list(actor, status)]}


@router.get("/{mission_id}")
def get_mission(mission_id: str, actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return {"mission": dump_mission(wf.get(actor, mission_id))}


# ---- Creation / approval -----------------------------------------------------

@router.post("", status_code=201)
def create_mission(
    payload: Any = Body(None),
    actor: Actor = Depends(get_actor),
    wf: MissionWorkflow = Depends(get_workflow),
):
    return _result(wf.create(actor, payload))


@router.post("/check-validation")
def check_validation(actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    """Sweep approved missions whose contract has ended into pending_validation."""
    updated = wf.complete_due_missions(actor)
    return {"updated": updated, "message": f"{updated} mission(s) moved to pending_validation"}


@router.put("/{mission_id}/approve")
def approve_mission(mission_id: str, payload: Any = Body(None),
                    actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.approve(actor, mission_id, payload))


@router.put("/{mission_id}/reject")
def reject_mission(mission_id: str, payload: Any = Body(None),
                   actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.reject(actor, mission_id, payload))


@router.put("/{mission_id}/submit-to-client")
def submit_to_client(mission_id: str, payload: Any = Body(None),
                     actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.submit_to_client(actor, mission_id, payload))


@router.put("/{mission_id}/approve-client-response")
def approve_client_response(mission_id: str, payload: Any = Body(None),
                            actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.approve_client_response(actor, mission_id, payload))


@router.put("/{mission_id}/reject-client-response")
def reject_client_response(mission_id: str, payload: Any = Body(None),
                           actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.reject_client_response(actor, mission_id, payload))


# ---- Assignment / execution --------------------------------------------------

@router.put("/{mission_id}/assign-to-crew")
def assign_to_crew(mission_id: str, payload: Any = Body(None),
                   actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.assign_to_crew(actor, mission_id, payload))


@router.put("/{mission_id}/start-execution")
def start_execution(mission_id: str, payload: Any = Body(None),
                    actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.start_execution(actor, mission_id, payload))


@router.put("/{mission_id}/complete-execution")
def complete_execution(mission_id: str, payload: Any = Body(None),
                       actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.complete_execution(actor, mission_id, payload))


# ---- Validation / date modifications -----------------------------------------

@router.put("/{mission_id}/request-validation")
def request_validation(mission_id: str,
                       actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.request_validation(actor, mission_id))


@router.put("/{mission_id}/validate")
def validate_mission(mission_id: str, payload: Any = Body(None),
                     actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.validate(actor, mission_id, payload))


@router.post("/{mission_id}/request-date-modification")
def request_date_modification(mission_id: str, payload: Any = Body(None),
                              actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.request_date_modification(actor, mission_id, payload))


@router.put("/{mission_id}/date-modification/approve")
def approve_date_modification(mission_id: str, payload: Any = Body(None),
                              actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.resolve_date_modification(actor, mission_id, True, payload))


@router.put("/{mission_id}/date-modification/reject")
def reject_date_modification(mission_id: str, payload: Any = Body(None),
                             actor: Actor = Depends(get_actor), wf: MissionWorkflow = Depends(get_workflow)):
    return _result(wf.resolve_date_modification(actor, mission_id, False, payload))
