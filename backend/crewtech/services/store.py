# backend/crewtech/services/store.py
"""
Mission record stores.

A store keeps one snapshot per mission id and only accepts conditional
writes: `put(mission, expected_version)` succeeds when the stored version
equals `expected_version` (None meaning "must not exist yet") and persists
the snapshot with `version = expected_version + 1`.
"""
from __future__ import annotations

import copy
import logging
import threading
from typing import Callable, Dict, List, Optional, Protocol

from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crewtech.models.mission_order import MissionOrderRow
from crewtech.schemas.mission_order import MissionOrderBase, MissionStatus, dump_mission, load_mission
from crewtech.services.errors import ConcurrencyError

logger = logging.getLogger(__name__)


class MissionStore(Protocol):
    def get(self, mission_id: str) -> Optional[MissionOrderBase]: ...

    def put(self, mission: MissionOrderBase, expected_version: Optional[int]) -> MissionOrderBase: ...

    def scan(self, prefix: str = "") -> List[MissionOrderBase]: ...


def _next(mission: MissionOrderBase, expected_version: Optional[int]) -> MissionOrderBase:
    out = mission.model_copy(deep=True)
    out.version = (expected_version or 0) + 1
    return out


class InMemoryMissionStore:
    """Dict-backed store; snapshots are copied in and out."""

    def __init__(self):
        self._rows: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, mission_id: str) -> Optional[MissionOrderBase]:
        with self._lock:
            data = self._rows.get(mission_id)
        return load_mission(copy.deepcopy(data)) if data is not None else None

    def put(self, mission: MissionOrderBase, expected_version: Optional[int]) -> MissionOrderBase:
        with self._lock:
            current = self._rows.get(mission.id)
            actual = current["version"] if current is not None else None
            if actual != expected_version:
                raise ConcurrencyError(mission.id, expected_version, actual)
            stored = _next(mission, expected_version)
            self._rows[mission.id] = dump_mission(stored)
        return stored

    def scan(self, prefix: str = "") -> List[MissionOrderBase]:
        with self._lock:
            rows = [copy.deepcopy(v) for k, v in sorted(self._rows.items()) if k.startswith(prefix)]
        return [load_mission(r) for r in rows]


class SqlMissionStore:
    """
    SQLAlchemy-backed store. Each call runs in its own session from
    `session_factory` and commits before returning.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get(self, mission_id: str) -> Optional[MissionOrderBase]:
        with self._session_factory() as s:
            row = s.get(MissionOrderRow, mission_id)
            return load_mission(row.payload) if row else None

    def put(self, mission: MissionOrderBase, expected_version: Optional[int]) -> MissionOrderBase:
        stored = _next(mission, expected_version)
        values = dict(
            type=stored.type,
            status=MissionStatus(stored.status).value,
            crew_id=stored.crew.id,
            version=stored.version,
            payload=dump_mission(stored),
        )
        with self._session_factory() as s:
            if expected_version is None:
                try:
                    s.execute(insert(MissionOrderRow).values(id=stored.id, **values))
                    s.commit()
                except IntegrityError:
                    s.rollback()
                    existing = s.get(MissionOrderRow, stored.id)
                    raise ConcurrencyError(stored.id, None, existing.version if existing else None)
                return stored

            res = s.execute(
                update(MissionOrderRow)
                .where(MissionOrderRow.id == stored.id, MissionOrderRow.version == expected_version)
                .values(**values)
            )
            if res.rowcount == 0:
                s.rollback()
                actual = s.scalar(select(MissionOrderRow.version).where(MissionOrderRow.id == stored.id))
                logger.warning(
                    "Conditional write rejected for %s: expected v%s, found v%s",
                    stored.id, expected_version, actual,
                )
                raise ConcurrencyError(stored.id, expected_version, actual)
            s.commit()
        return stored

    def scan(self, prefix: str = "") -> List[MissionOrderBase]:
        with self._session_factory() as s:
            q = select(MissionOrderRow).order_by(MissionOrderRow.id)
            if prefix:
                q = q.where(MissionOrderRow.id.startswith(prefix, autoescape=True))
            rows = s.execute(q).scalars().all()
            return [load_mission(r.payload) for r in rows]
