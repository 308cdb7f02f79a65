# backend/crewtech/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException

from crewtech.services.workflow import Actor


def get_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
    x_actor_name: Optional[str] = Header(None),
    x_actor_email: Optional[str] = Header(None),
) -> Actor:
    """
    Caller identity forwarded by the gateway in X-Actor-* headers.
    Role "admin" grants admin rights; anything else (or nothing) is crew.
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized: missing X-Actor-Id header")
    return Actor(
        id=x_actor_id.strip(),
        role=(x_actor_role or "crew").strip().lower(),
        name=x_actor_name,
        email=x_actor_email,
    )
