# IMPORTANT: Use Base from crewtech.db since all models import from there
from crewtech.db import Base

# import all model modules so tables get registered on Base.metadata
from .mission_order import MissionOrderRow
from .notification import Notification


__all__ = [
    "Base",
    "MissionOrderRow",
    "Notification",
]
