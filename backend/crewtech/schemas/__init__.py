# backend/crewtech/schemas/__init__.py

# Mission orders
from .mission_order import (
    MissionOrder,
    MissionOrderBase,
    MissionStatus,
    MissionType,
    load_mission,
    dump_mission,
)

# Notifications
from .notification import NotificationOut

# Cost estimation
from .costing import (
    CostParams,
    CostResult,
    MarginConfig,
    ManualRates,
)

__all__ = [
    "MissionOrder", "MissionOrderBase", "MissionStatus", "MissionType",
    "load_mission", "dump_mission",
    "CostParams", "CostResult", "MarginConfig", "ManualRates",
    "NotificationOut",
]
