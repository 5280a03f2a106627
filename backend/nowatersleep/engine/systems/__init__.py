# backend/nowatersleep/engine/systems/__init__.py
"""
Game systems - each handles a specific domain of engine logic:
- TimeEventManager: Scheduled events, recurring timers
- PermissionSystem: Plugin-registered permissions and user/group grants
- WaterSystem: Water depth queries
- DrowningSystem: Drowning of players asleep underwater
"""

from .context import GameContext
from .time_manager import TimeEventManager, TimerHandle, ManualClock
from .permissions import PermissionSystem
from .water import WaterSystem, UNDERWATER_DEPTH_THRESHOLD
from .drowning import (
    DrowningSystem,
    DrowningPolicy,
    KillImmediately,
    DelayThenDamage,
    IGNORE_PERMISSION,
    policy_from_config,
)

__all__ = [
    "GameContext",
    "TimeEventManager",
    "TimerHandle",
    "ManualClock",
    "PermissionSystem",
    "WaterSystem",
    "UNDERWATER_DEPTH_THRESHOLD",
    "DrowningSystem",
    "DrowningPolicy",
    "KillImmediately",
    "DelayThenDamage",
    "IGNORE_PERMISSION",
    "policy_from_config",
]
