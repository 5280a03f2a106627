# backend/nowatersleep/engine/systems/context.py
"""
GameContext - Shared context object for all game systems.

Provides:
- Access to World state
- Cross-system references (time, permissions, water)

This avoids circular imports and provides a clean dependency injection pattern.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..world import World


class GameContext:
    """
    Shared context object passed to all game systems.

    Usage:
        ctx = GameContext(world)
        time_manager = TimeEventManager(ctx)
        ctx.time_manager = time_manager  # Register for cross-system access
    """

    def __init__(self, world: "World") -> None:
        self.world = world

        # System references (set by WorldEngine during initialization)
        self.engine: Any = None  # WorldEngine
        self.time_manager: Any = None  # TimeEventManager
        self.permission_system: Any = None  # PermissionSystem
        self.water_system: Any = None  # WaterSystem
