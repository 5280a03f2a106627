"""
Water System

Answers "how deep is the water at this entity's position?" for the rest of
the engine. Rooms may carry a water surface level; an entity's depth is the
distance from that surface down to the entity's feet.

Depth in world units:
- no water in room / unknown room: invalid measurement
- depth <= 1.0: wading, head above water
- depth > 1.0: UNDERWATER
"""

import logging
from typing import TYPE_CHECKING

from nowatersleep.engine.world import WaterInfo

if TYPE_CHECKING:
    from nowatersleep.engine.world import World, WorldEntity

logger = logging.getLogger(__name__)

# Depth beyond which an entity counts as fully submerged
UNDERWATER_DEPTH_THRESHOLD = 1.0


class WaterSystem:
    """Water depth queries against the world's rooms."""

    def __init__(self, world: "World"):
        self.world = world

    def get_water_info(self, entity: "WorldEntity") -> WaterInfo:
        """
        Measure water depth at an entity's position.

        Args:
            entity: Player or NPC to measure at

        Returns:
            WaterInfo; is_valid is False when the room is unknown or dry
        """
        room = self.world.get_room_for(entity)
        if room is None or room.water_level is None:
            return WaterInfo(is_valid=False)

        return WaterInfo(
            is_valid=True,
            current_depth=room.water_level - entity.elevation,
            surface_level=room.water_level,
        )

    def is_underwater(self, entity: "WorldEntity") -> bool:
        info = self.get_water_info(entity)
        if not info.is_valid:
            return False
        return info.current_depth > UNDERWATER_DEPTH_THRESHOLD
