from .engine import WorldEngine
from .world import World, WorldPlayer, WorldRoom, DamageType, WaterInfo

__all__ = ["WorldEngine", "World", "WorldPlayer", "WorldRoom", "DamageType", "WaterInfo"]
