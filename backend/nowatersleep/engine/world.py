# backend/nowatersleep/engine/world.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Set, Callable, Awaitable


class DamageType(Enum):
    """Kinds of damage the world can deal to an entity."""
    GENERIC = "generic"
    DROWNED = "drowned"


# Simple type aliases for clarity
RoomId = str
PlayerId = str
EntityId = str  # Unified ID for players and NPCs


# Room type emoji mapping
ROOM_TYPE_EMOJIS = {
    "underwater": "🌊",
    "lake": "🏞️",
    "ocean": "🌊",
    "river": "🏞️",
    "marsh": "🌾",
    "shore": "🏖️",
    "ethereal": "✨",
}


def get_room_emoji(room_type: str) -> str:
    """Get the emoji for a room type, defaulting to a question mark."""
    return ROOM_TYPE_EMOJIS.get(room_type, "❓")


@dataclass
class TimeEvent:
    """
    Represents a scheduled event in the time system.

    Events are ordered by execute_at time and can be:
    - One-shot (execute once then remove)
    - Recurring (reschedule after execution)
    """
    execute_at: float  # Timestamp when event should execute
    callback: Callable[[], Awaitable[None]]  # Async function to call
    event_id: str  # Unique identifier for cancellation
    recurring: bool = False  # If True, reschedule after execution
    interval: float = 0.0  # Seconds between recurrences (if recurring)
    remaining_runs: int | None = None  # None = repeat forever
    cancelled: bool = False  # Checked by the scheduler before every fire

    def __lt__(self, other: 'TimeEvent') -> bool:
        """Compare events by execution time for priority queue."""
        return self.execute_at < other.execute_at


@dataclass
class WaterInfo:
    """Result of a water depth query at an entity's position."""
    is_valid: bool
    current_depth: float = 0.0
    surface_level: float = 0.0


@dataclass
class WorldEntity:
    """
    Base class for entities that live in the world.

    All entities share:
    - Health and damage handling
    - A position (room + elevation within the room)
    - Protection that mitigates incoming damage
    """
    id: EntityId
    name: str
    room_id: RoomId

    # Core stats shared by all entities
    max_health: float = 100.0
    current_health: float = 100.0

    # Fraction of incoming damage absorbed by armor (0.0 - 1.0)
    protection: float = 0.0

    # Height of the entity's feet above the room floor
    elevation: float = 0.0

    # Set by hurt()/die() so callers can tell how an entity died
    last_damage_type: DamageType | None = None

    def is_alive(self) -> bool:
        """Check if entity is alive."""
        return self.current_health > 0

    def hurt(
        self,
        amount: float,
        damage_type: DamageType = DamageType.GENERIC,
        use_protection: bool = True,
    ) -> float:
        """
        Deal damage to this entity.

        Args:
            amount: Raw damage before mitigation
            damage_type: Kind of damage being dealt
            use_protection: If False, protection is bypassed entirely

        Returns:
            Damage actually removed from current_health
        """
        if not self.is_alive() or amount <= 0:
            return 0.0

        if use_protection:
            amount *= 1.0 - min(max(self.protection, 0.0), 1.0)

        old_health = self.current_health
        self.current_health = max(0.0, self.current_health - amount)
        self.last_damage_type = damage_type
        return old_health - self.current_health

    def die(self, damage_type: DamageType = DamageType.GENERIC) -> None:
        """Kill this entity outright."""
        self.current_health = 0.0
        self.last_damage_type = damage_type


@dataclass
class WorldPlayer(WorldEntity):
    """
    Runtime representation of a player in the world.

    Disconnected players stay in the world as sleepers (stasis).
    """
    # Connection state - whether player is actively connected
    is_connected: bool = False

    @property
    def is_sleeping(self) -> bool:
        return not self.is_connected


@dataclass
class WorldRoom:
    """Runtime representation of a room in the world."""
    id: RoomId
    name: str
    description: str = ""
    room_type: str = "ethereal"

    # Unified entity tracking (players + NPCs)
    entities: Set[EntityId] = field(default_factory=set)

    # Height of the water surface above the room floor; None = dry room
    water_level: float | None = None


@dataclass
class World:
    """
    In-memory world state.

    This is the authoritative runtime graph used by WorldEngine.
    """
    rooms: Dict[RoomId, WorldRoom]
    players: Dict[PlayerId, WorldPlayer]

    def add_player(self, player: WorldPlayer) -> None:
        """Add a player to the world and to their room's entity set."""
        self.players[player.id] = player
        room = self.rooms.get(player.room_id)
        if room:
            room.entities.add(player.id)

    def find_player(self, player_id: PlayerId) -> WorldPlayer | None:
        """
        Resolve a player by ID.

        Returns:
            The player, or None if no such player exists.
        """
        return self.players.get(player_id)

    def sleeping_players(self) -> list[WorldPlayer]:
        """Get all players currently asleep (disconnected but still in the world)."""
        return [p for p in self.players.values() if not p.is_connected]

    def get_room_for(self, entity: WorldEntity) -> WorldRoom | None:
        """Get the room an entity is currently in."""
        return self.rooms.get(entity.room_id)
