"""
Global pytest configuration and shared fixtures.

Provides common test infrastructure for all test suites including:
- Mock world setup (a lake, a shallow ford and a dry shore)
- An engine driven by a manual clock
"""

import sys
from pathlib import Path

import pytest

# Add backend to path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from nowatersleep.engine import WorldEngine  # noqa: E402
from nowatersleep.engine.systems import (  # noqa: E402
    DelayThenDamage,
    DrowningSystem,
    ManualClock,
)
from nowatersleep.engine.world import World, WorldRoom  # noqa: E402

# ============================================================================
# World Fixtures
# ============================================================================


@pytest.fixture
def mock_world() -> World:
    """Create empty World instance."""
    return World(rooms={}, players={})


@pytest.fixture
def world_with_water(mock_world: World) -> World:
    """
    Create World with three rooms:
    - room_lake: water surface 10 units above the floor
    - room_ford: water surface 0.5 units above the floor
    - room_shore: dry
    """
    mock_world.rooms["room_lake"] = WorldRoom(
        id="room_lake",
        name="Lake Bottom",
        description="Murky water presses in from every side",
        room_type="lake",
        water_level=10.0,
    )
    mock_world.rooms["room_ford"] = WorldRoom(
        id="room_ford",
        name="Shallow Ford",
        description="The river runs ankle-deep here",
        room_type="river",
        water_level=0.5,
    )
    mock_world.rooms["room_shore"] = WorldRoom(
        id="room_shore",
        name="Shore",
        description="Dry sand",
        room_type="shore",
    )
    return mock_world


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def engine(world_with_water: World, clock: ManualClock) -> WorldEngine:
    """WorldEngine over the water world, with time under test control."""
    return WorldEngine(world_with_water, clock=clock)


@pytest.fixture
def time_manager(engine: WorldEngine):
    return engine.time_manager


@pytest.fixture
def drowning_policy() -> DelayThenDamage:
    return DelayThenDamage(delay=30.0, amount=1.0, interval=1.0)


@pytest.fixture
def drowning_system(engine: WorldEngine, drowning_policy: DelayThenDamage) -> DrowningSystem:
    """DrowningSystem registered with the engine (permissions already set up)."""
    system = DrowningSystem(engine.ctx, drowning_policy)
    engine.register_plugin(system)
    return system
