"""
Unit tests for the Water System.

Tests depth calculation, invalid measurements and the underwater threshold.
"""

import pytest

from nowatersleep.engine.systems.water import UNDERWATER_DEPTH_THRESHOLD, WaterSystem
from nowatersleep.engine.world import World, WorldRoom
from tests.fixtures.players import PlayerBuilder


@pytest.fixture
def water_system(world_with_water: World) -> WaterSystem:
    return WaterSystem(world_with_water)


@pytest.mark.unit
class TestWaterInfo:
    """Tests for WaterSystem.get_water_info."""

    def test_depth_in_lake(self, water_system: WaterSystem):
        player = PlayerBuilder().in_room("room_lake").build()

        info = water_system.get_water_info(player)

        assert info.is_valid
        assert info.current_depth == pytest.approx(10.0)
        assert info.surface_level == pytest.approx(10.0)

    def test_depth_accounts_for_elevation(self, water_system: WaterSystem):
        player = PlayerBuilder().in_room("room_lake").at_elevation(9.5).build()

        info = water_system.get_water_info(player)

        assert info.current_depth == pytest.approx(0.5)

    def test_dry_room_is_invalid(self, water_system: WaterSystem):
        player = PlayerBuilder().in_room("room_shore").build()
        assert water_system.get_water_info(player).is_valid is False

    def test_unknown_room_is_invalid(self, water_system: WaterSystem):
        player = PlayerBuilder().in_room("room_missing").build()
        assert water_system.get_water_info(player).is_valid is False


@pytest.mark.unit
class TestIsUnderwater:
    """Tests for the underwater predicate."""

    def test_threshold_value(self):
        assert UNDERWATER_DEPTH_THRESHOLD == 1.0

    def test_deep_water(self, water_system: WaterSystem):
        assert water_system.is_underwater(PlayerBuilder().in_room("room_lake").build())

    def test_shallow_water(self, water_system: WaterSystem):
        assert not water_system.is_underwater(PlayerBuilder().in_room("room_ford").build())

    def test_dry_land(self, water_system: WaterSystem):
        assert not water_system.is_underwater(PlayerBuilder().in_room("room_shore").build())

    def test_exactly_at_threshold_is_not_underwater(self, world_with_water: World):
        """Depth must exceed 1.0, not merely reach it."""
        world_with_water.rooms["room_pool"] = WorldRoom(
            id="room_pool", name="Pool", water_level=1.0
        )
        water_system = WaterSystem(world_with_water)
        player = PlayerBuilder().in_room("room_pool").build()

        assert not water_system.is_underwater(player)

    def test_surfacing_by_elevation(self, water_system: WaterSystem):
        player = PlayerBuilder().in_room("room_lake").build()
        assert water_system.is_underwater(player)

        player.elevation = 9.5
        assert not water_system.is_underwater(player)
