"""
Integration tests for the drowning flow.

Runs the engine, config and drowning plugin together from startup to
shutdown.
"""

import pytest

from nowatersleep.config import DrowningConfig, PolicyKind, load_config, save_config
from nowatersleep.engine import WorldEngine
from nowatersleep.engine.systems import DrowningSystem
from nowatersleep.engine.world import DamageType
from tests.fixtures.players import PlayerBuilder, create_sleepers


@pytest.mark.integration
async def test_sleeper_drowns_until_reconnect(engine: WorldEngine, drowning_system: DrowningSystem):
    """Disconnect underwater, take one damage per second after 30s, stop on reconnect."""
    player = PlayerBuilder().with_id("diver").in_room("room_lake").awake().build()
    engine.world.add_player(player)
    await engine.start(run_time_loop=False)

    engine.player_disconnect(player.id)
    await engine.time_manager.advance(0)
    assert drowning_system.is_pending(player.id)

    await engine.time_manager.advance(35)
    assert player.current_health == 95.0
    assert player.last_damage_type == DamageType.DROWNED

    engine.player_connect(player.id)
    await engine.time_manager.advance(10)

    assert player.current_health == 95.0
    assert drowning_system.tracked_players() == set()

    await engine.stop()


@pytest.mark.integration
async def test_startup_sweep_drowns_existing_sleepers(engine: WorldEngine, drowning_system: DrowningSystem):
    for player in create_sleepers(2, "room_lake"):
        engine.world.add_player(player)
    shore_sleeper = PlayerBuilder().with_id("camper").in_room("room_shore").asleep().build()
    engine.world.add_player(shore_sleeper)

    await engine.start(run_time_loop=False)
    assert drowning_system.tracked_players() == {"sleeper_0", "sleeper_1"}

    await engine.time_manager.advance(40)

    assert engine.world.players["sleeper_0"].current_health == 90.0
    assert engine.world.players["sleeper_1"].current_health == 90.0
    assert shore_sleeper.current_health == 100.0

    await engine.stop()
    assert engine.time_manager.pending_count == 0


@pytest.mark.integration
async def test_sleeper_drowns_to_death(engine: WorldEngine, drowning_system: DrowningSystem):
    player = PlayerBuilder().with_id("weak").with_health(5.0).asleep().build()
    engine.world.add_player(player)

    await engine.start(run_time_loop=False)
    await engine.time_manager.advance(60)

    assert not player.is_alive()
    assert drowning_system.tracked_players() == set()
    assert engine.time_manager.pending_count == 0


@pytest.mark.integration
async def test_shutdown_stops_drowning(engine: WorldEngine, drowning_system: DrowningSystem):
    player = PlayerBuilder().with_id("diver").asleep().build()
    engine.world.add_player(player)

    await engine.start(run_time_loop=False)
    await engine.time_manager.advance(32)
    assert player.current_health == 98.0

    await engine.stop()
    await engine.time_manager.advance(30)

    assert player.current_health == 98.0
    assert drowning_system not in engine.plugins


@pytest.mark.integration
async def test_shutdown_during_disconnect_tick(engine: WorldEngine, drowning_system: DrowningSystem):
    player = PlayerBuilder().with_id("diver").awake().build()
    engine.world.add_player(player)
    await engine.start(run_time_loop=False)

    engine.player_disconnect(player.id)
    await engine.stop()

    await engine.time_manager.advance(0)
    await engine.time_manager.advance(60)

    assert drowning_system.tracked_players() == set()
    assert engine.time_manager.pending_count == 0
    assert player.current_health == 100.0


@pytest.mark.integration
async def test_config_driven_kill_policy(engine: WorldEngine, tmp_path):
    path = tmp_path / "nowatersleep.yaml"
    save_config(DrowningConfig(policy=PolicyKind.KILL_IMMEDIATELY), path)

    system = DrowningSystem.from_config(engine.ctx, load_config(path))
    engine.register_plugin(system)

    sleeper = PlayerBuilder().with_id("sleeper").asleep().build()
    awake = PlayerBuilder().with_id("swimmer").awake().build()
    engine.world.add_player(sleeper)
    engine.world.add_player(awake)

    await engine.start(run_time_loop=False)
    assert not sleeper.is_alive()
    assert awake.is_alive()

    engine.player_disconnect(awake.id)
    await engine.time_manager.advance(0)
    assert not awake.is_alive()

    await engine.stop()


@pytest.mark.integration
async def test_config_driven_timings(engine: WorldEngine, tmp_path):
    path = tmp_path / "nowatersleep.yaml"
    save_config(
        DrowningConfig(delay_before_damage=5.0, damage_amount_per_tick=10.0, damage_interval_seconds=2.0),
        path,
    )

    system = DrowningSystem.from_config(engine.ctx, load_config(path))
    engine.register_plugin(system)
    player = PlayerBuilder().with_id("diver").asleep().build()
    engine.world.add_player(player)

    await engine.start(run_time_loop=False)
    await engine.time_manager.advance(11)

    # Pending until t=5, then hits at t=7, 9 and 11
    assert player.current_health == 70.0

    await engine.stop()


@pytest.mark.integration
async def test_realtime_loop_starts_and_stops(engine: WorldEngine, drowning_system: DrowningSystem):
    await engine.start()
    assert engine.time_manager.is_running
    assert engine.initialized

    await engine.stop()
    assert not engine.time_manager.is_running
    assert not engine.initialized
