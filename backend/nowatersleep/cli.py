"""
No Water Sleep CLI - manage the plugin config and try it out offline.

Usage:
    nowatersleep init        Write a default config file
    nowatersleep show        Load (and migrate) the config, then print it
    nowatersleep simulate    Drown a sleeper in a one-room world and report
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
import yaml

from nowatersleep import __version__
from nowatersleep.config import (
    CONFIG_PATH,
    ConfigError,
    get_default_config,
    load_config,
    save_config,
)


@click.group()
@click.version_option(version=__version__, prog_name="nowatersleep")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool):
    """No Water Sleep - drowns players who fall asleep underwater."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@main.command()
@click.option("--path", "-p", type=click.Path(path_type=Path), default=CONFIG_PATH, help="Config file")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config")
def init(path: Path, force: bool):
    """Write a config file with default values."""
    if path.exists() and not force:
        click.echo(f"⚠️ Error: {path} already exists.")
        click.echo("Use --force to overwrite it.")
        sys.exit(1)

    save_config(get_default_config(), path)
    click.echo(click.style(f"✅ Wrote default config to {path}", fg="green"))


@main.command()
@click.option("--path", "-p", type=click.Path(path_type=Path), default=CONFIG_PATH, help="Config file")
def show(path: Path):
    """Load the config (migrating it if needed) and print it."""
    try:
        config = load_config(path)
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"))
        sys.exit(1)

    click.echo(yaml.safe_dump(config.to_yaml_dict(), sort_keys=False, allow_unicode=True), nl=False)


@main.command()
@click.option("--path", "-p", type=click.Path(path_type=Path), default=None,
              help="Config file (defaults are used when omitted)")
@click.option("--depth", "-d", default=3.0, type=float, help="Water depth at the sleeper's feet")
@click.option("--seconds", "-s", default=60, type=int, help="Simulated seconds to run")
@click.option("--health", default=100.0, type=float, help="Sleeper's starting health")
def simulate(path: Path | None, depth: float, seconds: int, health: float):
    """Put one player to sleep underwater and watch what happens."""
    try:
        config = load_config(path, save=False) if path is not None else get_default_config()
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"))
        sys.exit(1)

    timeline = asyncio.run(_run_simulation(config, depth, seconds, health))
    for second, current_health, state in timeline:
        click.echo(f"t={second:>4}s  health={current_health:6.1f}  {state}")


async def _run_simulation(config, depth: float, seconds: int, health: float):
    from nowatersleep.engine import WorldEngine, World, WorldPlayer, WorldRoom
    from nowatersleep.engine.systems import DrowningSystem, ManualClock
    from nowatersleep.engine.world import get_room_emoji

    room = WorldRoom(id="lake", name="Lake Bottom", room_type="lake", water_level=depth)
    world = World(rooms={room.id: room}, players={})
    sleeper = WorldPlayer(
        id="sleeper", name="Sleeper", room_id=room.id,
        max_health=health, current_health=health, is_connected=True,
    )
    world.add_player(sleeper)

    clock = ManualClock()
    engine = WorldEngine(world, clock=clock)
    drowning = DrowningSystem.from_config(engine.ctx, config)
    engine.register_plugin(drowning)
    await engine.start(run_time_loop=False)

    click.echo(f"{get_room_emoji(room.room_type)} {room.name}: water depth {depth}")
    engine.player_disconnect(sleeper.id, "simulated")
    await engine.time_manager.advance(0)

    timeline = []
    for second in range(seconds + 1):
        if second > 0:
            await engine.time_manager.advance(1)
        if not sleeper.is_alive():
            state = "dead"
        elif drowning.is_drowning(sleeper.id):
            state = "drowning"
        elif drowning.is_pending(sleeper.id):
            state = "pending"
        else:
            state = "safe"
        timeline.append((second, sleeper.current_health, state))
        if state == "dead":
            break

    await engine.stop()
    return timeline


if __name__ == "__main__":
    main()
