# backend/nowatersleep/engine/engine.py
import logging
from typing import Any, Callable, List

from .world import World, PlayerId, WorldPlayer
from .systems import GameContext, TimeEventManager, PermissionSystem, WaterSystem

logger = logging.getLogger(__name__)


class WorldEngine:
    """
    Host runtime for plugins.

    - Holds a reference to the in-memory World.
    - Owns the shared systems (time events, permissions, water queries).
    - Tracks player connection state; disconnected players sleep in the world.
    - Fires lifecycle hooks on registered plugins.

    Hooks a plugin may implement (all optional):
    - init()
    - on_server_initialized(sleepers)
    - on_player_connected(player)
    - on_player_disconnected(player, reason)
    - unload()
    """

    def __init__(
        self,
        world: World,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.world = world

        # Initialize game context and systems
        self.ctx = GameContext(world)
        self.ctx.engine = self  # Set engine reference for systems to trigger hooks
        self.time_manager = TimeEventManager(self.ctx, clock=clock)
        self.ctx.time_manager = self.time_manager
        self.permission_system = PermissionSystem()
        self.ctx.permission_system = self.permission_system
        self.water_system = WaterSystem(world)
        self.ctx.water_system = self.water_system

        self.plugins: List[Any] = []
        self.initialized = False

    # ---------- Plugins ----------

    def register_plugin(self, plugin: Any) -> None:
        """Add a plugin and run its init hook."""
        self.plugins.append(plugin)
        self._run_hook(plugin, "init")
        logger.info("Loaded plugin %s", getattr(plugin, "name", type(plugin).__name__))

    def unregister_plugin(self, plugin: Any) -> None:
        if plugin not in self.plugins:
            return
        self._run_hook(plugin, "unload")
        self.plugins.remove(plugin)

    def _run_hook(self, plugin: Any, hook_name: str, *args, **kwargs) -> Any:
        """
        Call a hook on one plugin if it implements it.

        Errors are logged so one broken plugin cannot stop the others.
        """
        hook = getattr(plugin, hook_name, None)
        if hook is None:
            return None
        try:
            return hook(*args, **kwargs)
        except Exception:
            logger.exception("Error in %s.%s", type(plugin).__name__, hook_name)
            return None

    def _broadcast_hook(self, hook_name: str, *args, **kwargs) -> None:
        for plugin in list(self.plugins):
            self._run_hook(plugin, hook_name, *args, **kwargs)

    # ---------- Lifecycle ----------

    async def start(self, run_time_loop: bool = True) -> None:
        """
        Bring the server up.

        Args:
            run_time_loop: Start the background time loop. Pass False when
                driving time manually (e.g. with a ManualClock).
        """
        if run_time_loop:
            await self.time_manager.start()

        sleepers = self.world.sleeping_players()
        self._broadcast_hook("on_server_initialized", sleepers)
        self.initialized = True

        logger.info(
            "World engine started with %d rooms, %d players (%d sleeping)",
            len(self.world.rooms),
            len(self.world.players),
            len(sleepers),
        )

    async def stop(self) -> None:
        """Unload plugins and stop the time system."""
        for plugin in list(self.plugins):
            self.unregister_plugin(plugin)
        await self.time_manager.stop()
        self.initialized = False
        logger.info("World engine stopped")

    # ---------- Player connection management ----------

    def player_connect(self, player_id: PlayerId) -> WorldPlayer | None:
        """Wake a player out of stasis. Returns None for unknown players."""
        player = self.world.find_player(player_id)
        if player is None:
            logger.warning("Connect from unknown player %s", player_id)
            return None

        player.is_connected = True
        self._broadcast_hook("on_player_connected", player)
        return player

    def player_disconnect(self, player_id: PlayerId, reason: str = "disconnect") -> WorldPlayer | None:
        """Put a player into stasis. They stay in the world as a sleeper."""
        player = self.world.find_player(player_id)
        if player is None:
            logger.warning("Disconnect from unknown player %s", player_id)
            return None

        player.is_connected = False
        self._broadcast_hook("on_player_disconnected", player, reason)
        return player
