"""
DrowningSystem: Drowns players who fall asleep underwater.

Handles:
- Exempting players holding the ignore permission
- Startup sweep of players already asleep underwater
- Per-player drowning sequence: pending delay, then damage every interval
- Cancelling the sequence on reconnect, surfacing, death or disappearance
- Optional periodic re-scan of sleepers

Per player the sequence moves None -> Pending -> Active -> None. A player has
at most one pending timer and at most one damage timer, never both at once.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Union

from nowatersleep import PLUGIN_NAME
from nowatersleep.config import DrowningConfig, PolicyKind
from nowatersleep.engine.world import DamageType

if TYPE_CHECKING:
    from nowatersleep.engine.systems.context import GameContext
    from nowatersleep.engine.systems.time_manager import TimerHandle
    from nowatersleep.engine.world import PlayerId, WorldPlayer

logger = logging.getLogger(__name__)

IGNORE_PERMISSION = f"{PLUGIN_NAME}.ignore"
PERMISSIONS = [IGNORE_PERMISSION]


@dataclass(frozen=True)
class KillImmediately:
    """
    Underwater sleepers are killed on the spot.

    Applies to the startup sweep and also to players who disconnect underwater
    once the server is up (one tick after the disconnect).
    """


@dataclass(frozen=True)
class DelayThenDamage:
    """Underwater sleepers take damage every interval once a delay has passed."""
    delay: float = 30.0
    amount: float = 1.0
    interval: float = 1.0


DrowningPolicy = Union[KillImmediately, DelayThenDamage]


def policy_from_config(config: DrowningConfig) -> DrowningPolicy:
    if config.policy == PolicyKind.KILL_IMMEDIATELY:
        return KillImmediately()
    return DelayThenDamage(
        delay=config.delay_before_damage,
        amount=config.damage_amount_per_tick,
        interval=config.damage_interval_seconds,
    )


class DrowningSystem:
    """
    Tracks and drives the drowning sequence of every sleeping player.

    Uses GameContext for:
    - world: player resolution and the sleeper list
    - time_manager: pending and damage timers
    - permission_system: ignore permission
    - water_system: underwater checks
    """

    name = PLUGIN_NAME

    def __init__(
        self,
        ctx: "GameContext",
        policy: Optional[DrowningPolicy] = None,
        sweep_interval: float = 0.0,
    ):
        self.ctx = ctx
        self.policy = policy or DelayThenDamage()
        self.sweep_interval = sweep_interval

        self._pending_start_timers: dict["PlayerId", "TimerHandle"] = {}
        self._damage_timers: dict["PlayerId", "TimerHandle"] = {}
        self._deferred_checks: dict["PlayerId", "TimerHandle"] = {}
        self._sweep_timer: Optional["TimerHandle"] = None

    @classmethod
    def from_config(cls, ctx: "GameContext", config: DrowningConfig) -> "DrowningSystem":
        return cls(ctx, policy_from_config(config), sweep_interval=config.sweep_interval_seconds)

    # =========================================================================
    # Host hooks
    # =========================================================================

    def init(self) -> None:
        for permission in PERMISSIONS:
            self.ctx.permission_system.register_permission(permission, PLUGIN_NAME)

    def unload(self) -> None:
        """Destroy every live timer, including disconnect checks still waiting for their tick."""
        for timers in (self._deferred_checks, self._pending_start_timers, self._damage_timers):
            for handle in timers.values():
                handle.destroy()
            timers.clear()

        if self._sweep_timer is not None:
            self._sweep_timer.destroy()
            self._sweep_timer = None

    def on_server_initialized(
        self, sleepers: Optional[Iterable[Optional["WorldPlayer"]]] = None
    ) -> int:
        """
        Sweep players that were already asleep when the server came up.

        Args:
            sleepers: Snapshot of sleeping players (defaults to the world's)

        Returns:
            Number of sleepers the policy was applied to
        """
        if sleepers is None:
            sleepers = self.ctx.world.sleeping_players()

        affected = self._apply_policy_to_sleepers(sleepers)

        if affected > 0:
            if isinstance(self.policy, KillImmediately):
                logger.info("Killed %d players sleeping underwater.", affected)
            else:
                logger.info("Scheduled %d underwater sleepers to begin drowning soon.", affected)

        if self.sweep_interval > 0 and self._sweep_timer is None:
            self._sweep_timer = self.ctx.time_manager.repeat(
                self.sweep_interval, 0, self._sweep_sleepers
            )

        return affected

    def on_player_disconnected(self, player: "WorldPlayer", reason: str = "") -> None:
        # Wait a tick so the host has finished putting the player to sleep
        previous = self._deferred_checks.pop(player.id, None)
        if previous is not None:
            previous.destroy()
        self._deferred_checks[player.id] = self.ctx.time_manager.next_tick(
            self._make_disconnect_callback(player)
        )

    def on_player_connected(self, player: "WorldPlayer") -> None:
        self.stop_drowning(player.id)

    # =========================================================================
    # Drowning sequence
    # =========================================================================

    def schedule_pending_drown(self, player_id: "PlayerId") -> bool:
        """
        Start the delay before a player begins drowning.

        Returns:
            True if a pending timer was scheduled, False if the player already
            has a pending or active sequence
        """
        timings = self._require_timed_policy()
        if player_id in self._pending_start_timers or player_id in self._damage_timers:
            return False

        self._pending_start_timers[player_id] = self.ctx.time_manager.once(
            timings.delay, self._make_pending_callback(player_id)
        )
        logger.info("%s will begin drowning in %ss if still underwater...", player_id, timings.delay)
        return True

    def begin_active_damage(self, player_id: "PlayerId") -> bool:
        """
        Switch a player from pending to taking damage every interval.

        Returns:
            True if a damage timer was scheduled, False if one already exists
        """
        timings = self._require_timed_policy()

        pending = self._pending_start_timers.pop(player_id, None)
        if pending is not None:
            pending.destroy()

        if player_id in self._damage_timers:
            return False

        self._damage_timers[player_id] = self.ctx.time_manager.repeat(
            timings.interval, 0, self._make_damage_tick_callback(player_id)
        )
        logger.info("Drowning %s for sleeping underwater.", player_id)
        return True

    def stop_drowning(self, player_id: "PlayerId") -> None:
        """Cancel any pending or active sequence for a player. Safe to call anytime."""
        pending = self._pending_start_timers.pop(player_id, None)
        if pending is not None:
            pending.destroy()

        damage = self._damage_timers.pop(player_id, None)
        if damage is not None:
            damage.destroy()

        if pending is not None or damage is not None:
            logger.debug("Stopped drowning %s", player_id)

    def is_pending(self, player_id: "PlayerId") -> bool:
        return player_id in self._pending_start_timers

    def is_drowning(self, player_id: "PlayerId") -> bool:
        return player_id in self._damage_timers

    def tracked_players(self) -> set["PlayerId"]:
        return set(self._pending_start_timers) | set(self._damage_timers)

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _require_timed_policy(self) -> DelayThenDamage:
        if not isinstance(self.policy, DelayThenDamage):
            raise RuntimeError(f"{type(self.policy).__name__} policy does not schedule drowning")
        return self.policy

    def _is_exempt(self, player: "WorldPlayer") -> bool:
        return self.ctx.permission_system.user_has_permission(player.id, IGNORE_PERMISSION)

    def _is_underwater(self, player: "WorldPlayer") -> bool:
        return self.ctx.water_system.is_underwater(player)

    def _resolve_drowning_player(self, player_id: "PlayerId") -> Optional["WorldPlayer"]:
        """The player, if they are still around, alive and underwater."""
        player = self.ctx.world.find_player(player_id)
        if player is None or not player.is_alive():
            return None
        if not self._is_underwater(player):
            return None
        return player

    def _apply_policy(self, player: "WorldPlayer") -> bool:
        if isinstance(self.policy, KillImmediately):
            player.die(DamageType.DROWNED)
            logger.info("Killed %s for sleeping underwater.", player.id)
            return True
        return self.schedule_pending_drown(player.id)

    def _apply_policy_to_sleepers(self, sleepers: Iterable[Optional["WorldPlayer"]]) -> int:
        affected = 0
        for sleeper in sleepers:
            if sleeper is None or not sleeper.is_alive():
                continue
            if self._is_exempt(sleeper):
                continue
            if self._is_underwater(sleeper) and self._apply_policy(sleeper):
                affected += 1
        return affected

    async def _sweep_sleepers(self) -> None:
        sleepers = [
            p for p in self.ctx.world.sleeping_players()
            if p.id not in self._pending_start_timers and p.id not in self._damage_timers
        ]
        affected = self._apply_policy_to_sleepers(sleepers)
        if affected > 0:
            logger.info("Periodic check picked up %d underwater sleepers.", affected)

    def _make_disconnect_callback(self, player: "WorldPlayer") -> Callable:
        async def disconnect_callback():
            self._deferred_checks.pop(player.id, None)
            current = self.ctx.world.find_player(player.id)
            if current is None or current.is_connected or not current.is_alive():
                return
            if self._is_exempt(current):
                return
            if not self._is_underwater(current):
                return
            self._apply_policy(current)

        return disconnect_callback

    def _make_pending_callback(self, player_id: "PlayerId") -> Callable:
        async def pending_callback():
            if self._resolve_drowning_player(player_id) is None:
                self.stop_drowning(player_id)
                return
            self.begin_active_damage(player_id)

        return pending_callback

    def _make_damage_tick_callback(self, player_id: "PlayerId") -> Callable:
        async def damage_tick_callback():
            sleeper = self._resolve_drowning_player(player_id)
            if sleeper is None:
                self.stop_drowning(player_id)
                return
            sleeper.hurt(self.policy.amount, DamageType.DROWNED, use_protection=False)

        return damage_tick_callback
