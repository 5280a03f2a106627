"""
PermissionSystem - Named permissions registered by plugins and granted to users.

Permissions are plain strings namespaced by their owner ("nowatersleep.ignore").
Users get a permission either directly or through a group they belong to.
Nothing is persisted; grants live as long as the engine does.
"""

import logging
from collections import defaultdict

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"


class PermissionSystem:
    """
    In-memory permission registry.

    Usage:
        permissions = PermissionSystem()
        permissions.register_permission("nowatersleep.ignore", "nowatersleep")
        permissions.grant_user_permission("player_1", "nowatersleep.ignore")
        permissions.user_has_permission("player_1", "nowatersleep.ignore")  # True
    """

    def __init__(self) -> None:
        self._registered: dict[str, str] = {}  # permission -> owner
        self._user_permissions: dict[str, set[str]] = defaultdict(set)
        self._group_permissions: dict[str, set[str]] = defaultdict(set)
        self._user_groups: dict[str, set[str]] = defaultdict(set)

    def register_permission(self, name: str, owner: str) -> None:
        """
        Register a permission on behalf of a plugin.

        Args:
            name: Permission name; must start with "<owner>."
            owner: Name of the registering plugin

        Raises:
            ValueError: If the name is not namespaced by the owner, or another
                owner already registered it
        """
        name = name.lower()
        owner = owner.lower()
        if not name.startswith(f"{owner}."):
            raise ValueError(f"Permission '{name}' must be prefixed with '{owner}.'")

        existing = self._registered.get(name)
        if existing == owner:
            return
        if existing is not None:
            raise ValueError(f"Permission '{name}' is already registered by '{existing}'")

        self._registered[name] = owner
        logger.debug("Registered permission %s (owner: %s)", name, owner)

    def permission_exists(self, name: str) -> bool:
        return name.lower() in self._registered

    def grant_user_permission(self, user_id: str, name: str) -> bool:
        """Grant a registered permission to a user. Returns False if unregistered."""
        name = name.lower()
        if not self.permission_exists(name):
            logger.warning("Cannot grant unknown permission %s to %s", name, user_id)
            return False
        self._user_permissions[user_id].add(name)
        return True

    def revoke_user_permission(self, user_id: str, name: str) -> bool:
        """Revoke a direct grant. Returns True if the user had it."""
        grants = self._user_permissions.get(user_id)
        if not grants or name.lower() not in grants:
            return False
        grants.discard(name.lower())
        return True

    def grant_group_permission(self, group: str, name: str) -> bool:
        """Grant a registered permission to every member of a group."""
        name = name.lower()
        if not self.permission_exists(name):
            logger.warning("Cannot grant unknown permission %s to group %s", name, group)
            return False
        self._group_permissions[group].add(name)
        return True

    def add_user_to_group(self, user_id: str, group: str) -> None:
        self._user_groups[user_id].add(group)

    def remove_user_from_group(self, user_id: str, group: str) -> None:
        self._user_groups.get(user_id, set()).discard(group)

    def user_has_permission(self, user_id: str, name: str) -> bool:
        """
        Check whether a user holds a permission, directly or via a group.

        Every user is implicitly a member of the default group. Unregistered
        permissions are never held.
        """
        name = name.lower()
        if not self.permission_exists(name):
            return False

        if name in self._user_permissions.get(user_id, ()):
            return True

        groups = self._user_groups.get(user_id, set()) | {DEFAULT_GROUP}
        return any(name in self._group_permissions.get(group, ()) for group in groups)
