"""Session registry — live connections partitioned by role.

Learn: Every connection declares a role when it connects (?role=chef or
?role=waiter). The registry keeps one set per role, and broadcasts
target whole partitions. A connection with a missing or unknown role is
accepted but lands in no partition: it still gets its initial snapshot,
it just never receives broadcasts. That is deliberate, not an error.

register/deregister are synchronous and guarded by a plain lock, so they
are safe from any task (or thread). Iteration works on a copy taken
under the lock, which means a connection that joins or leaves mid-
broadcast can never break the loop.
"""

import enum
import threading
from typing import Any, Callable, Iterable, Optional


class Role(str, enum.Enum):
    WAITER = "waiter"
    CHEF = "chef"


def parse_role(value: Optional[str]) -> Optional[Role]:
    """Map a raw role label to a Role, or None if unrecognized."""
    try:
        return Role(value)
    except ValueError:
        return None


class SessionRegistry:
    """Role-keyed sets of live connections."""

    def __init__(self):
        self._lock = threading.Lock()
        self._partitions: dict[Role, set[Any]] = {role: set() for role in Role}

    def register(self, connection: Any, role: Optional[str]) -> bool:
        """Add a connection to its role partition.

        Returns False (and stores nothing) for an unrecognized role.
        Registering the same connection twice is a no-op.
        """
        parsed = parse_role(role)
        if parsed is None:
            return False
        with self._lock:
            self._partitions[parsed].add(connection)
        return True

    def deregister(self, connection: Any, role: Optional[str]) -> None:
        """Remove a connection. Idempotent: absent connections are ignored."""
        parsed = parse_role(role)
        if parsed is None:
            return
        with self._lock:
            self._partitions[parsed].discard(connection)

    def members(self, roles: Role | str | Iterable[Role | str]) -> list[Any]:
        """Snapshot of the connections in one or more partitions."""
        if isinstance(roles, str):
            roles = [roles]
        parsed = {r for r in (parse_role(role) for role in roles) if r is not None}
        with self._lock:
            seen: list[Any] = []
            for role in Role:
                if role in parsed:
                    seen.extend(self._partitions[role])
        return seen

    def for_each(self, role: Role | str, fn: Callable[[Any], Any]) -> None:
        for connection in self.members(role):
            fn(connection)

    def contains(self, connection: Any) -> bool:
        with self._lock:
            return any(connection in members for members in self._partitions.values())

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {role.value: len(members) for role, members in self._partitions.items()}
