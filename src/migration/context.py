"""Run-scoped migration context.

The context holds useful information about the current migration for
components that need configuration without global state.

Recognized option keys:
    batch_size  -- records per executor step (see ``BatchExecutor.from_context``)

Connectors document their own keys.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

from migration.model import Migration


class MigrationContext:
    """Immutable snapshot of a migration, its registered name and its options."""

    __slots__ = ("_migration", "_migration_name", "_options")

    def __init__(
        self,
        migration: Migration,
        migration_name: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        object.__setattr__(self, "_migration", migration)
        object.__setattr__(self, "_migration_name", migration_name)
        object.__setattr__(self, "_options", MappingProxyType(dict(options or {})))

    def __setattr__(self, key, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, key):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def migration(self) -> Migration:
        """The current migration object."""
        return self._migration

    @property
    def migration_name(self) -> str:
        """The migration name as registered."""
        return self._migration_name

    @property
    def options(self) -> Mapping[str, Any]:
        """Read-only options for the migration as defined in the configuration."""
        return self._options

    def get_option(self, key: str, default: Any = None) -> Any:
        return self._options.get(key, default)

    def with_options(self, **overrides: Any) -> "MigrationContext":
        """Return a new context with ``overrides`` merged over the current options."""
        options = dict(self._options)
        options.update(overrides)
        return MigrationContext(self._migration, self._migration_name, options)

    def __repr__(self) -> str:
        return (
            f"MigrationContext(migration_name={self._migration_name!r}, "
            f"options={dict(self._options)!r})"
        )
