"""Name-keyed registry of migrations.

The registry is built once at startup and passed explicitly to whatever
needs it (orchestrator, CLI). There is no module-level instance.

Example usage:
    registry = MigrationRegistry([
        ("users_sync", users_migration),
        ("orders_sync", orders_migration),
    ])

    migration = registry.get("users_sync")   # None when not registered
"""

import importlib
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple, Union

from migration.exceptions import ConfigurationError, LookupFailure
from migration.logging_config import create_logger
from migration.model import Migration

logger = create_logger(__name__)

RegistryEntries = Union[Mapping[str, Migration], Iterable[Tuple[str, Migration]]]


class MigrationRegistry:
    """Immutable mapping of migration names to migrations.

    Iteration and ``get_all`` follow registration order.
    """

    __slots__ = ("_migrations",)

    def __init__(self, entries: RegistryEntries = ()) -> None:
        if isinstance(entries, Mapping):
            entries = entries.items()

        migrations = {}
        for name, migration in entries:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"Invalid migration name: {name!r}")
            if not isinstance(migration, Migration):
                raise ConfigurationError(
                    f'Migration "{name}" must be a Migration instance, '
                    f"got {type(migration).__name__}"
                )
            if name in migrations:
                raise ConfigurationError(
                    f'A migration is already registered with the name "{name}".'
                )
            migrations[name] = migration

        self._migrations = MappingProxyType(migrations)

    def get(self, name: str) -> Optional[Migration]:
        """Return the migration registered as ``name``, or None."""
        return self._migrations.get(name)

    def get_all(self) -> Mapping[str, Migration]:
        """Return a read-only view of every migration, in registration order."""
        return self._migrations

    def require(self, name: str) -> Migration:
        """Return the migration registered as ``name``.

        :raises LookupFailure: If no migration has that name
        """
        migration = self.get(name)
        if migration is None:
            raise LookupFailure(name)
        return migration

    def names(self) -> Tuple[str, ...]:
        return tuple(self._migrations)

    def __contains__(self, name: object) -> bool:
        return name in self._migrations

    def __iter__(self) -> Iterator[str]:
        return iter(self._migrations)

    def __len__(self) -> int:
        return len(self._migrations)

    def __repr__(self) -> str:
        return f"MigrationRegistry({list(self._migrations)!r})"


def load_registry(path: str) -> MigrationRegistry:
    """
    Build a registry from a ``package.module:factory`` path.

    The factory is called without arguments and may return a
    ``MigrationRegistry``, a mapping of names to migrations, or an iterable
    of ``(name, migration)`` pairs. A module-level registry object may be
    named instead of a factory.

    :param path: Import path of the factory
    :return: The loaded registry
    :raises ConfigurationError: If the path cannot be resolved or returns garbage
    """
    if not path or ":" not in path:
        raise ConfigurationError(
            f"Registry path must look like 'package.module:factory', got {path!r}"
        )

    module_name, _, attribute_path = path.partition(":")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Unable to import registry module {module_name}: {e}") from e

    try:
        for attribute in attribute_path.split("."):
            target = getattr(target, attribute)
    except AttributeError as e:
        raise ConfigurationError(f"Registry factory {path} not found: {e}") from e

    result = target() if callable(target) and not isinstance(target, MigrationRegistry) else target

    if isinstance(result, MigrationRegistry):
        registry = result
    else:
        try:
            registry = MigrationRegistry(result)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Registry factory {path} returned {type(result).__name__}, "
                f"expected a MigrationRegistry or (name, migration) pairs"
            ) from e

    logger.debug(f"Loaded {len(registry)} migrations from {path}")
    return registry
