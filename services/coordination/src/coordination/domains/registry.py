"""Lifecycle module registry.

Central registry for all entity lifecycle modules. The status engine,
the sweeper and the entity store use this to resolve a module from an
entity kind.
"""

from typing import TYPE_CHECKING

from services.coordination.src.coordination.core.errors import UnknownEntityKind
from services.coordination.src.coordination.schemas.enums import EntityKind

if TYPE_CHECKING:
    from services.coordination.src.coordination.domains.base import LifecycleModule


class LifecycleRegistry:
    """Registry of all available lifecycle modules.

    Usage:
        module = LifecycleRegistry.get("referral")
        module = LifecycleRegistry.get(EntityKind.CONSULTATION)
    """

    _modules: dict[EntityKind, "LifecycleModule"] = {}

    @classmethod
    def register(cls, module: "LifecycleModule") -> None:
        """Register a lifecycle module."""
        cls._modules[module.kind] = module

    @classmethod
    def get(cls, kind: EntityKind | str) -> "LifecycleModule":
        """Get a lifecycle module by entity kind.

        Raises:
            UnknownEntityKind: If no module is registered for the kind
        """
        try:
            key = EntityKind(kind)
        except ValueError:
            raise UnknownEntityKind(f"Entity kind '{kind}' is not known") from None

        if key not in cls._modules:
            raise UnknownEntityKind(f"Entity kind '{key.value}' not found in registry")

        return cls._modules[key]

    @classmethod
    def get_all(cls) -> list["LifecycleModule"]:
        return list(cls._modules.values())

    @classmethod
    def list_kinds(cls) -> list[str]:
        return [k.value for k in cls._modules]

    @classmethod
    def is_registered(cls, kind: EntityKind | str) -> bool:
        try:
            return EntityKind(kind) in cls._modules
        except ValueError:
            return False

    @classmethod
    def clear(cls) -> None:
        """Clear all registered modules. Mainly for testing."""
        cls._modules.clear()
