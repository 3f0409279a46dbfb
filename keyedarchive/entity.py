"""Entities made of typed components, with change signals."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, TypeVar

if TYPE_CHECKING:
    from keyedarchive.entity_manager import EntityManager


class Signal:
    """A list of callables invoked together."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., Any]] = []

    def connect(self, slot: Callable[..., Any]) -> Callable[..., Any]:
        self._slots.append(slot)
        return slot

    def disconnect(self, slot: Callable[..., Any]) -> None:
        """Remove a connected slot; ValueError if it is not connected."""
        self._slots.remove(slot)

    def __call__(self, *args: Any) -> None:
        for slot in list(self._slots):
            slot(*args)


class EntityComponent:
    """Base class for components attached to an Entity.

    A component type is identified by its class; an entity holds at most
    one component of each type.
    """

    def __init__(self, entity: Optional["Entity"]):
        self._entity = entity

    @property
    def entity(self) -> Optional["Entity"]:
        return self._entity

    @classmethod
    def create(cls, entity: "Entity", *args: Any) -> Optional["EntityComponent"]:
        """Build a component for ``entity``; subclasses may return None on failure."""
        return cls(entity, *args)

    def destroy(self) -> None:
        """Called when the component is removed from its entity."""
        self._entity = None


C = TypeVar("C", bound=EntityComponent)


class Entity:
    """A set of components, at most one per component type."""

    def __init__(self, entity_id: int, manager: Optional["EntityManager"] = None):
        self._id = entity_id
        self._manager = manager
        self._components: dict[type, EntityComponent] = {}
        self.component_added = Signal()
        self.component_about_to_be_removed = Signal()

    @property
    def id(self) -> int:
        return self._id

    @property
    def manager(self) -> Optional["EntityManager"]:
        return self._manager

    def add_component(self, component_type: type[C], *args: Any) -> C:
        """Return the attached component of this type, creating it if absent."""
        existing = self._components.get(component_type)
        if existing is not None:
            return existing  # type: ignore[return-value]
        component = component_type.create(self, *args)
        if component is None:
            raise ValueError(f"could not create component {component_type.__name__}")
        self._components[component_type] = component
        self.component_added(component_type, component)
        return component  # type: ignore[return-value]

    def remove_component(self, component_type: type) -> None:
        component = self._components.get(component_type)
        if component is None:
            return
        self.component_about_to_be_removed(component_type, component)
        component.destroy()
        del self._components[component_type]

    def get_component(self, component_type: type[C]) -> Optional[C]:
        return self._components.get(component_type)  # type: ignore[return-value]

    def clear(self) -> None:
        """Remove all components, the most recently added first."""
        while self._components:
            component_type = next(reversed(self._components))
            component = self._components[component_type]
            self.component_about_to_be_removed(component_type, component)
            component.destroy()
            del self._components[component_type]

    def __iter__(self) -> Iterator[EntityComponent]:
        return iter(list(self._components.values()))

    def __len__(self) -> int:
        return len(self._components)