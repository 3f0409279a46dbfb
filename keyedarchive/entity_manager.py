"""Creation, lookup and removal of entities by id."""

from __future__ import annotations

from typing import Iterator, Optional

from keyedarchive.entity import Entity, Signal


class EntityManager:
    """Owns entities keyed by integer id."""

    def __init__(self) -> None:
        self._entities: dict[int, Entity] = {}
        self._highest_id = 0
        self.entity_added = Signal()
        self.entity_removed = Signal()

    def add_entity(self, entity_id: int) -> Entity:
        """Return the entity with this id, creating it if absent."""
        existing = self._entities.get(entity_id)
        if existing is not None:
            return existing
        entity = Entity(entity_id, self)
        self._entities[entity_id] = entity
        if entity_id > self._highest_id:
            self._highest_id = entity_id
        self.entity_added(entity_id, entity)
        return entity

    def get_entity(self, entity_id: int) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def remove_entity(self, entity_id: int) -> None:
        entity = self._entities.pop(entity_id, None)
        if entity is None:
            return
        entity.clear()
        self.entity_removed(entity_id)

    def clear(self) -> None:
        """Remove every entity and reset the id counter."""
        for entity_id, entity in list(self._entities.items()):
            self.entity_removed(entity_id)
            entity.clear()
        self._entities.clear()
        self._highest_id = 0

    def next_entity_id(self) -> int:
        """An id guaranteed not to collide with any entity added so far."""
        return self._highest_id + 1

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities