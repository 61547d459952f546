"""EntityIndex: the integer ids of every ontology entity.

The index is the single source of truth for entity ids. Other extractors
refer to entities only through it, and distinguish between:

- ``assign``: create-or-get, used while extracting the signature
- ``lookup``: get-only, returns None for unknown entities
- ``require``: get-only, raises ClosureError for unknown entities

Ids come from an AUTOINCREMENT column and are never reused while the
``entities`` table lives. Lookups are cached in memory in both directions.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from ontosql.errors import ClosureError, StoreError
from ontosql.extractors.base import OntologyExtractor
from ontosql.ontology.model import OWL_THING, Entity, EntityKind, Ontology

__all__ = ["EntityIndex", "EntityRef", "MAX_TAG_LENGTH"]

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 256

EntityRef = Union[Entity, int]

ENTITIES_SQL = """
CREATE TABLE entities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    iri TEXT NOT NULL,
    UNIQUE (kind, iri)
);
CREATE INDEX idx_entities_kind ON entities(kind);
CREATE INDEX idx_entities_iri ON entities(iri);
"""

ENTITY_ONTOLOGY_SQL = """
CREATE TABLE entity_ontology (
    entity_id INTEGER NOT NULL,
    ontology_id INTEGER NOT NULL,
    UNIQUE (entity_id, ontology_id)
);
CREATE INDEX idx_entity_ontology_ontology ON entity_ontology(ontology_id);
"""

EXTRAS_SQL = """
CREATE TABLE extras (
    tag TEXT PRIMARY KEY,
    value TEXT
);
"""


class EntityIndex(OntologyExtractor):
    """Bidirectional mapping between entities and their integer ids.

    Example:
        index = registry.get(EntityIndex)
        index.extract(ontologies)

        thing_id = index.require(OWL_THING)
        index.resolve(thing_id)       # -> Entity(Class, owl:Thing)
        index.lookup(Entity.owl_class("http://unknown"))   # -> None
    """

    kind = "entities"
    user_selectable = False

    def prepare(self) -> None:
        self._ids: dict[Entity, int] = {}
        self._entities: dict[int, Entity] = {}

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        self.store.recreate("entities", ENTITIES_SQL)
        self.store.recreate("entity_ontology", ENTITY_ONTOLOGY_SQL)
        self.store.recreate("extras", EXTRAS_SQL)
        self._ids.clear()
        self._entities.clear()

        signatures = [
            (self._ontology_id(ontology), ontology, sorted(ontology.signature()) + [OWL_THING])
            for ontology in ontologies
        ]
        # One batch per ontology, in signature order, so ids follow kind then IRI
        for _, _, signature in signatures:
            self.store.executemany(
                "INSERT OR IGNORE INTO entities (kind, iri) VALUES (?, ?)",
                [(entity.kind.value, entity.iri) for entity in signature],
            )
        self.entities()

        for ontology_id, ontology, signature in signatures:
            self.store.executemany(
                "INSERT OR IGNORE INTO entity_ontology (entity_id, ontology_id) VALUES (?, ?)",
                [(self._ids[entity], ontology_id) for entity in signature],
            )
            logger.info(f"Indexed {len(signature)} entities of {ontology.iri}")

        logger.info(f"{len(self._ids)} distinct entities")

    def _ontology_id(self, ontology: Ontology) -> int:
        ontology_id = self.store.scalar(
            "SELECT id FROM ontologies WHERE ontology_iri = ? AND version_iri = ?",
            (ontology.iri, ontology.version_iri or ""),
        )
        if ontology_id is None:
            raise StoreError(f"Unable to find ontology {ontology.iri} in the store")
        return ontology_id

    # ==================== Ids ====================

    def assign(self, entity: Entity) -> int:
        """Return the id of ``entity``, creating it if needed."""
        existing = self.lookup(entity)
        if existing is not None:
            return existing

        new_id = self.store.insert(
            "INSERT INTO entities (kind, iri) VALUES (?, ?)", (entity.kind.value, entity.iri)
        )
        self._ids[entity] = new_id
        self._entities[new_id] = entity
        return new_id

    def lookup(self, entity: Entity) -> Optional[int]:
        """Return the id of ``entity``, or None if it was never assigned."""
        if entity in self._ids:
            return self._ids[entity]

        entity_id = self.store.scalar(
            "SELECT id FROM entities WHERE kind = ? AND iri = ?", (entity.kind.value, entity.iri)
        )
        if entity_id is not None:
            self._ids[entity] = entity_id
            self._entities[entity_id] = entity
        return entity_id

    def require(self, entity: EntityRef) -> int:
        """Return the id of ``entity`` (or the id itself).

        Raises:
            ClosureError: If the entity was never registered
        """
        if isinstance(entity, int):
            return entity
        entity_id = self.lookup(entity)
        if entity_id is None:
            raise ClosureError(f"Unregistered entity {entity}")
        return entity_id

    def resolve(self, entity_id: int) -> Optional[Entity]:
        """Return the entity with id ``entity_id``, or None."""
        if entity_id in self._entities:
            return self._entities[entity_id]

        row = self.store.query_one("SELECT kind, iri FROM entities WHERE id = ?", (entity_id,))
        if row is None:
            return None

        entity = Entity(EntityKind(row["kind"]), row["iri"])
        self._entities[entity_id] = entity
        self._ids[entity] = entity_id
        return entity

    def resolve_all(self, entity_ids) -> set[Entity]:
        """Resolve several ids, skipping unknown ones."""
        result = set()
        for entity_id in entity_ids:
            entity = self.resolve(entity_id)
            if entity is not None:
                result.add(entity)
        return result

    # ==================== Listing ====================

    def entities(self, kind: Optional[EntityKind] = None) -> list[Entity]:
        """All registered entities (of one kind if given), ordered by id."""
        if kind is None:
            rows = self.store.query("SELECT id, kind, iri FROM entities ORDER BY id")
        else:
            rows = self.store.query(
                "SELECT id, kind, iri FROM entities WHERE kind = ? ORDER BY id", (kind.value,)
            )
        result = []
        for row in rows:
            entity = Entity(EntityKind(row["kind"]), row["iri"])
            self._ids.setdefault(entity, row["id"])
            self._entities.setdefault(row["id"], entity)
            result.append(entity)
        return result

    def ids(self, kind: Optional[EntityKind] = None) -> list[int]:
        """Ids of all registered entities (of one kind if given), ascending."""
        if kind is None:
            rows = self.store.query("SELECT id FROM entities ORDER BY id")
        else:
            rows = self.store.query(
                "SELECT id FROM entities WHERE kind = ? ORDER BY id", (kind.value,)
            )
        return [row["id"] for row in rows]

    def count(self, kind: Optional[EntityKind] = None) -> int:
        if kind is None:
            return self.store.scalar("SELECT COUNT(*) FROM entities", default=0)
        return self.store.scalar(
            "SELECT COUNT(*) FROM entities WHERE kind = ?", (kind.value,), default=0
        )

    def defining_ontologies(self, entity: Entity) -> list[tuple[str, Optional[str]]]:
        """``(ontology_iri, version_iri)`` of every ontology whose signature has ``entity``."""
        entity_id = self.lookup(entity)
        if entity_id is None:
            return []
        rows = self.store.query(
            """
            SELECT ontologies.ontology_iri, ontologies.version_iri
            FROM entity_ontology
            JOIN ontologies ON ontologies.id = entity_ontology.ontology_id
            WHERE entity_ontology.entity_id = ?
            ORDER BY ontologies.id
            """,
            (entity_id,),
        )
        return [(row["ontology_iri"], row["version_iri"] or None) for row in rows]

    # ==================== Extras ====================

    def get_extra(self, tag: str) -> Optional[str]:
        """Return the value stored under ``tag``, or None."""
        _check_tag(tag)
        return self.store.scalar("SELECT value FROM extras WHERE tag = ?", (tag,))

    def set_extra(self, tag: str, value: str) -> None:
        """Store ``value`` under ``tag``, replacing any previous value."""
        _check_tag(tag)
        self.store.execute("INSERT OR REPLACE INTO extras (tag, value) VALUES (?, ?)", (tag, value))


def _check_tag(tag: str) -> None:
    if len(tag) > MAX_TAG_LENGTH:
        raise ValueError(f"Supplied tag is longer than {MAX_TAG_LENGTH} characters")
