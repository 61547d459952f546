"""ExtendedHierarchyExtractor: closures of property-based relations.

An extended hierarchy generalizes the class hierarchy to a user-chosen set
of object properties. Each configured instance owns the rows tagged with
its ``identifier`` in the shared ``extended_hierarchy`` table, so several
extensions coexist:

    {"kind": "extended_hierarchy",
     "identifier": "part_of",
     "properties": ["http://purl.obolibrary.org/obo/BFO_0000050"],
     "emulate": ["transitive", "reflexive"]}

Steps:

1. Direct rows from ``SubClassOf(A, ObjectSomeValuesFrom(P, B))`` with A
   and B named and P in the property set (distance 0 when A is B, else 1).
2. If the relation is transitive, widening as in the class hierarchy.
3. If it is reflexive, a distance-0 self row for every class, overwriting
   whatever distance the pair had.
4. Composition with the class hierarchy on both sides, keeping the least
   distance per pair. One statement runs per subclass-side hierarchy
   distance, from 0 to the deepest distance in ``hierarchy``; every
   distance is visited even when an earlier one changed no rows, so the
   number of statements is bounded by the hierarchy depth.

Reflexivity and transitivity come from ``emulate`` when given; otherwise a
characteristic holds when every configured property asserts it. With
``subproperties`` (the default) the property set is widened to every
asserted sub-property before the direct rows are read.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Sequence

from pydantic import StrictBool, StrictStr, field_validator

from ontosql.errors import ClosureError, index_part
from ontosql.extractors.base import ExtractorOptions, OntologyExtractor
from ontosql.extractors.entities import EntityIndex
from ontosql.extractors.hierarchy import ClosureQueries, HierarchyExtractor, require_table
from ontosql.ontology.model import (
    Entity,
    EntityKind,
    NamedClass,
    ObjectSomeValuesFrom,
    Ontology,
    SubClassOf,
)

__all__ = ["ExtendedHierarchyExtractor", "ExtendedHierarchyOptions", "MAX_IDENTIFIER_LENGTH"]

logger = logging.getLogger(__name__)

MAX_IDENTIFIER_LENGTH = 256

EMULATION_MODES = ("transitive", "not transitive", "reflexive", "not reflexive")

EXTENDED_HIERARCHY_SQL = """
CREATE TABLE IF NOT EXISTS extended_hierarchy (
    extension TEXT NOT NULL,
    subclass INTEGER NOT NULL,
    superclass INTEGER NOT NULL,
    distance INTEGER NOT NULL,
    UNIQUE (extension, subclass, superclass)
);
CREATE INDEX IF NOT EXISTS idx_extended_hierarchy_subclass ON extended_hierarchy(subclass);
CREATE INDEX IF NOT EXISTS idx_extended_hierarchy_superclass ON extended_hierarchy(superclass);
CREATE INDEX IF NOT EXISTS idx_extended_hierarchy_distance ON extended_hierarchy(distance);
"""

INSERT_EDGE_SQL = """
INSERT OR IGNORE INTO extended_hierarchy (extension, subclass, superclass, distance)
VALUES (?, ?, ?, ?)
"""

WIDEN_SQL = """
INSERT OR IGNORE INTO extended_hierarchy (extension, subclass, superclass, distance)
SELECT e1.extension, e1.subclass, e2.superclass, e1.distance + 1
FROM extended_hierarchy AS e1
JOIN extended_hierarchy AS e2 ON e1.superclass = e2.subclass
WHERE e1.extension = ? AND e2.extension = e1.extension
      AND e1.distance = ? AND e2.distance = 1
"""

REFLEXIVE_SQL = """
INSERT INTO extended_hierarchy (extension, subclass, superclass, distance)
SELECT ?, id, id, 0
FROM entities
WHERE kind = ?
ON CONFLICT (extension, subclass, superclass) DO UPDATE SET distance = 0
"""

COMBINE_SQL = """
INSERT INTO extended_hierarchy (extension, subclass, superclass, distance)
SELECT e.extension, h1.subclass, h2.superclass, h1.distance + e.distance + h2.distance
FROM extended_hierarchy AS e
JOIN hierarchy AS h1 ON h1.superclass = e.subclass
JOIN hierarchy AS h2 ON h2.subclass = e.superclass
WHERE e.extension = ? AND h1.distance = ?
ON CONFLICT (extension, subclass, superclass)
DO UPDATE SET distance = excluded.distance
WHERE excluded.distance < extended_hierarchy.distance
"""


class ExtendedHierarchyOptions(ExtractorOptions):
    properties: list[StrictStr]
    identifier: StrictStr
    emulate: list[StrictStr] = []
    subproperties: StrictBool = True

    @field_validator("properties")
    @classmethod
    def _non_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("must name at least one property")
        return value

    @field_validator("identifier")
    @classmethod
    def _short_identifier(cls, value: str) -> str:
        if len(value) > MAX_IDENTIFIER_LENGTH:
            raise ValueError(f"cannot have more than {MAX_IDENTIFIER_LENGTH} characters")
        return value

    @field_validator("emulate")
    @classmethod
    def _valid_emulation(cls, value: list[str]) -> list[str]:
        for mode in value:
            if mode not in EMULATION_MODES:
                raise ValueError(f'unknown emulation mode: "{mode}"')
        for positive in ("transitive", "reflexive"):
            if positive in value and f"not {positive}" in value:
                raise ValueError(f'"{positive}" and "not {positive}" are mutually exclusive')
        return value


class ExtendedHierarchyExtractor(ClosureQueries, OntologyExtractor):
    """Computes one extension of the ``extended_hierarchy`` table.

    Queries (``get_depth``, ``get_subclasses``, ...) only see the rows of
    this instance's identifier.
    """

    kind = "extended_hierarchy"
    unique = False
    Options = ExtendedHierarchyOptions
    table = "extended_hierarchy"

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)
        self.hierarchy = self.registry.get(HierarchyExtractor)

    @property
    def identifier(self) -> str:
        return self.options.identifier

    def _scope(self) -> tuple[str, tuple]:
        return " AND extension = ?", (self.identifier,)

    # ==================== Characteristics ====================

    def characteristics(
        self, properties: Sequence[Entity], ontologies: Sequence[Ontology]
    ) -> tuple[bool, bool]:
        """Return ``(reflexive, transitive)`` for the configured relation."""
        emulate = self.options.emulate

        if "reflexive" in emulate:
            reflexive = True
        elif "not reflexive" in emulate:
            reflexive = False
        else:
            reflexive = all(any(o.is_reflexive(p) for o in ontologies) for p in properties)

        if "transitive" in emulate:
            transitive = True
        elif "not transitive" in emulate:
            transitive = False
        else:
            transitive = all(any(o.is_transitive(p) for o in ontologies) for p in properties)

        return reflexive, transitive

    @staticmethod
    def with_subproperties(
        properties: Sequence[Entity], ontologies: Sequence[Ontology]
    ) -> list[Entity]:
        """``properties`` plus all their asserted sub-properties, transitively."""
        result: list[Entity] = []
        seen: set[Entity] = set()
        worklist = deque(properties)
        while worklist:
            prop = worklist.popleft()
            if prop in seen:
                continue
            seen.add(prop)
            result.append(prop)
            for ontology in ontologies:
                worklist.extend(ontology.sub_properties(prop))
        return result

    # ==================== Extraction ====================

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        require_table(self.store, "hierarchy", f"extended hierarchy '{self.identifier}'")

        properties = [Entity.object_property(iri) for iri in self.options.properties]
        for i, prop in enumerate(properties):
            if self.entities.lookup(prop) is None:
                raise ClosureError(f"Unknown object property {prop.iri}", "properties", index_part(i))

        self.store.executescript(EXTENDED_HIERARCHY_SQL)
        removed = self.store.execute(
            "DELETE FROM extended_hierarchy WHERE extension = ?", (self.identifier,)
        )
        if removed:
            logger.debug(f"Removed {removed} previous rows of extension {self.identifier}")

        reflexive, transitive = self.characteristics(properties, ontologies)
        if self.options.subproperties:
            properties = self.with_subproperties(properties, ontologies)
        logger.info(
            f"Extension {self.identifier}: {len(properties)} properties, "
            f"reflexive={reflexive}, transitive={transitive}"
        )

        self._insert_direct(set(properties), ontologies)
        if transitive:
            self._close_transitively()
        if reflexive:
            changed = self.store.execute(
                REFLEXIVE_SQL, (self.identifier, EntityKind.CLASS.value)
            )
            logger.debug(f"{changed} reflexive relations")
        self._combine_with_hierarchy()

    def _insert_direct(self, properties: set[Entity], ontologies: Sequence[Ontology]) -> None:
        rows = []
        for ontology in ontologies:
            for axiom in ontology.axioms_of(SubClassOf):
                sup = axiom.sup
                if not isinstance(axiom.sub, NamedClass) or not isinstance(sup, ObjectSomeValuesFrom):
                    continue
                if sup.property not in properties or not isinstance(sup.filler, NamedClass):
                    continue
                sub_id = self.entities.require(axiom.sub.entity)
                filler_id = self.entities.require(sup.filler.entity)
                distance = 0 if sub_id == filler_id else 1
                rows.append((self.identifier, sub_id, filler_id, distance))

        self.store.executemany(INSERT_EDGE_SQL, rows)
        logger.info(f"{len(rows)} direct relations in extension {self.identifier}")

    def _close_transitively(self) -> None:
        distance = 1
        while True:
            added = self.store.execute(WIDEN_SQL, (self.identifier, distance))
            logger.debug(f"{added} relations with distance = {distance + 1}")
            if added == 0:
                break
            distance += 1

    def _combine_with_hierarchy(self) -> None:
        """Compose ``hierarchy . extension . hierarchy``, one base distance at a time."""
        max_distance = self.store.scalar("SELECT MAX(distance) FROM hierarchy", default=0)
        for distance in range(max_distance + 1):
            changed = self.store.execute(COMBINE_SQL, (self.identifier, distance))
            logger.debug(f"{changed} pairs changed combining at base distance {distance}")
