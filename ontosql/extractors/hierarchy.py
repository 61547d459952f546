"""HierarchyExtractor: reflexive-transitive closure of the subclass relation.

The ``hierarchy`` table holds one row per (subclass, superclass) pair with
the length of the shortest chain of asserted subclass axioms between them:

1. every class is its own superclass at distance 0
2. asserted ``SubClassOf`` axioms between named classes give distance 1;
   classes without a named superclass hang from owl:Thing at distance 1
3. the table is widened one hop at a time: rows at distance d composed
   with direct rows give rows at distance d + 1, inserted only when the
   pair is absent, until a step adds nothing

Since rows are never overwritten, the first distance found for a pair is
the one kept, and widening by increasing distance makes it the shortest.
"""

from __future__ import annotations

import logging
from typing import ClassVar, Optional, Sequence

from ontosql.errors import ClosureError
from ontosql.extractors.base import ExtractorOptions, OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.ontology.model import OWL_THING, Entity, EntityKind, Ontology, SubClassOf
from ontosql.store import Store

__all__ = ["ClosureQueries", "HierarchyExtractor", "HierarchyOptions", "require_table"]

logger = logging.getLogger(__name__)


HIERARCHY_SQL = """
CREATE TABLE hierarchy (
    subclass INTEGER NOT NULL,
    superclass INTEGER NOT NULL,
    distance INTEGER NOT NULL,
    UNIQUE (subclass, superclass)
);
CREATE INDEX idx_hierarchy_superclass ON hierarchy(superclass);
CREATE INDEX idx_hierarchy_distance ON hierarchy(distance);
"""

INSERT_EDGE_SQL = (
    "INSERT OR IGNORE INTO hierarchy (subclass, superclass, distance) VALUES (?, ?, ?)"
)

WIDEN_SQL = """
INSERT OR IGNORE INTO hierarchy (subclass, superclass, distance)
SELECT h1.subclass, h2.superclass, h1.distance + 1
FROM hierarchy AS h1
JOIN hierarchy AS h2 ON h1.superclass = h2.subclass
WHERE h1.distance = ? AND h2.distance = 1
"""


def require_table(store: Store, table: str, needed_by: str) -> None:
    """Raise ClosureError unless ``table`` was already computed."""
    if not store.table_exists(table):
        raise ClosureError(f"Table {table} must be extracted before {needed_by}")


class ClosureQueries:
    """Read access shared by closure tables keyed by (subclass, superclass).

    Subclasses set ``table`` and may narrow every query with ``_scope``.
    Class arguments are entities or ids; unregistered entities raise
    ClosureError.
    """

    table: ClassVar[str] = "hierarchy"
    entities: EntityIndex

    def _scope(self) -> tuple[str, tuple]:
        """Extra ``AND ...`` condition and its parameters."""
        return "", ()

    def _select(self, what: str, where: str, params: tuple, suffix: str = "") -> list:
        scope, scope_params = self._scope()
        return self.store.query(
            f"SELECT {what} FROM {self.table} WHERE {where}{scope}{suffix}",
            params + scope_params,
        )

    def _value(self, what: str, where: str, params: tuple, default=0):
        rows = self._select(what, where, params)
        if not rows or rows[0][0] is None:
            return default
        return rows[0][0]

    def get_depth(self, cls: EntityRef) -> int:
        """Largest distance from ``cls`` to any of its superclasses."""
        return self._value("MAX(distance)", "subclass = ?", (self.entities.require(cls),))

    def get_max_depth(self) -> int:
        return self._value("MAX(distance)", "1 = 1", ())

    def get_number_of_subclasses(self, cls: EntityRef) -> int:
        """Number of descendants of ``cls``, ``cls`` included."""
        return self._value("COUNT(*)", "superclass = ?", (self.entities.require(cls),))

    def get_number_of_superclasses(self, cls: EntityRef) -> int:
        """Number of ancestors of ``cls``, ``cls`` included."""
        return self._value("COUNT(*)", "subclass = ?", (self.entities.require(cls),))

    def get_subclasses(self, cls: EntityRef) -> set[Entity]:
        rows = self._select("subclass", "superclass = ?", (self.entities.require(cls),))
        return self.entities.resolve_all(row[0] for row in rows)

    def get_superclasses(self, cls: EntityRef) -> set[Entity]:
        rows = self._select("superclass", "subclass = ?", (self.entities.require(cls),))
        return self.entities.resolve_all(row[0] for row in rows)

    def get_distance(self, sub: EntityRef, sup: EntityRef) -> Optional[int]:
        """Distance recorded for the pair, or None when ``sup`` is not an ancestor."""
        return self._value(
            "distance",
            "subclass = ? AND superclass = ?",
            (self.entities.require(sub), self.entities.require(sup)),
            default=None,
        )

    def edges(self) -> list[tuple[int, int, int]]:
        """Every (subclass, superclass, distance) row, sorted."""
        rows = self._select(
            "subclass, superclass, distance", "1 = 1", (), " ORDER BY subclass, superclass"
        )
        return [(row[0], row[1], row[2]) for row in rows]


class HierarchyOptions(ExtractorOptions):
    link_to_top: bool = True


class HierarchyExtractor(ClosureQueries, OntologyExtractor):
    """Computes the ``hierarchy`` table.

    Example:
        hierarchy = registry.get(HierarchyExtractor)
        hierarchy.extract(ontologies)
        hierarchy.get_distance(Entity.owl_class(A), OWL_THING)   # -> 2
    """

    kind = "hierarchy"
    Options = HierarchyOptions

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        self.store.recreate("hierarchy", HIERARCHY_SQL)

        classes = self.entities.ids(EntityKind.CLASS)
        self.store.executemany(INSERT_EDGE_SQL, [(c, c, 0) for c in classes])

        direct = []
        has_superclass: set[int] = set()
        for ontology in ontologies:
            for axiom in ontology.axioms_of(SubClassOf):
                if axiom.sub.is_anonymous or axiom.sup.is_anonymous:
                    continue
                sub = self.entities.require(axiom.sub.entity)
                sup = self.entities.require(axiom.sup.entity)
                direct.append((sub, sup, 1))
                has_superclass.add(sub)

        if self.options.link_to_top:
            top = self.entities.require(OWL_THING)
            direct.extend((c, top, 1) for c in classes if c not in has_superclass)

        self.store.executemany(INSERT_EDGE_SQL, direct)
        logger.info(f"{len(direct)} direct relations between {len(classes)} classes")

        distance = 1
        while True:
            added = self.store.execute(WIDEN_SQL, (distance,))
            logger.debug(f"{added} relations with distance = {distance + 1}")
            if added == 0:
                break
            distance += 1
        logger.info(f"Hierarchy closed after {distance} widening steps")
