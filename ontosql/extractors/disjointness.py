"""DisjointnessExtractor: asserted disjointness between named classes.

Pairs are stored once, with ``id1 < id2``. Whether two arbitrary classes
conflict through their ancestors is answered by joining ``disjoints``
against the class hierarchy at query time.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Sequence

from ontosql.extractors.base import OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.extractors.hierarchy import require_table
from ontosql.ontology.model import DisjointClasses, Entity, Ontology

__all__ = ["DisjointnessExtractor"]

logger = logging.getLogger(__name__)

DISJOINTS_SQL = """
CREATE TABLE disjoints (
    id1 INTEGER NOT NULL,
    id2 INTEGER NOT NULL,
    UNIQUE (id1, id2),
    CHECK (id1 < id2)
);
CREATE INDEX idx_disjoints_id2 ON disjoints(id2);
"""

# Two SELECTs joined by UNION rather than an OR so both can use the indexes
DISJOINT_SUPERCLASSES_SQL = """
SELECT h1.superclass AS sup1, h2.superclass AS sup2
FROM hierarchy AS h1, hierarchy AS h2, disjoints
WHERE h1.subclass = ? AND h2.subclass = ?
      AND disjoints.id1 = h1.superclass AND disjoints.id2 = h2.superclass
UNION
SELECT h1.superclass AS sup1, h2.superclass AS sup2
FROM hierarchy AS h1, hierarchy AS h2, disjoints
WHERE h1.subclass = ? AND h2.subclass = ?
      AND disjoints.id1 = h2.superclass AND disjoints.id2 = h1.superclass
"""


class DisjointnessExtractor(OntologyExtractor):
    kind = "disjointness"

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        self.store.recreate("disjoints", DISJOINTS_SQL)

        pairs: set[tuple[int, int]] = set()
        for ontology in ontologies:
            for axiom in ontology.axioms_of(DisjointClasses):
                named = [op for op in axiom.operands if not op.is_anonymous]
                for first, second in combinations(named, 2):
                    id1 = self.entities.require(first.entity)
                    id2 = self.entities.require(second.entity)
                    if id1 == id2:
                        logger.warning(
                            f"{first.iri} is asserted disjoint with itself in {ontology.iri}"
                        )
                        continue
                    pairs.add((min(id1, id2), max(id1, id2)))

        self.store.executemany(
            "INSERT OR IGNORE INTO disjoints (id1, id2) VALUES (?, ?)", sorted(pairs)
        )
        logger.info(f"{len(pairs)} pairs of disjoint classes")

    def get_disjoint_superclass_ids(self, cls1: EntityRef, cls2: EntityRef) -> list[tuple[int, int]]:
        """Asserted disjoint pairs ``(ancestor of cls1, ancestor of cls2)``."""
        require_table(self.store, "hierarchy", "disjointness queries")
        id1, id2 = self.entities.require(cls1), self.entities.require(cls2)
        rows = self.store.query(DISJOINT_SUPERCLASSES_SQL, (id1, id2, id1, id2))
        return sorted((row["sup1"], row["sup2"]) for row in rows)

    def get_disjoint_superclasses(
        self, cls1: EntityRef, cls2: EntityRef
    ) -> list[tuple[Entity, Entity]]:
        return [
            (self.entities.resolve(first), self.entities.resolve(second))
            for first, second in self.get_disjoint_superclass_ids(cls1, cls2)
        ]

    def are_disjoint(self, cls1: EntityRef, cls2: EntityRef) -> bool:
        """Whether some ancestor of ``cls1`` is asserted disjoint with some ancestor of ``cls2``."""
        return bool(self.get_disjoint_superclass_ids(cls1, cls2))
