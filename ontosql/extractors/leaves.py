"""LeavesExtractor: classes without subclasses.

A class is a leaf when the only hierarchy row having it as superclass is
its own reflexive row.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ontosql.extractors.base import OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.extractors.hierarchy import require_table
from ontosql.ontology.model import Entity, Ontology

__all__ = ["LeavesExtractor"]

logger = logging.getLogger(__name__)

LEAVES_SQL = """
CREATE TABLE leaves (
    id INTEGER PRIMARY KEY
);
"""

FIND_LEAVES_SQL = """
INSERT INTO leaves (id)
SELECT superclass
FROM hierarchy
GROUP BY superclass
HAVING COUNT(*) = 1
"""


class LeavesExtractor(OntologyExtractor):
    kind = "leaves"

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        require_table(self.store, "hierarchy", "leaves")
        self.store.recreate("leaves", LEAVES_SQL)
        found = self.store.execute(FIND_LEAVES_SQL)
        logger.info(f"{found} leaves")

    def is_leaf(self, cls: EntityRef) -> bool:
        count = self.store.scalar(
            "SELECT COUNT(*) FROM leaves WHERE id = ?", (self.entities.require(cls),), default=0
        )
        return count > 0

    def get_leaf_descendants(self, cls: EntityRef) -> set[Entity]:
        rows = self.store.query(
            """
            SELECT subclass
            FROM hierarchy
            JOIN leaves ON leaves.id = hierarchy.subclass
            WHERE superclass = ?
            """,
            (self.entities.require(cls),),
        )
        return self.entities.resolve_all(row["subclass"] for row in rows)

    def get_leaf_descendants_size(self, cls: EntityRef) -> int:
        return self.store.scalar(
            """
            SELECT COUNT(*)
            FROM hierarchy
            JOIN leaves ON leaves.id = hierarchy.subclass
            WHERE superclass = ?
            """,
            (self.entities.require(cls),),
            default=0,
        )

    def get_number_of_leaves(self) -> int:
        return self.store.scalar("SELECT COUNT(*) FROM leaves", default=0)
