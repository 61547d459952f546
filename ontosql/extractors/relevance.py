"""RelevanceExtractor: how central a class is within the hierarchy.

Columns of the ``relevance`` table, per class:

- ``n_children``: number of direct subclasses
- ``n_children_adjusted``: ``n_children``, or MAX_INT for leaves
- ``h_index``: largest h such that h children have at least h children each;
  MAX_INT when the class has no children or all of them are leaves
- ``ratio_leaves``: leaf descendants over the total number of leaves
- ``ratio_external_*``: extrinsic IC over each intrinsic IC variant; NULL
  when the intrinsic value is 0 or missing
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional, Sequence

import numpy as np

from ontosql.extractors.base import OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.extractors.extrinsic_ic import ExtrinsicICExtractor
from ontosql.extractors.hierarchy import require_table
from ontosql.extractors.intrinsic_ic import ICMethod
from ontosql.extractors.leaves import LeavesExtractor
from ontosql.ontology.model import EntityKind, Ontology

__all__ = ["MAX_INT", "RelevanceExtractor", "h_index"]

logger = logging.getLogger(__name__)

MAX_INT = 2**31 - 1

RELEVANCE_SQL = """
CREATE TABLE relevance (
    class INTEGER PRIMARY KEY,
    n_children INTEGER NOT NULL,
    n_children_adjusted INTEGER NOT NULL,
    h_index INTEGER NOT NULL,
    ratio_leaves REAL NOT NULL,
    ratio_external_seco REAL,
    ratio_external_zhou REAL,
    ratio_external_sanchez REAL,
    ratio_external_leaves REAL
);
"""

RELEVANCE_COLUMNS = (
    "class",
    "n_children",
    "n_children_adjusted",
    "h_index",
    "ratio_leaves",
    "ratio_external_seco",
    "ratio_external_zhou",
    "ratio_external_sanchez",
    "ratio_external_leaves",
)


def h_index(grandchildren) -> int:
    """h-index of a class given the child count of each of its children.

    Example:
        h_index([3, 2, 2, 0])   # -> 2
        h_index([0, 0])         # -> MAX_INT
        h_index([])             # -> MAX_INT
    """
    counts = np.sort(np.asarray(grandchildren, dtype=int))[::-1]
    if counts.size == 0 or counts[0] == 0:
        return MAX_INT
    ranks = np.arange(1, counts.size + 1)
    return int(np.count_nonzero(counts >= ranks))


class RelevanceExtractor(OntologyExtractor):
    kind = "relevance"

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)
        # Dependencies only; their tables are read directly
        self.registry.get(LeavesExtractor)
        self.registry.get(ExtrinsicICExtractor)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        for table in ("hierarchy", "leaves", "intrinsic_ic", "extrinsic_ic"):
            require_table(self.store, table, "relevance")
        self.store.recreate("relevance", RELEVANCE_SQL)

        children: dict[int, list[int]] = defaultdict(list)
        for row in self.store.query(
            "SELECT subclass, superclass FROM hierarchy WHERE distance = 1"
        ):
            children[row["superclass"]].append(row["subclass"])

        leaves = {row["id"] for row in self.store.query("SELECT id FROM leaves")}
        total_leaves = len(leaves)
        leaf_descendants = {
            row[0]: row[1]
            for row in self.store.query(
                """
                SELECT hierarchy.superclass, COUNT(*)
                FROM hierarchy
                JOIN leaves ON leaves.id = hierarchy.subclass
                GROUP BY hierarchy.superclass
                """
            )
        }
        intrinsic = {
            row["class"]: row for row in self.store.query("SELECT * FROM intrinsic_ic")
        }
        extrinsic = {
            row["class"]: row["ic"]
            for row in self.store.query("SELECT class, ic FROM extrinsic_ic")
        }

        rows = []
        for class_id in self.entities.ids(EntityKind.CLASS):
            direct = children.get(class_id, [])
            n_children = len(direct)
            n_leaves = leaf_descendants.get(class_id, 0)
            external = extrinsic.get(class_id, 0.0)
            ic_row = intrinsic.get(class_id)

            ratios = []
            for method in ICMethod:
                value = ic_row[method.value] if ic_row is not None else None
                ratios.append(external / value if value else None)

            rows.append(
                (
                    class_id,
                    n_children,
                    MAX_INT if class_id in leaves else n_children,
                    h_index([len(children.get(child, [])) for child in direct]),
                    n_leaves / total_leaves if total_leaves else 0.0,
                    *ratios,
                )
            )

        placeholders = ", ".join("?" * len(RELEVANCE_COLUMNS))
        self.store.executemany(
            f"INSERT INTO relevance ({', '.join(RELEVANCE_COLUMNS)}) VALUES ({placeholders})",
            rows,
        )
        logger.info(f"Relevance computed for {len(rows)} classes")

    def get_relevance(self, cls: EntityRef) -> Optional[dict]:
        """The relevance row of ``cls`` as a dict, or None."""
        row = self.store.query_one(
            "SELECT * FROM relevance WHERE class = ?", (self.entities.require(cls),)
        )
        return dict(row) if row is not None else None
