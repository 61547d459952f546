"""IntrinsicICExtractor: information content derived from the hierarchy alone.

For every class, with descendants, ancestors and leaf descendants counted
over the reflexive closure (the class itself included):

    seco    = 1 - ln(nDesc) / ln(totalClasses)
    zhou    = k * seco + (1 - k) * ln(depth + 1) / ln(maxDepth + 1)
    sanchez = (ln(totalLeaves) + ln(nAnc) - ln(nLeaf)) / (ln(totalClasses) + ln(totalLeaves))
    leaves  = 1 - ln(nLeaf) / ln(totalLeaves)

Values that cannot be computed (a class absent from the hierarchy, or a
degenerate logarithm such as ln(1) in a denominator) are stored as 0.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence

import numpy as np
from pydantic import field_validator

from ontosql.extractors.base import ExtractorOptions, OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.extractors.hierarchy import HierarchyExtractor, require_table
from ontosql.extractors.leaves import LeavesExtractor
from ontosql.ontology.model import EntityKind, Ontology

__all__ = ["ICMethod", "IntrinsicICExtractor", "IntrinsicICOptions", "intrinsic_ic"]

logger = logging.getLogger(__name__)

INTRINSIC_IC_SQL = """
CREATE TABLE intrinsic_ic (
    class INTEGER PRIMARY KEY,
    seco REAL NOT NULL,
    zhou REAL NOT NULL,
    sanchez REAL NOT NULL,
    leaves REAL NOT NULL
);
"""


class ICMethod(str, Enum):
    """Intrinsic IC variants; values are the ``intrinsic_ic`` column names."""

    SECO = "seco"
    ZHOU = "zhou"
    SANCHEZ = "sanchez"
    LEAVES = "leaves"


def _finite(values: np.ndarray) -> np.ndarray:
    return np.where(np.isfinite(values), values, 0.0)


def intrinsic_ic(
    n_desc: np.ndarray,
    n_anc: np.ndarray,
    n_leaf: np.ndarray,
    depth: np.ndarray,
    total_classes: int,
    total_leaves: int,
    max_depth: int,
    zhou_k: float,
) -> dict[ICMethod, np.ndarray]:
    """Vectorised IC formulas; non-finite results become 0.

    Args:
        n_desc: Descendant count per class (self included)
        n_anc: Ancestor count per class (self included)
        n_leaf: Leaf-descendant count per class (self included when a leaf)
        depth: Largest distance from each class to an ancestor
        total_classes: Number of classes
        total_leaves: Number of leaves
        max_depth: Largest distance in the hierarchy
        zhou_k: Weight of the seco term in zhou, in [0, 1]

    Returns:
        Method -> array of IC values aligned with the inputs
    """
    n_desc = np.asarray(n_desc, dtype=float)
    n_anc = np.asarray(n_anc, dtype=float)
    n_leaf = np.asarray(n_leaf, dtype=float)
    depth = np.asarray(depth, dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        log_tc = np.log(float(total_classes))
        log_tl = np.log(float(total_leaves))
        log_md1 = np.log(float(max_depth) + 1.0)

        seco = 1.0 - np.log(n_desc) / log_tc
        zhou = zhou_k * seco + (1.0 - zhou_k) * np.log(depth + 1.0) / log_md1
        sanchez = (log_tl + np.log(n_anc) - np.log(n_leaf)) / (log_tc + log_tl)
        leaves = 1.0 - np.log(n_leaf) / log_tl

    return {
        ICMethod.SECO: _finite(seco),
        ICMethod.ZHOU: _finite(zhou),
        ICMethod.SANCHEZ: _finite(sanchez),
        ICMethod.LEAVES: _finite(leaves),
    }


class IntrinsicICOptions(ExtractorOptions):
    zhou_k: float

    @field_validator("zhou_k")
    @classmethod
    def _unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be a number between 0 and 1")
        return value


class IntrinsicICExtractor(OntologyExtractor):
    """Computes the ``intrinsic_ic`` table.

    Example:
        {"kind": "intrinsic_ic", "zhou_k": 0.5}
    """

    kind = "intrinsic_ic"
    Options = IntrinsicICOptions

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)
        self.hierarchy = self.registry.get(HierarchyExtractor)
        self.leaves = self.registry.get(LeavesExtractor)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        require_table(self.store, "hierarchy", "intrinsic IC")
        require_table(self.store, "leaves", "intrinsic IC")
        self.store.recreate("intrinsic_ic", INTRINSIC_IC_SQL)

        classes = self.entities.ids(EntityKind.CLASS)
        if not classes:
            return
        position = {class_id: i for i, class_id in enumerate(classes)}

        n_desc = np.zeros(len(classes))
        n_anc = np.zeros(len(classes))
        n_leaf = np.zeros(len(classes))
        depth = np.zeros(len(classes))
        present = np.zeros(len(classes), dtype=bool)

        for row in self.store.query(
            "SELECT superclass, COUNT(*) FROM hierarchy GROUP BY superclass"
        ):
            if row[0] in position:
                n_desc[position[row[0]]] = row[1]
        for row in self.store.query(
            "SELECT subclass, COUNT(*), MAX(distance) FROM hierarchy GROUP BY subclass"
        ):
            if row[0] in position:
                n_anc[position[row[0]]] = row[1]
                depth[position[row[0]]] = row[2]
                present[position[row[0]]] = True
        for row in self.store.query(
            """
            SELECT hierarchy.superclass, COUNT(*)
            FROM hierarchy
            JOIN leaves ON leaves.id = hierarchy.subclass
            GROUP BY hierarchy.superclass
            """
        ):
            if row[0] in position:
                n_leaf[position[row[0]]] = row[1]

        values = intrinsic_ic(
            n_desc,
            n_anc,
            n_leaf,
            depth,
            total_classes=len(classes),
            total_leaves=self.leaves.get_number_of_leaves(),
            max_depth=self.hierarchy.get_max_depth(),
            zhou_k=self.options.zhou_k,
        )
        for method in ICMethod:
            values[method][~present] = 0.0

        self.store.executemany(
            "INSERT INTO intrinsic_ic (class, seco, zhou, sanchez, leaves) VALUES (?, ?, ?, ?, ?)",
            [
                (
                    class_id,
                    float(values[ICMethod.SECO][i]),
                    float(values[ICMethod.ZHOU][i]),
                    float(values[ICMethod.SANCHEZ][i]),
                    float(values[ICMethod.LEAVES][i]),
                )
                for i, class_id in enumerate(classes)
            ],
        )
        logger.info(f"Intrinsic IC computed for {len(classes)} classes")

    def get_ic(self, cls: EntityRef, method: ICMethod) -> Optional[float]:
        """IC of ``cls`` with ``method``, or None when the class has no row."""
        method = ICMethod(method)
        return self.store.scalar(
            f"SELECT {method.value} FROM intrinsic_ic WHERE class = ?",
            (self.entities.require(cls),),
        )
