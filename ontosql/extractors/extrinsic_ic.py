"""ExtrinsicICExtractor: information content from annotation frequency.

    ic(c) = 1 - ln(entities annotated with c or a descendant of c)
                / ln(all annotated entities)

Classes nobody annotates get no row; ``get_ic`` reports 0 for them.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from pydantic import StrictStr

from ontosql.extractors.base import ExtractorOptions, OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.extractors.hierarchy import require_table
from ontosql.ontology.model import Ontology

__all__ = ["ExtrinsicICExtractor", "ExtrinsicICOptions"]

logger = logging.getLogger(__name__)

EXTRINSIC_IC_SQL = """
CREATE TABLE extrinsic_ic (
    class INTEGER PRIMARY KEY,
    ic REAL NOT NULL
);
"""


class ExtrinsicICOptions(ExtractorOptions):
    corpus: Optional[StrictStr] = None


class ExtrinsicICExtractor(OntologyExtractor):
    kind = "extrinsic_ic"
    Options = ExtrinsicICOptions

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        require_table(self.store, "hierarchy", "extrinsic IC")
        require_table(self.store, "annotations", "extrinsic IC")
        self.store.recreate("extrinsic_ic", EXTRINSIC_IC_SQL)

        corpus = self.options.corpus
        where, params = ("WHERE annotations.corpus = ?", (corpus,)) if corpus else ("", ())

        total = self.store.scalar(
            f"SELECT COUNT(DISTINCT entity) FROM annotations {where}", params, default=0
        )
        rows = self.store.query(
            f"""
            SELECT hierarchy.superclass, COUNT(DISTINCT annotations.entity)
            FROM annotations
            JOIN hierarchy ON hierarchy.subclass = annotations.annotation
            {where}
            GROUP BY hierarchy.superclass
            """,
            params,
        )
        if not rows:
            logger.info("No annotations; extrinsic IC table left empty")
            return

        classes = [row[0] for row in rows]
        counts = np.array([row[1] for row in rows], dtype=float)
        with np.errstate(divide="ignore", invalid="ignore"):
            ic = 1.0 - np.log(counts) / np.log(float(total))
        ic = np.where(np.isfinite(ic), ic, 0.0)

        self.store.executemany(
            "INSERT INTO extrinsic_ic (class, ic) VALUES (?, ?)",
            [(class_id, float(value)) for class_id, value in zip(classes, ic)],
        )
        logger.info(f"Extrinsic IC computed for {len(classes)} classes from {total} entities")

    def get_ic(self, cls: EntityRef) -> float:
        return self.store.scalar(
            "SELECT ic FROM extrinsic_ic WHERE class = ?",
            (self.entities.require(cls),),
            default=0.0,
        )
