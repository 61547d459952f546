"""AnnotationCacher: imports external entity annotations.

The input is a text file with one annotation per line:

    # entity          ontology class
    P12345            http://purl.obolibrary.org/obo/GO_0005634
    P12345            http://purl.obolibrary.org/obo/GO_0003677

Blank lines and lines starting with ``#`` are skipped; columns after the
second are ignored. Lines naming classes unknown to the entity index are
skipped with a warning. Each cacher tags its rows with a ``corpus`` so that
several annotation sources can share the ``annotations`` table.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import StrictBool, StrictStr, field_validator

from ontosql.extractors.base import Cacher, ExtractorOptions
from ontosql.extractors.entities import EntityIndex
from ontosql.extractors.hierarchy import require_table
from ontosql.ontology.model import Entity

__all__ = ["AnnotationCacher", "AnnotationCacherOptions", "MAX_NAME_LENGTH"]

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 256

ANNOTATIONS_SQL = """
CREATE TABLE IF NOT EXISTS annotations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    entity TEXT NOT NULL,
    annotation INTEGER NOT NULL,
    corpus TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_annotations_entity ON annotations(entity);
CREATE INDEX IF NOT EXISTS idx_annotations_annotation ON annotations(annotation);
CREATE INDEX IF NOT EXISTS idx_annotations_corpus ON annotations(corpus);
"""


class AnnotationCacherOptions(ExtractorOptions):
    file: StrictStr
    corpus: StrictStr
    wipe: StrictBool = False

    @field_validator("file")
    @classmethod
    def _readable(cls, value: str) -> str:
        if not Path(value).is_file():
            raise ValueError(f"cannot read file {value}")
        return value

    @field_validator("corpus")
    @classmethod
    def _short_corpus(cls, value: str) -> str:
        if len(value) > MAX_NAME_LENGTH:
            raise ValueError(f"must have at most {MAX_NAME_LENGTH} characters")
        return value


class AnnotationCacher(Cacher):
    """Loads one annotation file into the ``annotations`` table.

    Example:
        {"kind": "annotations", "file": "data/uniprot.tsv", "corpus": "uniprot"}
    """

    kind = "annotations"
    unique = False
    Options = AnnotationCacherOptions

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def cache(self) -> None:
        self.store.executescript(ANNOTATIONS_SQL)
        corpus = self.options.corpus
        if self.options.wipe:
            removed = self.store.execute("DELETE FROM annotations WHERE corpus = ?", (corpus,))
            logger.info(f"Removed {removed} annotations of corpus {corpus}")

        rows = []
        with open(self.options.file, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue

                parts = line.split(None, 2)
                if len(parts) < 2:
                    logger.warning(
                        f"Ignoring line {line_number}: expecting 2 columns; got {len(parts)}"
                    )
                    continue

                entity, term = parts[0], parts[1]
                if len(entity) > MAX_NAME_LENGTH:
                    logger.warning(
                        f"Ignoring line {line_number}: entity names are limited "
                        f"to {MAX_NAME_LENGTH} characters"
                    )
                    continue

                annotation_id = self.entities.lookup(Entity.owl_class(term))
                if annotation_id is None:
                    logger.warning(f"Ignoring line {line_number}: unknown ontology term {term}")
                    continue
                rows.append((entity, annotation_id, corpus))

        self.store.executemany(
            "INSERT INTO annotations (entity, annotation, corpus) VALUES (?, ?, ?)", rows
        )
        logger.info(f"{len(rows)} annotations cached from {self.options.file}")

    def get_transitive_annotations(self, entity: str, corpus: Optional[str] = None) -> set[Entity]:
        """Classes annotating ``entity`` plus all their superclasses."""
        require_table(self.store, "hierarchy", "transitive annotations")
        sql = """
            SELECT DISTINCT hierarchy.superclass
            FROM annotations
            JOIN hierarchy ON hierarchy.subclass = annotations.annotation
            WHERE annotations.entity = ?
        """
        params: tuple = (entity,)
        if corpus is not None:
            sql += " AND annotations.corpus = ?"
            params += (corpus,)
        rows = self.store.query(sql, params)
        return self.entities.resolve_all(row[0] for row in rows)
