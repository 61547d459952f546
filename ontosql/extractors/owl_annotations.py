"""OWLAnnotationsExtractor: existential restrictions read as annotations.

An axiom ``A ⊑ P some B`` between named classes, with ``P`` one of the
configured object properties, is stored as the row ``(A, P, B)`` of the
``owl_annotations`` table: "A is annotated with B through P".

With ``update`` the rows of earlier runs are kept and new rows appended;
otherwise the table is emptied first.
"""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import StrictBool, StrictStr

from ontosql.extractors.base import ExtractorOptions, OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.extractors.hierarchy import require_table
from ontosql.ontology.model import Entity, ObjectSomeValuesFrom, Ontology, SubClassOf

__all__ = ["OWLAnnotationsExtractor", "OWLAnnotationsOptions"]

logger = logging.getLogger(__name__)

OWL_ANNOTATIONS_SQL = """
CREATE TABLE IF NOT EXISTS owl_annotations (
    entity INTEGER NOT NULL,
    property INTEGER NOT NULL,
    annotation INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_owl_annotations_entity ON owl_annotations(entity);
CREATE INDEX IF NOT EXISTS idx_owl_annotations_property ON owl_annotations(property);
CREATE INDEX IF NOT EXISTS idx_owl_annotations_annotation ON owl_annotations(annotation);
"""


class OWLAnnotationsOptions(ExtractorOptions):
    properties: list[StrictStr]
    update: StrictBool


class OWLAnnotationsExtractor(OntologyExtractor):
    kind = "owl_annotations"
    Options = OWLAnnotationsOptions

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        self.store.executescript(OWL_ANNOTATIONS_SQL)
        if not self.options.update:
            self.store.execute("DELETE FROM owl_annotations")

        properties = {Entity.object_property(iri) for iri in self.options.properties}
        rows = []
        for ontology in ontologies:
            for axiom in ontology.axioms_of(SubClassOf):
                sup = axiom.sup
                if axiom.sub.is_anonymous or not isinstance(sup, ObjectSomeValuesFrom):
                    continue
                if sup.filler.is_anonymous or sup.property not in properties:
                    continue
                rows.append(
                    (
                        self.entities.require(axiom.sub.entity),
                        self.entities.require(sup.property),
                        self.entities.require(sup.filler.entity),
                    )
                )

        self.store.executemany(
            "INSERT INTO owl_annotations (entity, property, annotation) VALUES (?, ?, ?)", rows
        )
        logger.info(f"{len(rows)} OWL annotations found")

    def get_transitive_annotations(self, cls: EntityRef, property: EntityRef) -> set[Entity]:
        """Annotations of ``cls`` through ``property``, with all their superclasses."""
        require_table(self.store, "hierarchy", "transitive OWL annotations")
        rows = self.store.query(
            """
            SELECT DISTINCT hierarchy.superclass
            FROM owl_annotations
            JOIN hierarchy ON hierarchy.subclass = owl_annotations.annotation
            WHERE owl_annotations.entity = ? AND owl_annotations.property = ?
            """,
            (self.entities.require(cls), self.entities.require(property)),
        )
        return self.entities.resolve_all(row[0] for row in rows)

    def get_transitive_classes_with_annotation(
        self, property: EntityRef, annotation: EntityRef
    ) -> set[Entity]:
        """Classes annotated through ``property`` with ``annotation`` or one of its subclasses."""
        require_table(self.store, "hierarchy", "transitive OWL annotations")
        rows = self.store.query(
            """
            SELECT DISTINCT owl_annotations.entity
            FROM hierarchy
            JOIN owl_annotations ON owl_annotations.annotation = hierarchy.subclass
            WHERE hierarchy.superclass = ? AND owl_annotations.property = ?
            """,
            (self.entities.require(annotation), self.entities.require(property)),
        )
        return self.entities.resolve_all(row[0] for row in rows)
