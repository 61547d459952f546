"""NamesExtractor: human-readable names of entities.

Literal values of the configured annotation properties (``rdfs:label`` by
default) become rows of the ``names`` table. Each entity's names are
numbered with increasing ``priority`` in property order, so the name with
the lowest priority is the entity's main name.

Example:
    {"kind": "names", "properties": [
        "http://www.w3.org/2000/01/rdf-schema#label",
        "http://www.geneontology.org/formats/oboInOwl#hasExactSynonym"
    ]}
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional, Sequence

from pydantic import Field, StrictStr

from ontosql.extractors.base import ExtractorOptions, OntologyExtractor
from ontosql.extractors.entities import EntityIndex
from ontosql.ontology.model import RDFS_LABEL, Entity, Ontology

__all__ = ["NamesExtractor", "NamesOptions"]

logger = logging.getLogger(__name__)

NAMES_SQL = """
CREATE TABLE names (
    id INTEGER NOT NULL,
    property INTEGER NOT NULL,
    priority INTEGER NOT NULL,
    name TEXT NOT NULL,
    UNIQUE (id, priority)
);
CREATE INDEX idx_names_id ON names(id);
CREATE INDEX idx_names_name ON names(name);
"""


class NamesOptions(ExtractorOptions):
    properties: list[StrictStr] = Field(default_factory=lambda: [RDFS_LABEL])


class NamesExtractor(OntologyExtractor):
    kind = "names"
    Options = NamesOptions

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        self.store.recreate("names", NAMES_SQL)

        properties = []
        for iri in self.options.properties:
            prop = Entity.annotation_property(iri)
            prop_id = self.entities.lookup(prop)
            if prop_id is None:
                logger.warning(f"Annotation property {iri} is not used by any ontology")
                continue
            properties.append((prop, prop_id))

        priorities: dict[int, int] = defaultdict(int)
        seen: set[tuple[int, int, str]] = set()
        rows = []
        for ontology in ontologies:
            for entity in sorted(ontology.signature()):
                entity_id = self.entities.require(entity)
                for prop, prop_id in properties:
                    for annotation in ontology.annotations(entity.iri, prop):
                        if not annotation.is_literal:
                            continue
                        key = (entity_id, prop_id, annotation.value)
                        if key in seen:
                            continue
                        seen.add(key)
                        priorities[entity_id] += 1
                        rows.append((entity_id, prop_id, priorities[entity_id], annotation.value))

        self.store.executemany(
            "INSERT INTO names (id, property, priority, name) VALUES (?, ?, ?, ?)", rows
        )
        logger.info(f"{len(rows)} names found for {len(priorities)} entities")

    def _filter(self, entity: Entity, property: Optional[str]) -> tuple[str, tuple]:
        entity_id = self.entities.require(entity)
        if property is None:
            return "id = ?", (entity_id,)
        prop_id = self.entities.require(Entity.annotation_property(property))
        return "id = ? AND property = ?", (entity_id, prop_id)

    def get_all_names(self, entity: Entity, property: Optional[str] = None) -> set[str]:
        """Every name of ``entity``, optionally only those of one property."""
        where, params = self._filter(entity, property)
        rows = self.store.query(f"SELECT name FROM names WHERE {where}", params)
        return {row["name"] for row in rows}

    def get_main_name(self, entity: Entity, property: Optional[str] = None) -> Optional[str]:
        """The highest priority name of ``entity``, or None."""
        where, params = self._filter(entity, property)
        return self.store.scalar(
            f"SELECT name FROM names WHERE {where} ORDER BY priority LIMIT 1", params
        )
