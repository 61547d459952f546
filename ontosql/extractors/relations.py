"""RelationsExtractor: property chains reachable from each class.

A class's asserted superclass and equivalent-class expressions are unfolded
into ``Chain`` values:

    A ⊑ partOf some (hasPart some B)     ->  Chain((partOf, hasPart), B)
    A ⊑ partOf some (B and locatedIn some C)
                                          ->  Chain((partOf,), B)
                                              Chain((partOf, locatedIn), C)

Named classes end a chain, existential restrictions extend it and
intersections contribute the chains of all their operands. Unions,
complements and universal restrictions contribute nothing. Chains without
properties (a plain named superclass) are not stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ontosql.extractors.base import OntologyExtractor
from ontosql.extractors.entities import EntityIndex, EntityRef
from ontosql.ontology.model import (
    ClassExpression,
    EntityKind,
    Entity,
    NamedClass,
    ObjectIntersectionOf,
    ObjectSomeValuesFrom,
    Ontology,
)

__all__ = ["Chain", "RelationsExtractor", "unfold"]

logger = logging.getLogger(__name__)

RELATIONS_SQL = """
CREATE TABLE relations (
    start INTEGER NOT NULL,
    chain TEXT NOT NULL,
    "end" INTEGER NOT NULL
);
CREATE INDEX idx_relations_start ON relations(start);
CREATE INDEX idx_relations_chain ON relations(chain);
"""


@dataclass(frozen=True)
class Chain:
    """Object properties traversed in order, then the class reached."""

    properties: tuple[Entity, ...]
    end: Entity


def unfold(expression: ClassExpression) -> set[Chain]:
    """All chains described by ``expression``."""
    if isinstance(expression, NamedClass):
        return {Chain((), expression.entity)}
    if isinstance(expression, ObjectSomeValuesFrom):
        return {
            Chain((expression.property,) + chain.properties, chain.end)
            for chain in unfold(expression.filler)
        }
    if isinstance(expression, ObjectIntersectionOf):
        result: set[Chain] = set()
        for operand in expression.operands:
            result |= unfold(operand)
        return result
    return set()


class RelationsExtractor(OntologyExtractor):
    kind = "relations"

    def prepare(self) -> None:
        self.entities = self.registry.get(EntityIndex)

    def extract(self, ontologies: Sequence[Ontology]) -> None:
        self.store.recreate("relations", RELATIONS_SQL)

        rows = []
        for cls in self.entities.entities(EntityKind.CLASS):
            chains: set[Chain] = set()
            for ontology in ontologies:
                expressions = ontology.superclasses(cls) + ontology.equivalent_classes(cls)
                for expression in expressions:
                    if expression.is_anonymous:
                        chains |= unfold(expression)

            start = self.entities.require(cls)
            for chain in sorted(chains, key=_chain_key):
                if not chain.properties:
                    continue
                path = ",".join(str(self.entities.require(p)) for p in chain.properties)
                rows.append((start, path, self.entities.require(chain.end)))

        self.store.executemany('INSERT INTO relations (start, chain, "end") VALUES (?, ?, ?)', rows)
        logger.info(f"{len(rows)} relations found")

    def get_relations(self, cls: EntityRef) -> set[Chain]:
        rows = self.store.query(
            'SELECT chain, "end" FROM relations WHERE start = ?', (self.entities.require(cls),)
        )
        result = set()
        for row in rows:
            properties = tuple(self.entities.resolve(int(field)) for field in row[0].split(","))
            result.add(Chain(properties, self.entities.resolve(row[1])))
        return result


def _chain_key(chain: Chain) -> tuple:
    return tuple(p.iri for p in chain.properties), chain.end.iri
