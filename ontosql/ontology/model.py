"""In-memory ontology model consumed by the extractors.

Only the axioms the extractors read are modelled: class and property
hierarchies, equivalence, disjointness, the transitive/reflexive property
characteristics and annotation assertions. Class expressions cover named
classes, existential and universal restrictions and the three boolean
constructors.

Example:
    A = NamedClass("http://example.org/A")
    B = NamedClass("http://example.org/B")
    part_of = Entity.object_property("http://example.org/partOf")

    onto = Ontology(
        iri="http://example.org/onto",
        axioms=(
            SubClassOf(A, B),
            SubClassOf(A, ObjectSomeValuesFrom(part_of, B)),
        ),
    )
    onto.superclasses(A)   # [NamedClass(B), ObjectSomeValuesFrom(...)]
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Iterable, Optional, Union

__all__ = [
    "Annotation",
    "AnnotationAssertion",
    "Axiom",
    "ClassExpression",
    "DisjointClasses",
    "Entity",
    "EntityKind",
    "EquivalentClasses",
    "NamedClass",
    "OWL_THING",
    "ObjectAllValuesFrom",
    "ObjectComplementOf",
    "ObjectIntersectionOf",
    "ObjectSomeValuesFrom",
    "ObjectUnionOf",
    "Ontology",
    "PropertyCharacteristic",
    "RDFS_LABEL",
    "SubClassOf",
    "SubObjectPropertyOf",
]

OWL_THING_IRI = "http://www.w3.org/2002/07/owl#Thing"
RDFS_LABEL = "http://www.w3.org/2000/01/rdf-schema#label"


class EntityKind(str, Enum):
    """Kinds of named ontology entities."""

    CLASS = "Class"
    OBJECT_PROPERTY = "ObjectProperty"
    ANNOTATION_PROPERTY = "AnnotationProperty"
    DATA_PROPERTY = "DataProperty"
    NAMED_INDIVIDUAL = "NamedIndividual"
    DATATYPE = "Datatype"


@dataclass(frozen=True, order=True)
class Entity:
    """A named entity: kind plus IRI."""

    kind: EntityKind
    iri: str

    @classmethod
    def owl_class(cls, iri: str) -> "Entity":
        return cls(EntityKind.CLASS, iri)

    @classmethod
    def object_property(cls, iri: str) -> "Entity":
        return cls(EntityKind.OBJECT_PROPERTY, iri)

    @classmethod
    def annotation_property(cls, iri: str) -> "Entity":
        return cls(EntityKind.ANNOTATION_PROPERTY, iri)

    @property
    def is_class(self) -> bool:
        return self.kind == EntityKind.CLASS

    def __str__(self) -> str:
        return f"{self.kind.value}({self.iri})"


OWL_THING = Entity.owl_class(OWL_THING_IRI)


# =============================================================================
# Class expressions
# =============================================================================


@dataclass(frozen=True)
class NamedClass:
    iri: str

    is_anonymous = False

    @property
    def entity(self) -> Entity:
        return Entity.owl_class(self.iri)


@dataclass(frozen=True)
class ObjectSomeValuesFrom:
    """``property some filler``"""

    property: Entity
    filler: "ClassExpression"

    is_anonymous = True


@dataclass(frozen=True)
class ObjectAllValuesFrom:
    """``property only filler``"""

    property: Entity
    filler: "ClassExpression"

    is_anonymous = True


@dataclass(frozen=True)
class ObjectIntersectionOf:
    operands: tuple["ClassExpression", ...]

    is_anonymous = True


@dataclass(frozen=True)
class ObjectUnionOf:
    operands: tuple["ClassExpression", ...]

    is_anonymous = True


@dataclass(frozen=True)
class ObjectComplementOf:
    operand: "ClassExpression"

    is_anonymous = True


ClassExpression = Union[
    NamedClass,
    ObjectSomeValuesFrom,
    ObjectAllValuesFrom,
    ObjectIntersectionOf,
    ObjectUnionOf,
    ObjectComplementOf,
]


def _expression_entities(expr: ClassExpression) -> Iterable[Entity]:
    if isinstance(expr, NamedClass):
        yield expr.entity
    elif isinstance(expr, (ObjectSomeValuesFrom, ObjectAllValuesFrom)):
        yield expr.property
        yield from _expression_entities(expr.filler)
    elif isinstance(expr, (ObjectIntersectionOf, ObjectUnionOf)):
        for operand in expr.operands:
            yield from _expression_entities(operand)
    elif isinstance(expr, ObjectComplementOf):
        yield from _expression_entities(expr.operand)


# =============================================================================
# Axioms
# =============================================================================


@dataclass(frozen=True)
class SubClassOf:
    sub: ClassExpression
    sup: ClassExpression

    def entities(self) -> Iterable[Entity]:
        yield from _expression_entities(self.sub)
        yield from _expression_entities(self.sup)


@dataclass(frozen=True)
class EquivalentClasses:
    operands: tuple[ClassExpression, ...]

    def entities(self) -> Iterable[Entity]:
        for operand in self.operands:
            yield from _expression_entities(operand)


@dataclass(frozen=True)
class DisjointClasses:
    operands: tuple[ClassExpression, ...]

    def entities(self) -> Iterable[Entity]:
        for operand in self.operands:
            yield from _expression_entities(operand)


@dataclass(frozen=True)
class SubObjectPropertyOf:
    sub: Entity
    sup: Entity

    def entities(self) -> Iterable[Entity]:
        yield self.sub
        yield self.sup


@dataclass(frozen=True)
class PropertyCharacteristic:
    """An object property declared ``transitive`` or ``reflexive``."""

    property: Entity
    characteristic: str

    def entities(self) -> Iterable[Entity]:
        yield self.property


@dataclass(frozen=True)
class AnnotationAssertion:
    """``subject property value`` where value is a literal or an IRI.

    Attributes:
        subject: IRI of the annotated entity
        property: Annotation property
        value: Lexical form of the literal, or the IRI
        language: Language tag of the literal, if any
        is_literal: False when ``value`` is an IRI
    """

    subject: str
    property: Entity
    value: str
    language: Optional[str] = None
    is_literal: bool = True

    def entities(self) -> Iterable[Entity]:
        yield self.property


@dataclass(frozen=True)
class Annotation:
    value: str
    language: Optional[str] = None
    is_literal: bool = True


Axiom = Union[
    SubClassOf,
    EquivalentClasses,
    DisjointClasses,
    SubObjectPropertyOf,
    PropertyCharacteristic,
    AnnotationAssertion,
]


# =============================================================================
# Ontology
# =============================================================================


@dataclass(frozen=True)
class Ontology:
    """A loaded ontology: identity, declared entities and asserted axioms.

    ``imports`` lists the IRIs named by ``owl:imports``; the imported
    ontologies themselves are separate Ontology objects, see
    :func:`ontosql.ontology.load_ontologies`. Class and annotation lookups
    read indexes built on first use.
    """

    iri: str
    version_iri: Optional[str] = None
    entities: frozenset[Entity] = field(default_factory=frozenset)
    axioms: tuple[Axiom, ...] = ()
    imports: tuple[str, ...] = ()

    def signature(self) -> set[Entity]:
        """Declared entities plus every entity an axiom refers to."""
        result = set(self.entities)
        for axiom in self.axioms:
            result.update(axiom.entities())
        return result

    def axioms_of(self, axiom_type: type) -> list:
        return [axiom for axiom in self.axioms if isinstance(axiom, axiom_type)]

    @cached_property
    def _superclass_index(self) -> dict[NamedClass, list[ClassExpression]]:
        index: dict[NamedClass, list[ClassExpression]] = defaultdict(list)
        for axiom in self.axioms_of(SubClassOf):
            if isinstance(axiom.sub, NamedClass):
                index[axiom.sub].append(axiom.sup)
        return index

    @cached_property
    def _equivalent_index(self) -> dict[NamedClass, list[ClassExpression]]:
        index: dict[NamedClass, list[ClassExpression]] = defaultdict(list)
        for axiom in self.axioms_of(EquivalentClasses):
            for operand in dict.fromkeys(axiom.operands):
                if isinstance(operand, NamedClass):
                    index[operand].extend(op for op in axiom.operands if op != operand)
        return index

    @cached_property
    def _annotation_index(self) -> dict[str, list[AnnotationAssertion]]:
        index: dict[str, list[AnnotationAssertion]] = defaultdict(list)
        for axiom in self.axioms_of(AnnotationAssertion):
            index[axiom.subject].append(axiom)
        return index

    @cached_property
    def _characteristics(self) -> frozenset[PropertyCharacteristic]:
        return frozenset(self.axioms_of(PropertyCharacteristic))

    def superclasses(self, cls: Union[Entity, NamedClass]) -> list[ClassExpression]:
        """Superclass expressions asserted for the named class ``cls``."""
        return list(self._superclass_index.get(_as_named(cls), ()))

    def equivalent_classes(self, cls: Union[Entity, NamedClass]) -> list[ClassExpression]:
        """Expressions asserted equivalent to the named class ``cls``."""
        return list(self._equivalent_index.get(_as_named(cls), ()))

    def sub_properties(self, prop: Entity) -> list[Entity]:
        """Direct asserted sub-properties of ``prop``."""
        return [axiom.sub for axiom in self.axioms_of(SubObjectPropertyOf) if axiom.sup == prop]

    def is_transitive(self, prop: Entity) -> bool:
        return PropertyCharacteristic(prop, "transitive") in self._characteristics

    def is_reflexive(self, prop: Entity) -> bool:
        return PropertyCharacteristic(prop, "reflexive") in self._characteristics

    def annotations(self, subject: str, prop: Optional[Entity] = None) -> list[Annotation]:
        """Annotation values on ``subject``, optionally restricted to one property."""
        return [
            Annotation(axiom.value, axiom.language, axiom.is_literal)
            for axiom in self._annotation_index.get(subject, ())
            if prop is None or axiom.property == prop
        ]


def _as_named(cls: Union[Entity, NamedClass]) -> NamedClass:
    if isinstance(cls, Entity):
        return NamedClass(cls.iri)
    return cls
