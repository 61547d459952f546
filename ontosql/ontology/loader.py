"""Load OWL ontologies serialized as RDF into the in-memory model.

Uses rdflib to parse any serialization it supports (RDF/XML, Turtle,
N-Triples, JSON-LD, ...) and walks the graph for the constructs the
extractors need. Blank-node class expressions (restrictions and boolean
constructors) are converted recursively; constructs the model does not
cover are skipped with a debug message.

Example:
    onto = load_ontology("file:///data/go.owl")
    onto = load_ontology(data=turtle_text, format="turtle")
    closure = load_ontologies(["go.owl"], {"http://purl.obolibrary.org/obo/ro.owl": "ro.owl"})
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Mapping, Optional

from rdflib import BNode, Graph, Literal, URIRef
from rdflib.collection import Collection
from rdflib.namespace import OWL, RDF, RDFS

from ontosql.errors import OntologyLoadError
from ontosql.ontology.model import (
    AnnotationAssertion,
    ClassExpression,
    DisjointClasses,
    Entity,
    EntityKind,
    EquivalentClasses,
    NamedClass,
    ObjectAllValuesFrom,
    ObjectComplementOf,
    ObjectIntersectionOf,
    ObjectSomeValuesFrom,
    ObjectUnionOf,
    Ontology,
    PropertyCharacteristic,
    SubClassOf,
    SubObjectPropertyOf,
)

__all__ = ["load_ontologies", "load_ontology"]

logger = logging.getLogger(__name__)

_DECLARATIONS = {
    OWL.Class: EntityKind.CLASS,
    OWL.ObjectProperty: EntityKind.OBJECT_PROPERTY,
    OWL.TransitiveProperty: EntityKind.OBJECT_PROPERTY,
    OWL.ReflexiveProperty: EntityKind.OBJECT_PROPERTY,
    OWL.AnnotationProperty: EntityKind.ANNOTATION_PROPERTY,
    OWL.DatatypeProperty: EntityKind.DATA_PROPERTY,
    OWL.NamedIndividual: EntityKind.NAMED_INDIVIDUAL,
    RDFS.Datatype: EntityKind.DATATYPE,
}

_BUILTIN_ANNOTATION_PROPERTIES = (RDFS.label, RDFS.comment, RDFS.seeAlso, RDFS.isDefinedBy)


def load_ontology(
    source: Optional[str] = None,
    *,
    data: Optional[str] = None,
    format: Optional[str] = None,
) -> Ontology:
    """Parse one ontology document.

    Args:
        source: Location (path or URL) of the document
        data: Serialized document, used instead of ``source``
        format: rdflib format name; guessed from ``source`` when omitted

    Raises:
        OntologyLoadError: If the document cannot be parsed or has no ontology IRI
    """
    graph = Graph()
    try:
        if data is not None:
            graph.parse(data=data, format=format or "turtle")
        else:
            graph.parse(source, format=format)
    except Exception as e:
        raise OntologyLoadError(f"Cannot load ontology {source or '<data>'}: {e}") from e

    return _GraphReader(graph, source).read()


def load_ontologies(
    sources: Iterable[str], locations: Optional[Mapping[str, str]] = None
) -> list[Ontology]:
    """Load ontology documents together with their imports closure.

    The listed documents come first, in order, followed breadth first by
    every ontology reachable through ``owl:imports``. Each ontology IRI
    appears once; later documents declaring an IRI already loaded are
    skipped.

    Args:
        sources: Locations of the documents to load
        locations: Imported ontology IRI -> location to load it from;
            imports without an entry are loaded from their IRI

    Raises:
        OntologyLoadError: If a document or one of its imports cannot be loaded
    """
    locations = locations or {}
    loaded: dict[str, Ontology] = {}
    pending: deque[Ontology] = deque()

    def add(ontology: Ontology, source: str) -> None:
        if ontology.iri in loaded:
            logger.debug(f"Skipping {source}: ontology {ontology.iri} is already loaded")
            return
        loaded[ontology.iri] = ontology
        pending.append(ontology)

    for source in sources:
        logger.info(f"Loading ontology {source}")
        add(load_ontology(source), source)

    requested = set(loaded)
    while pending:
        importer = pending.popleft()
        for iri in importer.imports:
            if iri in requested:
                continue
            requested.add(iri)
            location = locations.get(iri, iri)
            logger.info(f"Loading ontology {iri} imported by {importer.iri} from {location}")
            imported = load_ontology(location)
            if imported.iri != iri:
                logger.warning(f"{location} declares ontology {imported.iri}, expected {iri}")
            add(imported, location)

    return list(loaded.values())


class _GraphReader:
    def __init__(self, graph: Graph, source: Optional[str]) -> None:
        self.graph = graph
        self.source = source
        self.entities: set[Entity] = set()
        self.axioms: list = []

    def read(self) -> Ontology:
        ontology_node = next(
            (s for s in self.graph.subjects(RDF.type, OWL.Ontology) if isinstance(s, URIRef)),
            None,
        )
        if ontology_node is None:
            raise OntologyLoadError(f"Ontology {self.source or '<data>'} has no IRI")
        version = self.graph.value(ontology_node, OWL.versionIRI)
        imports = sorted(
            str(node)
            for node in self.graph.objects(ontology_node, OWL.imports)
            if isinstance(node, URIRef)
        )

        self._read_declarations()
        self._read_class_axioms()
        self._read_property_axioms()
        self._read_annotations()

        logger.debug(
            f"Read {ontology_node}: {len(self.entities)} entities, {len(self.axioms)} axioms"
        )
        return Ontology(
            iri=str(ontology_node),
            version_iri=str(version) if version is not None else None,
            entities=frozenset(self.entities),
            axioms=tuple(dict.fromkeys(self.axioms)),
            imports=tuple(imports),
        )

    # ==================== Declarations ====================

    def _read_declarations(self) -> None:
        for rdf_type, kind in _DECLARATIONS.items():
            for node in self.graph.subjects(RDF.type, rdf_type):
                if isinstance(node, URIRef):
                    self.entities.add(Entity(kind, str(node)))

    def _object_property(self, node) -> Optional[Entity]:
        if not isinstance(node, URIRef):
            logger.debug(f"Skipping anonymous property expression {node}")
            return None
        return Entity.object_property(str(node))

    # ==================== Class expressions ====================

    def _expression(self, node) -> Optional[ClassExpression]:
        if isinstance(node, URIRef):
            return NamedClass(str(node))
        if not isinstance(node, BNode):
            return None

        graph = self.graph
        on_property = graph.value(node, OWL.onProperty)
        if on_property is not None:
            prop = self._object_property(on_property)
            if prop is None:
                return None
            some = graph.value(node, OWL.someValuesFrom)
            if some is not None:
                filler = self._expression(some)
                return ObjectSomeValuesFrom(prop, filler) if filler is not None else None
            only = graph.value(node, OWL.allValuesFrom)
            if only is not None:
                filler = self._expression(only)
                return ObjectAllValuesFrom(prop, filler) if filler is not None else None
            logger.debug(f"Skipping unsupported restriction on {on_property}")
            return None

        for predicate, constructor in (
            (OWL.intersectionOf, ObjectIntersectionOf),
            (OWL.unionOf, ObjectUnionOf),
        ):
            members = graph.value(node, predicate)
            if members is not None:
                operands = self._expressions(Collection(graph, members))
                return constructor(operands) if operands is not None else None

        complement = graph.value(node, OWL.complementOf)
        if complement is not None:
            operand = self._expression(complement)
            return ObjectComplementOf(operand) if operand is not None else None

        return None

    def _expressions(self, nodes) -> Optional[tuple[ClassExpression, ...]]:
        result = []
        for node in nodes:
            expr = self._expression(node)
            if expr is None:
                return None
            result.append(expr)
        return tuple(result)

    # ==================== Axioms ====================

    def _read_class_axioms(self) -> None:
        graph = self.graph

        for sub, sup in graph.subject_objects(RDFS.subClassOf):
            sub_expr, sup_expr = self._expression(sub), self._expression(sup)
            if sub_expr is not None and sup_expr is not None:
                self.axioms.append(SubClassOf(sub_expr, sup_expr))

        for first, second in graph.subject_objects(OWL.equivalentClass):
            operands = self._expressions((first, second))
            if operands is not None:
                self.axioms.append(EquivalentClasses(operands))

        for first, second in graph.subject_objects(OWL.disjointWith):
            operands = self._expressions((first, second))
            if operands is not None:
                self.axioms.append(DisjointClasses(operands))

        for node in graph.subjects(RDF.type, OWL.AllDisjointClasses):
            members = graph.value(node, OWL.members)
            if members is None:
                continue
            operands = self._expressions(Collection(graph, members))
            if operands is not None:
                self.axioms.append(DisjointClasses(operands))

    def _read_property_axioms(self) -> None:
        graph = self.graph

        for sub, sup in graph.subject_objects(RDFS.subPropertyOf):
            sub_entity = Entity.object_property(str(sub))
            if sub_entity not in self.entities or not isinstance(sup, URIRef):
                continue
            self.axioms.append(SubObjectPropertyOf(sub_entity, Entity.object_property(str(sup))))

        for rdf_type, characteristic in (
            (OWL.TransitiveProperty, "transitive"),
            (OWL.ReflexiveProperty, "reflexive"),
        ):
            for node in graph.subjects(RDF.type, rdf_type):
                prop = self._object_property(node)
                if prop is not None:
                    self.axioms.append(PropertyCharacteristic(prop, characteristic))

    def _read_annotations(self) -> None:
        properties = set(_BUILTIN_ANNOTATION_PROPERTIES)
        properties.update(
            URIRef(entity.iri)
            for entity in self.entities
            if entity.kind == EntityKind.ANNOTATION_PROPERTY
        )

        for prop in sorted(properties):
            prop_entity = Entity.annotation_property(str(prop))
            for subject, value in self.graph.subject_objects(prop):
                if not isinstance(subject, URIRef):
                    continue
                if isinstance(value, Literal):
                    self.axioms.append(
                        AnnotationAssertion(str(subject), prop_entity, str(value), value.language)
                    )
                elif isinstance(value, URIRef):
                    self.axioms.append(
                        AnnotationAssertion(str(subject), prop_entity, str(value), None, False)
                    )
