"""Ontology model and the rdflib-based loader."""

from ontosql.ontology.loader import load_ontologies, load_ontology
from ontosql.ontology.model import (
    OWL_THING,
    RDFS_LABEL,
    Annotation,
    AnnotationAssertion,
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

__all__ = [
    "Annotation",
    "AnnotationAssertion",
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
    "load_ontologies",
    "load_ontology",
]
