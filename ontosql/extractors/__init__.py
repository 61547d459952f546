"""Extractors and the closed registry of extractor kinds.

Kinds, in the order a typical configuration runs them:

    entities            EntityIndex (always first, not user-selectable)
    hierarchy           reflexive-transitive subclass closure
    extended_hierarchy  closure over a chosen set of object properties
    disjointness        asserted disjoint class pairs
    leaves              classes without subclasses
    intrinsic_ic        seco / zhou / sanchez / leaves IC
    annotations         external annotation files (cacher)
    extrinsic_ic        IC from annotation frequency
    relevance           branching factor, h-index and IC ratios
    relations           property chains from class expressions
    names               labels and synonyms
    owl_annotations     existential restrictions as annotations
"""

from ontosql.extractors.annotations import AnnotationCacher
from ontosql.extractors.base import Cacher, Extractor, ExtractorOptions, OntologyExtractor
from ontosql.extractors.disjointness import DisjointnessExtractor
from ontosql.extractors.entities import EntityIndex
from ontosql.extractors.extended import ExtendedHierarchyExtractor
from ontosql.extractors.extrinsic_ic import ExtrinsicICExtractor
from ontosql.extractors.hierarchy import HierarchyExtractor
from ontosql.extractors.intrinsic_ic import ICMethod, IntrinsicICExtractor
from ontosql.extractors.leaves import LeavesExtractor
from ontosql.extractors.names import NamesExtractor
from ontosql.extractors.owl_annotations import OWLAnnotationsExtractor
from ontosql.extractors.registry import ExtractorRegistry
from ontosql.extractors.relations import Chain, RelationsExtractor
from ontosql.extractors.relevance import MAX_INT, RelevanceExtractor

EXTRACTORS = {
    cls.kind: cls
    for cls in (
        EntityIndex,
        HierarchyExtractor,
        ExtendedHierarchyExtractor,
        DisjointnessExtractor,
        LeavesExtractor,
        IntrinsicICExtractor,
        AnnotationCacher,
        ExtrinsicICExtractor,
        RelevanceExtractor,
        RelationsExtractor,
        NamesExtractor,
        OWLAnnotationsExtractor,
    )
}

__all__ = [
    "AnnotationCacher",
    "Cacher",
    "Chain",
    "DisjointnessExtractor",
    "EXTRACTORS",
    "EntityIndex",
    "ExtendedHierarchyExtractor",
    "Extractor",
    "ExtractorOptions",
    "ExtractorRegistry",
    "ExtrinsicICExtractor",
    "HierarchyExtractor",
    "ICMethod",
    "IntrinsicICExtractor",
    "LeavesExtractor",
    "MAX_INT",
    "NamesExtractor",
    "OWLAnnotationsExtractor",
    "OntologyExtractor",
    "RelationsExtractor",
    "RelevanceExtractor",
]
