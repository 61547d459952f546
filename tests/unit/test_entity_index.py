"""Tests for EntityIndex.

Tests:
- Id assignment from ontology signatures
- assign / lookup / require / resolve semantics
- Entity-ontology association and extras
"""

import pytest

from ontosql.errors import ClosureError, StoreError
from ontosql.extractors import EntityIndex, ExtractorRegistry
from ontosql.ontology import (
    OWL_THING,
    Entity,
    EntityKind,
    NamedClass,
    ObjectSomeValuesFrom,
    Ontology,
    SubClassOf,
)

EX = "http://example.org/"

PART_OF = Entity.object_property(EX + "partOf")


def cls(name):
    return Entity.owl_class(EX + name)


@pytest.fixture
def ontologies():
    first = Ontology(
        iri=EX + "first",
        axioms=(
            SubClassOf(NamedClass(EX + "B"), NamedClass(EX + "A")),
            SubClassOf(NamedClass(EX + "C"), ObjectSomeValuesFrom(PART_OF, NamedClass(EX + "A"))),
        ),
    )
    second = Ontology(
        iri=EX + "second",
        version_iri=EX + "second/2",
        entities=frozenset({cls("A"), cls("D")}),
    )
    return [first, second]


@pytest.fixture
def index(run_pipeline, ontologies):
    pipeline = run_pipeline(ontologies)
    return pipeline.registry.get(EntityIndex)


# =============================================================================
# Extraction Tests
# =============================================================================


class TestExtraction:
    """Tests for EntityIndex.extract."""

    def test_every_entity_has_an_id(self, index):
        """Test that the union of signatures plus owl:Thing is indexed."""
        assert set(index.entities()) == {cls("A"), cls("B"), cls("C"), cls("D"), PART_OF, OWL_THING}
        assert index.count() == 6

    def test_ids_are_sorted_within_an_ontology(self, index):
        """Test that ids follow kind then IRI order of the first ontology."""
        assert index.require(cls("A")) < index.require(cls("B")) < index.require(cls("C"))
        assert index.require(cls("C")) < index.require(PART_OF)

    def test_kind_filter(self, index):
        assert index.count(EntityKind.OBJECT_PROPERTY) == 1
        assert index.entities(EntityKind.OBJECT_PROPERTY) == [PART_OF]
        assert len(index.ids(EntityKind.CLASS)) == 5

    def test_defining_ontologies(self, index):
        """Test the entity/ontology association."""
        assert index.defining_ontologies(cls("A")) == [
            (EX + "first", None),
            (EX + "second", EX + "second/2"),
        ]
        assert index.defining_ontologies(cls("D")) == [(EX + "second", EX + "second/2")]
        assert index.defining_ontologies(cls("Unknown")) == []

    def test_reextraction_restarts_ids(self, run_pipeline, ontologies):
        """Test that a full run rebuilds the table from scratch."""
        first = run_pipeline(ontologies).registry.get(EntityIndex)
        ids = {entity: first.require(entity) for entity in first.entities()}
        second = run_pipeline(ontologies).registry.get(EntityIndex)
        assert {entity: second.require(entity) for entity in second.entities()} == ids

    def test_unregistered_ontology(self, store, ontologies):
        """Test that ontologies must be registered before indexing."""
        registry = ExtractorRegistry(store)
        index = registry.get(EntityIndex)
        store.executescript(
            "CREATE TABLE ontologies (id INTEGER PRIMARY KEY, ontology_iri TEXT, version_iri TEXT)"
        )
        with pytest.raises(StoreError, match="Unable to find ontology"):
            index.extract(ontologies)


# =============================================================================
# Lookup Tests
# =============================================================================


class TestLookup:
    """Tests for the id lookups."""

    def test_lookup_unknown(self, index):
        """Test that lookups of unknown entities return None."""
        assert index.lookup(cls("Unknown")) is None

    def test_lookup_miss_is_not_cached(self, index):
        """Test that an entity assigned after a miss is found."""
        assert index.lookup(cls("Late")) is None
        new_id = index.assign(cls("Late"))
        assert index.lookup(cls("Late")) == new_id

    def test_assign_is_idempotent(self, index):
        assert index.assign(cls("A")) == index.require(cls("A"))

    def test_require_unknown(self, index):
        with pytest.raises(ClosureError, match="Unregistered entity"):
            index.require(cls("Unknown"))

    def test_require_passes_ids_through(self, index):
        assert index.require(42) == 42

    def test_resolve(self, index):
        """Test the id -> entity direction."""
        assert index.resolve(index.require(PART_OF)) == PART_OF
        assert index.resolve(9999) is None
        assert index.resolve_all([index.require(cls("A")), 9999]) == {cls("A")}

    def test_same_iri_different_kinds(self, index):
        """Test that the kind is part of an entity's identity."""
        punned = Entity.object_property(EX + "A")
        assert index.lookup(punned) is None
        assert index.assign(punned) != index.require(cls("A"))


# =============================================================================
# Extras Tests
# =============================================================================


class TestExtras:
    """Tests for the extras key/value table."""

    def test_roundtrip(self, index):
        assert index.get_extra("release") is None
        index.set_extra("release", "2024-01")
        index.set_extra("release", "2024-02")
        assert index.get_extra("release") == "2024-02"

    def test_long_tag(self, index):
        with pytest.raises(ValueError, match="longer than 256"):
            index.set_extra("x" * 257, "value")
