"""Tests for extraction over large ontologies."""

import pytest

from ontosql.extractors import EntityIndex
from ontosql.ontology import (
    RDFS_LABEL,
    AnnotationAssertion,
    Entity,
    NamedClass,
    ObjectSomeValuesFrom,
    Ontology,
    SubClassOf,
)
from ontosql.pipeline import Pipeline

EX = "http://example.org/"

PART_OF = Entity.object_property(EX + "partOf")
LABEL = Entity.annotation_property(RDFS_LABEL)


def binary_tree(size):
    """``size`` classes; each non-root class is part of, and a subclass of, its parent."""
    axioms = []
    for i in range(size):
        iri = f"{EX}C{i}"
        axioms.append(AnnotationAssertion(iri, LABEL, f"class {i}"))
        if i:
            parent = NamedClass(f"{EX}C{(i - 1) // 2}")
            axioms.append(SubClassOf(NamedClass(iri), parent))
            axioms.append(SubClassOf(NamedClass(iri), ObjectSomeValuesFrom(PART_OF, parent)))
    return Ontology(iri=EX + f"tree{size}", axioms=tuple(axioms))


@pytest.fixture
def axiom_scans(monkeypatch):
    """Record every Ontology.axioms_of call."""
    calls = []
    original = Ontology.axioms_of

    def counting(self, axiom_type):
        calls.append(axiom_type)
        return original(self, axiom_type)

    monkeypatch.setattr(Ontology, "axioms_of", counting)
    return calls


class TestLargeOntologies:
    """Tests for extraction cost as the ontology grows."""

    @pytest.mark.parametrize("size", [200, 3000])
    def test_row_counts(self, run_pipeline, store, size):
        run_pipeline([binary_tree(size)], ["relations", "names"])
        assert store.scalar("SELECT COUNT(*) FROM relations") == size - 1
        assert store.scalar("SELECT COUNT(*) FROM names") == size
        # C0..Cn, partOf, rdfs:label and owl:Thing
        assert store.scalar("SELECT COUNT(*) FROM entities") == size + 3

    def test_axiom_scans_do_not_grow_with_size(self, store, build_config, axiom_scans):
        counts = []
        for size in (200, 3000):
            axiom_scans.clear()
            Pipeline(build_config(["relations", "names"]), store, [binary_tree(size)]).run()
            counts.append(len(axiom_scans))
        assert counts[0] == counts[1]

    def test_ids_follow_signature_order(self, run_pipeline):
        """Test that batched inserts still number entities by kind then IRI."""
        pipeline = run_pipeline([binary_tree(50)])
        index = pipeline.registry.get(EntityIndex)
        ids = [index.require(entity) for entity in sorted(binary_tree(50).signature())]
        assert ids == sorted(ids)
        assert index.count() == 53
