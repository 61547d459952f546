"""Tests for Pipeline (step selection, validation and execution).

Tests the core functionality:
- Step selection and out-of-range indices
- Validation before any write
- Full runs and partial reruns
- Progress callbacks
"""

import pytest
from unittest.mock import MagicMock, call

from ontosql.errors import ClosureError, ConfigurationError, ExtractorValidationError
from ontosql.extractors import HierarchyExtractor
from ontosql.ontology import NamedClass, Ontology, SubClassOf
from ontosql.pipeline import Pipeline, PipelineStats

EX = "http://example.org/"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def tree():
    return Ontology(
        iri=EX + "tree",
        axioms=(
            SubClassOf(NamedClass(EX + "B"), NamedClass(EX + "A")),
            SubClassOf(NamedClass(EX + "C"), NamedClass(EX + "B")),
        ),
    )


@pytest.fixture
def pipeline(store, tree, build_config):
    """Pipeline with steps: entities, hierarchy, leaves."""
    return Pipeline(build_config(["hierarchy", "leaves"]), store, [tree])


# =============================================================================
# Creation and Selection Tests
# =============================================================================


class TestPipelineCreation:
    """Tests for Pipeline initialization."""

    def test_creation(self, pipeline):
        assert pipeline.progress_callback is None
        assert [spec.kind for spec in pipeline.specs] == ["entities", "hierarchy", "leaves"]

    def test_creation_with_progress_callback(self, store, tree, build_config):
        callback = MagicMock()
        pipeline = Pipeline(build_config(), store, [tree], progress_callback=callback)
        assert pipeline.progress_callback == callback


class TestSelect:
    """Tests for Pipeline.select."""

    def test_all_steps(self, pipeline):
        assert pipeline.select() == [0, 1, 2]

    def test_sorted_and_unique(self, pipeline):
        assert pipeline.select([2, 0, 2]) == [0, 2]

    def test_out_of_range(self, pipeline):
        with pytest.raises(ConfigurationError) as exc_info:
            pipeline.select([1, 3])
        assert str(exc_info.value) == "index 3 is out of range; valid indices are 0 to 2"


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Tests for errors raised before anything is written."""

    def test_unknown_kind_aborts_before_writing(self, store, tree, build_config):
        pipeline = Pipeline(build_config(["hierarchy", "nope"]), store, [tree])
        with pytest.raises(ExtractorValidationError) as exc_info:
            pipeline.run()
        assert str(exc_info.value) == "extractors[1]: unknown extractor kind 'nope'"
        assert store.tables() == []

    def test_bad_options_abort_before_writing(self, store, tree, build_config):
        config = build_config(["hierarchy", {"kind": "leaves", "x": 1}])
        with pytest.raises(ExtractorValidationError) as exc_info:
            Pipeline(config, store, [tree]).run()
        assert str(exc_info.value) == "extractors[1].x: unexpected parameter on extractor leaves"
        assert store.tables() == []

    def test_existing_tables_kept_on_validation_error(self, pipeline, store, tree, build_config):
        """Test that a failing rerun does not wipe the previous results."""
        pipeline.run()
        with pytest.raises(ExtractorValidationError):
            Pipeline(build_config(["hierarchy", "hierarchy"]), store, [tree]).run()
        assert store.table_exists("hierarchy")


# =============================================================================
# Execution Tests
# =============================================================================


class TestRun:
    """Tests for Pipeline.run."""

    def test_full_run(self, pipeline, store):
        stats = pipeline.run()

        assert isinstance(stats, PipelineStats)
        assert stats.steps_run == 3
        assert stats.ontologies_registered == 1
        # A, B, C and owl:Thing
        assert stats.entities_indexed == 4
        assert stats.wiped
        assert {"ontologies", "entities", "hierarchy", "leaves"} <= set(stats.tables)
        assert store.scalar("SELECT COUNT(*) FROM leaves") == 1

    def test_full_run_wipes_unrelated_tables(self, pipeline, store):
        store.executescript("CREATE TABLE scratch (x INTEGER)")
        pipeline.run()
        assert not store.table_exists("scratch")

    def test_partial_run_keeps_tables(self, pipeline, store):
        pipeline.run()
        store.execute("DELETE FROM leaves")

        stats = pipeline.run([2])

        assert stats.steps_run == 1
        assert not stats.wiped
        assert stats.ontologies_registered == 0
        assert store.table_exists("hierarchy")
        assert store.scalar("SELECT COUNT(*) FROM leaves") == 1

    def test_partial_run_registers_new_ontologies(self, pipeline, store, tree, build_config):
        pipeline.run()
        other = Ontology(iri=EX + "other", version_iri=EX + "other/1")
        stats = Pipeline(build_config(["hierarchy", "leaves"]), store, [tree, other]).run([0])
        assert stats.ontologies_registered == 1
        assert store.scalar("SELECT COUNT(*) FROM ontologies") == 2

    def test_missing_prerequisite(self, store, tree, build_config):
        """Test that a step whose input table is missing aborts the run."""
        pipeline = Pipeline(build_config(["leaves", "hierarchy"]), store, [tree])
        with pytest.raises(ClosureError, match="Table hierarchy must be extracted before leaves"):
            pipeline.run()
        assert store.table_exists("entities")
        assert not store.table_exists("hierarchy")

    def test_registry_shared_with_caller(self, pipeline):
        pipeline.run()
        hierarchy = pipeline.registry.get(HierarchyExtractor)
        assert hierarchy.get_max_depth() == 3

    def test_progress_callback(self, store, tree, build_config):
        callback = MagicMock()
        pipeline = Pipeline(
            build_config(["hierarchy", "leaves"]), store, [tree], progress_callback=callback
        )
        pipeline.run()
        assert callback.call_args_list == [
            call("entities", 1, 3),
            call("hierarchy", 2, 3),
            call("leaves", 3, 3),
        ]
