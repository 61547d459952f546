"""Tests for the configuration document and command line selections.

Tests:
- Config.from_document structure checks and error paths
- Interpolation of connection fields, ontologies and extractor kinds
- load_config file handling
- parse_indices selection syntax
"""

import json

import pytest

from ontosql.config import Config, ExtractorSpec, load_config, parse_indices
from ontosql.errors import ConfigurationError, UnresolvedVariableError, format_path


def document(**overrides):
    doc = {
        "connection": {"database": "onto.db", "username": "u", "password": "p"},
    }
    doc.update(overrides)
    return doc


# =============================================================================
# Error Path Tests
# =============================================================================


class TestErrorPaths:
    """Tests for rendering of error paths."""

    def test_format_path(self):
        """Test dotted names with appended indices."""
        assert format_path(("extractors", "[2]", "properties", "[0]")) == (
            "extractors[2].properties[0]"
        )
        assert format_path(("connection", "database")) == "connection.database"
        assert format_path(()) == ""

    def test_message_without_path(self):
        """Test that an error without path renders the message only."""
        assert str(ConfigurationError("boom")) == "boom"

    def test_with_prefix(self):
        """Test that with_prefix prepends and keeps the type."""
        error = ConfigurationError("must be a string", "kind")
        prefixed = error.with_prefix("extractors", "[1]")
        assert isinstance(prefixed, ConfigurationError)
        assert str(prefixed) == "extractors[1].kind: must be a string"
        assert error.path == ("kind",)


# =============================================================================
# Document Tests
# =============================================================================


class TestConfigDocument:
    """Tests for Config.from_document."""

    def test_minimal(self):
        """Test a document with only the connection."""
        config = Config.from_document(document())
        assert config.connection.database == "onto.db"
        assert config.connection.host == "localhost"
        assert config.ontologies == []
        assert config.extractors == []

    def test_full(self):
        """Test variables flowing into every interpolated field."""
        config = Config.from_document(
            document(
                variables={"root": "/data", "db": "${root}/onto.db"},
                connection={
                    "database": "${db}",
                    "username": "u",
                    "password": "p$$w",
                    "host": "db.example.org",
                },
                ontologies=["file://${root}/go.owl", " file://${root}/chebi.owl "],
                extractors=["hierarchy", {"kind": "intrinsic_ic", "zhou_k": 0.5}],
            )
        )
        assert config.variables == {"root": "/data", "db": "/data/onto.db"}
        assert config.connection.database == "/data/onto.db"
        assert config.connection.password == "p$w"
        assert config.connection.host == "db.example.org"
        assert config.ontologies == ["file:///data/go.owl", "file:///data/chebi.owl"]
        assert config.extractors == [
            ExtractorSpec(kind="hierarchy"),
            ExtractorSpec(kind="intrinsic_ic", parameters={"zhou_k": 0.5}),
        ]
        assert config.extractors[0].is_parameterless
        assert not config.extractors[1].is_parameterless

    def test_not_an_object(self):
        """Test that the document must be a JSON object."""
        with pytest.raises(ConfigurationError, match="must be a JSON object"):
            Config.from_document(["not", "an", "object"])

    def test_missing_connection(self):
        """Test that connection is mandatory."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document({})
        assert str(exc_info.value) == "connection: is mandatory"

    def test_connection_not_an_object(self):
        """Test the message for a connection of the wrong type."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document({"connection": "onto.db"})
        assert str(exc_info.value) == "connection: must be a JSON object"

    def test_database_not_a_string(self):
        """Test a nested type error."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(
                document(connection={"database": 5, "username": "u", "password": "p"})
            )
        assert str(exc_info.value) == "connection.database: must be a string"

    def test_missing_password(self):
        """Test a missing nested field."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(connection={"database": "x", "username": "u"}))
        assert str(exc_info.value) == "connection.password: is mandatory"

    def test_variable_not_a_string(self):
        """Test that variable values must be strings."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(variables={"a": 1}))
        assert str(exc_info.value) == "variables.a: must be a string"

    def test_ontologies_not_an_array(self):
        """Test that ontologies must be an array."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(ontologies="go.owl"))
        assert str(exc_info.value) == "ontologies: must be a JSON array"

    def test_ontology_not_a_string(self):
        """Test that each ontology is a string."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(ontologies=["go.owl", 3]))
        assert str(exc_info.value) == "ontologies[1]: must be a string"

    def test_duplicate_ontology(self):
        """Test that duplicates are detected after interpolation."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(
                document(variables={"go": "go.owl"}, ontologies=["go.owl", "${go}"])
            )
        assert str(exc_info.value) == "ontologies[1]: Duplicate ontology uri go.owl"

    def test_empty_ontology(self):
        """Test that blank ontology entries are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(ontologies=["   "]))
        assert str(exc_info.value) == "ontologies[0]: must not be empty"

    def test_import_locations(self):
        """Test that import locations are interpolated and default to empty."""
        config = Config.from_document(
            document(
                variables={"root": "/data"},
                import_locations={"http://example.org/ro": "${root}/ro.owl"},
            )
        )
        assert config.import_locations == {"http://example.org/ro": "/data/ro.owl"}
        assert Config.from_document(document()).import_locations == {}

    def test_import_location_not_a_string(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(import_locations={"http://example.org/ro": 1}))
        assert str(exc_info.value) == "import_locations.http://example.org/ro: must be a string"

    def test_unresolved_variable_path(self):
        """Test that interpolation errors carry the field path."""
        with pytest.raises(UnresolvedVariableError) as exc_info:
            Config.from_document(
                document(connection={"database": "${nope}", "username": "u", "password": "p"})
            )
        assert str(exc_info.value) == (
            "connection.database: Unresolved variable reference 'nope'"
        )

    def test_extractor_of_wrong_type(self):
        """Test an extractor entry that is neither string nor object."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(extractors=["hierarchy", 5]))
        assert str(exc_info.value) == (
            "extractors[1]: must be either a string or a JSON object"
        )

    def test_extractor_without_kind(self):
        """Test an extractor object without kind."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(extractors=[{"zhou_k": 0.5}]))
        assert str(exc_info.value) == 'extractors[0]: must have a "kind" element'

    def test_extractor_kind_not_a_string(self):
        """Test an extractor object whose kind is not a string."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_document(document(extractors=[{"kind": 3}]))
        assert str(exc_info.value) == "extractors[0].kind: must be a string"

    def test_extractor_kind_interpolated(self):
        """Test that string extractor entries are interpolated."""
        config = Config.from_document(
            document(variables={"k": "leaves"}, extractors=["${k}"])
        )
        assert config.extractors[0].kind == "leaves"


# =============================================================================
# File Tests
# =============================================================================


class TestLoadConfig:
    """Tests for load_config."""

    def test_load(self, tmp_path):
        """Test loading a configuration file."""
        path = tmp_path / "ontosql-config.json"
        path.write_text(json.dumps(document(extractors=["hierarchy"])))
        config = load_config(path)
        assert config.extractors[0].kind == "hierarchy"

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON is a ConfigurationError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="invalid JSON"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        """Test that a missing file surfaces as OSError."""
        with pytest.raises(OSError):
            load_config(tmp_path / "absent.json")


# =============================================================================
# Selection Tests
# =============================================================================


class TestParseIndices:
    """Tests for parse_indices."""

    def test_single(self):
        assert parse_indices("3") == [3]

    def test_mixed(self):
        """Test ranges and numbers, unordered with overlaps."""
        assert parse_indices("7, 2-4,3 ,0") == [0, 2, 3, 4, 7]

    def test_bad_number(self):
        with pytest.raises(ConfigurationError, match="'x' is not a valid number"):
            parse_indices("1,x")

    def test_bad_range_format(self):
        with pytest.raises(ConfigurationError, match='format is "N-N"'):
            parse_indices("1-2-3")

    def test_non_numeric_range(self):
        with pytest.raises(ConfigurationError, match='format is "N-N"'):
            parse_indices("a-3")

    def test_descending_range(self):
        with pytest.raises(ConfigurationError, match="not in ascending order"):
            parse_indices("5-2")

    def test_degenerate_range(self):
        """Test that a range needs strictly ascending ends."""
        with pytest.raises(ConfigurationError, match="not in ascending order"):
            parse_indices("3-3")
