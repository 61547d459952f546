"""Pydantic models for the ontosql configuration document.

The configuration is a JSON object:

    {
        "variables": {"root": "/data/ontologies"},
        "connection": {
            "database": "${root}/ontosql.db",
            "username": "ontosql",
            "password": "secret"
        },
        "ontologies": ["file://${root}/go.owl"],
        "import_locations": {
            "http://purl.obolibrary.org/obo/ro.owl": "${root}/ro.owl"
        },
        "extractors": [
            "hierarchy",
            "leaves",
            {"kind": "intrinsic_ic", "zhou_k": 0.5}
        ]
    }

Reading happens in two passes. A strict pydantic model checks the shape
of the raw document so that every structural error is reported with its
path; then every string is interpolated through the VariableResolver and
the resolved Config is built.

``import_locations`` maps the IRI named by an ``owl:imports`` to the
document it is loaded from; imports without an entry are fetched from
their IRI.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from ontosql.config.variables import VariableResolver
from ontosql.errors import ConfigurationError, OntoSQLError, index_part

__all__ = [
    "CONFIG_FILE",
    "Config",
    "ConnectionSettings",
    "ExtractorSpec",
    "load_config",
    "validation_error_to_path",
]

logger = logging.getLogger(__name__)

CONFIG_FILE = "ontosql-config.json"

# pydantic error type -> message in the document's vocabulary
_MESSAGES = {
    "missing": "is mandatory",
    "string_type": "must be a string",
    "dict_type": "must be a JSON object",
    "model_type": "must be a JSON object",
    "list_type": "must be a JSON array",
    "bool_type": "must be a boolean",
    "int_type": "must be an integer",
    "float_type": "must be a number",
    "extra_forbidden": "unexpected parameter",
}


def validation_error_to_path(exc: ValidationError) -> tuple[tuple[str, ...], str]:
    """Convert the first error of a pydantic ValidationError to ``(path, message)``."""
    error = exc.errors()[0]
    path = tuple(
        index_part(part) if isinstance(part, int) else str(part) for part in error["loc"]
    )
    message = _MESSAGES.get(error["type"])
    if message is None:
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
    return path, message


# =============================================================================
# Raw document shape
# =============================================================================


class _RawConnection(BaseModel):
    model_config = ConfigDict(strict=True)

    database: StrictStr
    username: StrictStr
    password: StrictStr
    host: Optional[StrictStr] = None


class _RawDocument(BaseModel):
    model_config = ConfigDict(strict=True)

    variables: dict[str, StrictStr] = Field(default_factory=dict)
    connection: _RawConnection
    ontologies: list[StrictStr] = Field(default_factory=list)
    import_locations: dict[str, StrictStr] = Field(default_factory=dict)
    extractors: list[Any] = Field(default_factory=list)


# =============================================================================
# Resolved configuration
# =============================================================================


class ConnectionSettings(BaseModel):
    """Parameters for reaching the relational store.

    The SQLite backend only uses ``database`` (a file path or ``:memory:``);
    the other fields are kept so that one configuration file can describe a
    server-backed store as well.
    """

    host: str = "localhost"
    database: str
    username: str = ""
    password: str = ""


class ExtractorSpec(BaseModel):
    """A declarative request for an extractor.

    Attributes:
        kind: Registered extractor kind (e.g. "hierarchy")
        parameters: Option name -> JSON value, validated by the extractor kind
    """

    kind: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_parameterless(self) -> bool:
        return not self.parameters


class Config(BaseModel):
    """The resolved configuration consumed by the pipeline."""

    variables: dict[str, str] = Field(default_factory=dict)
    connection: ConnectionSettings
    ontologies: list[str] = Field(default_factory=list)
    import_locations: dict[str, str] = Field(default_factory=dict)
    extractors: list[ExtractorSpec] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Any) -> "Config":
        """Build a Config from a parsed JSON document.

        Raises:
            ConfigurationError: With the path of the first offending field
        """
        if not isinstance(doc, dict):
            raise ConfigurationError("configuration must be a JSON object")

        try:
            raw = _RawDocument.model_validate(doc)
        except ValidationError as e:
            path, message = validation_error_to_path(e)
            raise ConfigurationError(message, *path) from e

        resolver = VariableResolver(raw.variables)

        def interpolate(value: str, *path: str) -> str:
            try:
                return resolver.resolve(value)
            except OntoSQLError as e:
                raise e.with_prefix(*path) from e

        connection = ConnectionSettings(
            host=(
                interpolate(raw.connection.host, "connection", "host")
                if raw.connection.host is not None
                else "localhost"
            ),
            database=interpolate(raw.connection.database, "connection", "database"),
            username=interpolate(raw.connection.username, "connection", "username"),
            password=interpolate(raw.connection.password, "connection", "password"),
        )

        ontologies: list[str] = []
        for i, source in enumerate(raw.ontologies):
            resolved = interpolate(source, "ontologies", index_part(i)).strip()
            if not resolved:
                raise ConfigurationError("must not be empty", "ontologies", index_part(i))
            if resolved in ontologies:
                raise ConfigurationError(
                    f"Duplicate ontology uri {resolved}", "ontologies", index_part(i)
                )
            ontologies.append(resolved)

        import_locations = {
            iri: interpolate(location, "import_locations", iri)
            for iri, location in raw.import_locations.items()
        }

        extractors = [
            _extractor_spec(element, interpolate, ("extractors", index_part(i)))
            for i, element in enumerate(raw.extractors)
        ]

        logger.debug(
            f"Configuration read: {len(resolver)} variables, {len(ontologies)} ontologies, "
            f"{len(extractors)} extractors"
        )
        return cls(
            variables=dict(resolver.values),
            connection=connection,
            ontologies=ontologies,
            import_locations=import_locations,
            extractors=extractors,
        )


def _extractor_spec(element: Any, interpolate, path: tuple[str, ...]) -> ExtractorSpec:
    """Turn one entry of the ``extractors`` array into an ExtractorSpec."""
    if isinstance(element, str):
        return ExtractorSpec(kind=interpolate(element, *path))

    if not isinstance(element, dict):
        raise ConfigurationError("must be either a string or a JSON object", *path)

    if "kind" not in element:
        raise ConfigurationError('must have a "kind" element', *path)
    kind = element["kind"]
    if not isinstance(kind, str):
        raise ConfigurationError("must be a string", *path, "kind")

    parameters = {key: value for key, value in element.items() if key != "kind"}
    return ExtractorSpec(kind=interpolate(kind, *path, "kind"), parameters=parameters)


def load_config(path: Union[str, Path] = CONFIG_FILE) -> Config:
    """Read and resolve a configuration file.

    Raises:
        ConfigurationError: If the file is not valid JSON or not a valid configuration
        OSError: If the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            doc = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid JSON: {e}") from e
    logger.info(f"Reading configuration from {path}")
    return Config.from_document(doc)
