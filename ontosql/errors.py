"""Error taxonomy for ontosql.

Every error carries a human-readable message and an optional path
pinpointing the offending configuration location. Paths render as
dotted field names with list indices appended directly:

    connection.database: must be a string
    extractors[2].properties[0]: must be a string

Errors are grouped by the stage that raises them:
- ConfigurationError: reading and interpolating the configuration
- ExtractorValidationError: instantiating extractors from their specs
- ClosureError: inconsistent inputs to a closure computation
- StoreError: failures talking to the relational store
- OntologyLoadError: failures loading ontology documents
"""

from __future__ import annotations

from typing import Iterable, Sequence


def format_path(path: Sequence[str]) -> str:
    """Render a path tuple as ``a.b[0].c``."""
    rendered = ""
    for part in path:
        if part.startswith("["):
            rendered += part
        elif rendered:
            rendered += "." + part
        else:
            rendered = part
    return rendered


def index_part(index: int) -> str:
    """Path component for a list index."""
    return f"[{index}]"


class OntoSQLError(Exception):
    """Base class for all ontosql errors.

    Attributes:
        message: Human-readable description of the problem
        path: Sequence of field names / indices locating the problem
    """

    def __init__(self, message: str, *path: str) -> None:
        super().__init__(message)
        self.message = message
        self.path: tuple[str, ...] = tuple(str(p) for p in path)

    def with_prefix(self, *prefix: str) -> "OntoSQLError":
        """Return a copy of this error with ``prefix`` prepended to its path."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        Exception.__init__(clone, self.message)
        clone.path = tuple(str(p) for p in prefix) + self.path
        clone.__cause__ = self.__cause__
        return clone

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{format_path(self.path)}: {self.message}"


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(OntoSQLError):
    """Malformed or missing configuration, or a bad variable reference."""


class VariableSyntaxError(ConfigurationError):
    """A string does not follow the ``$$`` / ``${name}`` grammar."""


class UnresolvedVariableError(ConfigurationError):
    """A string references a variable that was never declared."""

    def __init__(self, variable: str, *path: str) -> None:
        super().__init__(f"Unresolved variable reference '{variable}'", *path)
        self.variable = variable


class RecursiveVariableError(ConfigurationError):
    """A variable references itself."""

    def __init__(self, variable: str, *path: str) -> None:
        super().__init__("Variable is recursive", *path)
        self.variable = variable


class VariableCycleError(ConfigurationError):
    """Two or more variables depend on each other."""

    def __init__(self, cycle: Iterable[str], *path: str) -> None:
        self.cycle = list(cycle)
        super().__init__(
            "Cyclic variable dependency detected: " + " > ".join(self.cycle), *path
        )


# =============================================================================
# Extractors
# =============================================================================


class ExtractorValidationError(OntoSQLError):
    """An extractor spec cannot be turned into a prepared extractor."""

    def __init__(self, message: str, *path: str, missing: Iterable[str] = ()) -> None:
        super().__init__(message, *path)
        self.missing = list(missing)


class ExtractorDependencyError(ExtractorValidationError):
    """Extractor kinds depend on each other in a cycle."""


# =============================================================================
# Extraction
# =============================================================================


class ClosureError(OntoSQLError):
    """Inputs to a closure computation are missing or inconsistent."""


class StoreError(OntoSQLError):
    """The relational store rejected a statement or could not be reached."""


class OntologyLoadError(OntoSQLError):
    """An ontology document could not be loaded into the model."""
