"""ontosql: derived relational tables from OWL ontologies.

Loads ontologies, assigns integer ids to their entities and runs a
configurable list of extractors that materialize closures (class
hierarchy, property-based extended hierarchies, disjointness) and
metrics (leaves, information content, relevance) as SQLite tables.
"""

from ontosql.config import Config, ExtractorSpec, VariableResolver, load_config
from ontosql.errors import (
    ClosureError,
    ConfigurationError,
    ExtractorValidationError,
    OntoSQLError,
    StoreError,
)
from ontosql.pipeline import Pipeline, PipelineStats
from ontosql.store import Store

__version__ = "0.1.0"

__all__ = [
    "ClosureError",
    "Config",
    "ConfigurationError",
    "ExtractorSpec",
    "ExtractorValidationError",
    "OntoSQLError",
    "Pipeline",
    "PipelineStats",
    "Store",
    "StoreError",
    "VariableResolver",
    "load_config",
]
