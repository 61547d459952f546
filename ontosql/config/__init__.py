"""Configuration: variable interpolation, the document model and CLI selections."""

from ontosql.config.schema import (
    CONFIG_FILE,
    Config,
    ConnectionSettings,
    ExtractorSpec,
    load_config,
)
from ontosql.config.selection import parse_indices
from ontosql.config.variables import Template, VariableResolver, parse_template

__all__ = [
    "CONFIG_FILE",
    "Config",
    "ConnectionSettings",
    "ExtractorSpec",
    "Template",
    "VariableResolver",
    "load_config",
    "parse_indices",
    "parse_template",
]
