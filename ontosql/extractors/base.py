"""Base classes for extractors.

An extractor is a unit of the pipeline that owns one or more tables. Two
capabilities exist:

- OntologyExtractor: derives tables from the loaded ontologies (``extract``)
- Cacher: imports external data into the store (``cache``)

Every extractor declares its options as a strict pydantic model. Fields
without a default are mandatory; the registry reports all missing ones at
once before any extraction runs.

Example:
    class LeavesExtractor(OntologyExtractor):
        kind = "leaves"

        def prepare(self) -> None:
            self.entities = self.registry.get(EntityIndex)

        def extract(self, ontologies) -> None:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ontosql.ontology.model import Ontology

if TYPE_CHECKING:
    from ontosql.extractors.registry import ExtractorRegistry

__all__ = ["Cacher", "Extractor", "ExtractorOptions", "OntologyExtractor"]


class ExtractorOptions(BaseModel):
    """Options accepted by an extractor kind; no options by default."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)


class Extractor(ABC):
    """A prepared unit of work bound to a registry and its store.

    Class attributes:
        kind: Registry key of the extractor
        unique: Whether a configuration may name this kind at most once
        user_selectable: Whether a configuration may name this kind at all
        Options: Pydantic model validating the spec's parameters
    """

    kind: ClassVar[str] = ""
    unique: ClassVar[bool] = True
    user_selectable: ClassVar[bool] = True
    Options: ClassVar[type[ExtractorOptions]] = ExtractorOptions

    def __init__(self, registry: "ExtractorRegistry") -> None:
        self.registry = registry
        self.store = registry.store
        self.options: Optional[ExtractorOptions] = None

    @classmethod
    def mandatory_options(cls) -> list[str]:
        """Names of the options without a default, in declaration order."""
        return [name for name, info in cls.Options.model_fields.items() if info.is_required()]

    @classmethod
    def option_names(cls) -> list[str]:
        return list(cls.Options.model_fields)

    def configure(self, options: ExtractorOptions) -> None:
        """Receive the validated options; called once, before ``prepare``."""
        self.options = options

    @abstractmethod
    def prepare(self) -> None:
        """Acquire dependencies on other extractors; called once, eagerly."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind!r})"


class OntologyExtractor(Extractor):
    """Extractor deriving tables from the loaded ontologies."""

    @abstractmethod
    def extract(self, ontologies: Sequence[Ontology]) -> None:
        """Drop, recreate and fill the extractor's tables."""


class Cacher(Extractor):
    """Extractor importing external data into the store."""

    @abstractmethod
    def cache(self) -> None:
        """Load the external data into the extractor's tables."""
