"""Pipeline driver: runs the configured extractors over a set of ontologies.

The step list is the entity index followed by the configured extractors:

    position 0      entities (implicit)
    position i > 0  config.extractors[i - 1]

A run goes through four phases, so that configuration mistakes surface
before anything is written:

1. **validate**: unknown, reserved and duplicate kinds
2. **instantiate**: every selected step is built and prepared
3. **register**: optionally wipe the store, then record the ontologies
4. **execute**: each step runs once, in order (``extract`` or ``cache``)

Any error aborts the run; tables written by earlier steps are kept.

Example:
    config = load_config("ontosql-config.json")
    ontologies = load_ontologies(config.ontologies)

    with Store.from_settings(config.connection) as store:
        pipeline = Pipeline(config, store, ontologies)
        stats = pipeline.run()
        print(f"Ran {stats.steps_run} steps; {stats.entities_indexed} entities")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ontosql.config.schema import Config, ExtractorSpec
from ontosql.errors import ConfigurationError, OntoSQLError, index_part
from ontosql.extractors.base import Cacher, Extractor
from ontosql.extractors.entities import EntityIndex
from ontosql.extractors.registry import ExtractorRegistry
from ontosql.ontology.model import Ontology
from ontosql.store import ONTOLOGIES_SQL, Store

__all__ = ["Pipeline", "PipelineStats"]

logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    """Statistics from a pipeline run.

    Attributes:
        steps_run: Number of extractors executed
        ontologies_registered: Ontologies newly added to the ``ontologies`` table
        entities_indexed: Entities in the index at the end of the run
        wiped: Whether the store was wiped before running
        tables: Tables present in the store at the end of the run
    """

    steps_run: int = 0
    ontologies_registered: int = 0
    entities_indexed: int = 0
    wiped: bool = False
    tables: list[str] = field(default_factory=list)


class Pipeline:
    """Ordered execution of extractors against one store.

    Attributes:
        config: Resolved configuration
        store: Store shared by all extractors
        ontologies: Ontologies to extract from (an imports closure, see load_ontologies)
        registry: Extractor registry bound to ``store``
        progress_callback: Optional callback for progress updates
    """

    def __init__(
        self,
        config: Config,
        store: Store,
        ontologies: Sequence[Ontology],
        registry: Optional[ExtractorRegistry] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None,
    ) -> None:
        """Initialize Pipeline.

        Args:
            config: Resolved configuration
            store: Store shared by all extractors
            ontologies: Ontologies to extract from
            registry: Registry to use; a default one over ``store`` otherwise
            progress_callback: Optional callback for progress updates.
                Called with (step_kind, current, total).
        """
        self.config = config
        self.store = store
        self.ontologies = list(ontologies)
        self.registry = registry if registry is not None else ExtractorRegistry(store)
        self.progress_callback = progress_callback

    @property
    def specs(self) -> list[ExtractorSpec]:
        """The entity index followed by the configured extractors."""
        return [ExtractorSpec(kind=EntityIndex.kind)] + list(self.config.extractors)

    def _report_progress(self, operation: str, current: int, total: int) -> None:
        """Report progress if callback is set."""
        if self.progress_callback:
            self.progress_callback(operation, current, total)

    # ==================== Phases ====================

    def select(self, indices: Optional[Sequence[int]] = None) -> list[int]:
        """Positions of the steps to run, ascending.

        Raises:
            ConfigurationError: If an index is out of range
        """
        count = len(self.specs)
        if indices is None:
            return list(range(count))

        for index in indices:
            if not 0 <= index < count:
                raise ConfigurationError(
                    f"index {index} is out of range; valid indices are 0 to {count - 1}"
                )
        return sorted(set(indices))

    def instantiate(self, positions: Sequence[int]) -> list[Extractor]:
        """Validate the configured specs and prepare the selected steps.

        Raises:
            ExtractorValidationError: With the path ``extractors[i]`` of the bad spec
        """
        self.registry.validate_specs(self.config.extractors)

        specs = self.specs
        extractors = []
        for position in positions:
            try:
                extractors.append(self.registry.instantiate(specs[position]))
            except OntoSQLError as e:
                if position == 0:
                    raise
                raise e.with_prefix("extractors", index_part(position - 1)) from e
        return extractors

    def register_ontologies(self) -> int:
        """Record every ontology in the ``ontologies`` table; return how many were new."""
        self.store.executescript(ONTOLOGIES_SQL)
        added = 0
        for ontology in self.ontologies:
            version = ontology.version_iri or ""
            exists = self.store.scalar(
                "SELECT id FROM ontologies WHERE ontology_iri = ? AND version_iri = ?",
                (ontology.iri, version),
            )
            if exists is None:
                self.store.insert(
                    "INSERT INTO ontologies (ontology_iri, version_iri) VALUES (?, ?)",
                    (ontology.iri, version),
                )
                added += 1
        return added

    def execute(self, extractor: Extractor) -> None:
        if isinstance(extractor, Cacher):
            extractor.cache()
        else:
            extractor.extract(self.ontologies)

    # ==================== Run ====================

    def run(self, indices: Optional[Sequence[int]] = None) -> PipelineStats:
        """Run the selected steps, or every step after a full wipe.

        Args:
            indices: Positions to run (0 is the entity index); None runs all
                of them, starting from an empty store

        Returns:
            PipelineStats for the run

        Raises:
            ConfigurationError: Bad selection
            ExtractorValidationError: Bad extractor spec, before any write
            ClosureError: Inconsistent closure input; aborts the run
            StoreError: Store failure; aborts the run
        """
        stats = PipelineStats()
        positions = self.select(indices)
        extractors = self.instantiate(positions)

        if indices is None:
            self.store.wipe()
            stats.wiped = True

        stats.ontologies_registered = self.register_ontologies()
        logger.info(
            f"Registered {stats.ontologies_registered} new ontologies "
            f"({len(self.ontologies)} loaded)"
        )

        total = len(extractors)
        for step, (position, extractor) in enumerate(zip(positions, extractors), start=1):
            logger.info(f"[{step}/{total}] Running {extractor.kind} (position {position})")
            self.execute(extractor)
            stats.steps_run += 1
            self._report_progress(extractor.kind, step, total)

        if self.store.table_exists("entities"):
            stats.entities_indexed = self.store.scalar("SELECT COUNT(*) FROM entities", default=0)
        stats.tables = self.store.tables()
        logger.info(f"Pipeline finished: {stats.steps_run} steps, {len(stats.tables)} tables")
        return stats
