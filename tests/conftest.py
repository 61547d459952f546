"""Shared fixtures: an in-memory store and a pipeline runner."""

import pytest

from ontosql.config import Config, ExtractorSpec
from ontosql.config.schema import ConnectionSettings
from ontosql.pipeline import Pipeline
from ontosql.store import Store


@pytest.fixture
def store():
    """In-memory SQLite store."""
    s = Store(":memory:")
    yield s
    s.close()


def make_config(extractors=()):
    """Config over an in-memory database with the given extractor entries.

    Entries are kind strings or dicts with a "kind" key plus options.
    """
    specs = []
    for entry in extractors:
        if isinstance(entry, str):
            specs.append(ExtractorSpec(kind=entry))
        else:
            options = {k: v for k, v in entry.items() if k != "kind"}
            specs.append(ExtractorSpec(kind=entry["kind"], parameters=options))
    return Config(connection=ConnectionSettings(database=":memory:"), extractors=specs)


@pytest.fixture
def run_pipeline(store):
    """Run a full pipeline over ``ontologies``; returns the Pipeline."""

    def _run(ontologies, extractors=(), indices=None):
        pipeline = Pipeline(make_config(extractors), store, ontologies)
        pipeline.run(indices)
        return pipeline

    return _run


@pytest.fixture
def build_config():
    """The make_config helper, for tests that build pipelines themselves."""
    return make_config
