"""Relational store shared by the pipeline and its extractors."""

from ontosql.store.database import ONTOLOGIES_SQL, Store

__all__ = ["ONTOLOGIES_SQL", "Store"]
