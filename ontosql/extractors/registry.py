"""ExtractorRegistry: validates, instantiates and memoizes extractors.

The set of extractor kinds is closed: a registry maps kind ids to classes
(``ontosql.extractors.EXTRACTORS`` by default) and unknown kinds are a
validation error. Instances are created from ExtractorSpec values:

1. A spec without parameters reuses the cached instance of its kind.
2. Otherwise a fresh instance is built, its parameters are checked
   against the kind's Options model (unexpected, then missing, then
   mistyped options), and it is prepared eagerly.
3. Only parameterless instances are cached.

Extractors declare dependencies on other kinds by calling ``get`` from
``prepare``. Preparation is tracked on a stack so that kinds depending on
each other in a cycle fail immediately.

Example:
    registry = ExtractorRegistry(store)
    hierarchy = registry.instantiate(ExtractorSpec(kind="hierarchy"))
    assert registry.get("hierarchy") is hierarchy
"""

from __future__ import annotations

import inspect
import logging
from typing import Mapping, Optional, Sequence, TypeVar, Union

from pydantic import ValidationError

from ontosql.config.schema import ExtractorSpec, validation_error_to_path
from ontosql.errors import ExtractorDependencyError, ExtractorValidationError, index_part
from ontosql.extractors.base import Cacher, Extractor, OntologyExtractor
from ontosql.store import Store

__all__ = ["ExtractorRegistry", "missing_options_message"]

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Extractor)


def missing_options_message(missing: Sequence[str], kind: str) -> str:
    """``Failed to provide option "a" ...`` / ``... options "a", "b" and "c" ...``"""
    quoted = [f'"{name}"' for name in missing]
    if len(quoted) == 1:
        options = f"option {quoted[0]}"
    else:
        options = f"options {', '.join(quoted[:-1])} and {quoted[-1]}"
    return f"Failed to provide {options} to extractor {kind}"


class ExtractorRegistry:
    """Closed registry of extractor kinds plus the cache of prepared instances.

    Attributes:
        store: Store lent to every extractor
        kinds: Kind id -> extractor class
    """

    def __init__(self, store: Store, kinds: Optional[Mapping[str, type]] = None) -> None:
        """Initialize the registry.

        Raises:
            ExtractorValidationError: If a registered class is not a valid extractor
        """
        if kinds is None:
            from ontosql.extractors import EXTRACTORS

            kinds = EXTRACTORS

        self.store = store
        self.kinds: dict[str, type[Extractor]] = {}
        for kind, cls in kinds.items():
            self._check_eligible(kind, cls)
            self.kinds[kind] = cls

        self._cache: dict[str, Extractor] = {}
        self._preparing: list[str] = []

    @staticmethod
    def _check_eligible(kind: str, cls: type) -> None:
        if not (inspect.isclass(cls) and issubclass(cls, (OntologyExtractor, Cacher))):
            raise ExtractorValidationError(
                f"{cls!r} must extend either OntologyExtractor or Cacher", "kinds", kind
            )
        if inspect.isabstract(cls):
            raise ExtractorValidationError(
                f"{cls.__name__} must not be an abstract class", "kinds", kind
            )
        if cls.kind != kind:
            raise ExtractorValidationError(
                f"{cls.__name__} declares kind '{cls.kind}' but is registered as '{kind}'",
                "kinds",
                kind,
            )

    # ==================== Lookup ====================

    def kind_class(self, kind: str) -> type[Extractor]:
        """Return the class registered for ``kind``.

        Raises:
            ExtractorValidationError: If the kind is unknown
        """
        try:
            return self.kinds[kind]
        except KeyError:
            raise ExtractorValidationError(f"unknown extractor kind '{kind}'") from None

    def cached(self, kind: str) -> Optional[Extractor]:
        return self._cache.get(kind)

    def validate_specs(self, specs: Sequence[ExtractorSpec]) -> None:
        """Check user-supplied specs for unknown, reserved and duplicate kinds.

        Errors carry the path ``extractors[i]`` of the offending spec.

        Raises:
            ExtractorValidationError: On the first invalid spec
        """
        seen: set[str] = set()
        for i, spec in enumerate(specs):
            try:
                cls = self.kind_class(spec.kind)
            except ExtractorValidationError as e:
                raise e.with_prefix("extractors", index_part(i)) from e
            if not cls.user_selectable:
                raise ExtractorValidationError(
                    f"extractor kind '{spec.kind}' is reserved", "extractors", index_part(i)
                )
            if cls.unique and spec.kind in seen:
                raise ExtractorValidationError(
                    f"extractor kind '{spec.kind}' can only be used once",
                    "extractors",
                    index_part(i),
                )
            seen.add(spec.kind)

    # ==================== Instantiation ====================

    def instantiate(self, spec: ExtractorSpec) -> Extractor:
        """Create (or reuse) a prepared extractor for ``spec``.

        Raises:
            ExtractorValidationError: Unknown kind or invalid options
            ExtractorDependencyError: The kind is already being prepared
        """
        cls = self.kind_class(spec.kind)

        if spec.is_parameterless and spec.kind in self._cache:
            return self._cache[spec.kind]

        if spec.kind in self._preparing:
            cycle = self._preparing[self._preparing.index(spec.kind) :] + [spec.kind]
            raise ExtractorDependencyError(
                "Cyclic extractor dependency detected: " + " > ".join(cycle)
            )

        options = self._validate_options(cls, spec.parameters)
        extractor = cls(self)
        extractor.configure(options)

        self._preparing.append(spec.kind)
        try:
            extractor.prepare()
        finally:
            self._preparing.pop()

        if spec.is_parameterless:
            self._cache[spec.kind] = extractor
        logger.debug(f"Prepared {extractor!r}")
        return extractor

    def get(self, cls_or_kind: Union[type[E], str]) -> E:
        """Return the parameterless instance of a kind, preparing it if needed.

        Used by extractors to declare their dependencies.

        Raises:
            ExtractorValidationError: If the kind has mandatory options
        """
        kind = cls_or_kind if isinstance(cls_or_kind, str) else cls_or_kind.kind
        cls = self.kind_class(kind)
        if kind in self._cache:
            return self._cache[kind]
        if cls.mandatory_options():
            raise ExtractorValidationError(
                f"Extractors of kind '{kind}' mandate a set of options; "
                "they cannot be obtained without a spec"
            )
        return self.instantiate(ExtractorSpec(kind=kind))

    @staticmethod
    def _validate_options(cls: type[Extractor], parameters: Mapping) -> object:
        known = cls.option_names()
        for key in parameters:
            if key not in known:
                raise ExtractorValidationError(
                    f"unexpected parameter on extractor {cls.kind}", key
                )

        missing = [name for name in cls.mandatory_options() if name not in parameters]
        if missing:
            raise ExtractorValidationError(
                missing_options_message(missing, cls.kind), missing=missing
            )

        try:
            return cls.Options.model_validate(dict(parameters))
        except ValidationError as e:
            path, message = validation_error_to_path(e)
            raise ExtractorValidationError(message, *path) from e
