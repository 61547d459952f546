"""Variable interpolation for configuration strings.

Grammar:
- ``$$`` is a literal ``$``
- ``${name}`` is replaced by the resolved value of ``name``
- names are restricted to ``[0-9a-zA-Z_.-]+``
- any other use of ``$`` is a syntax error

Variables may reference each other. Before any value is used the whole
table is resolved in dependency order (Kahn's algorithm); self-references
and cycles are reported with the variables involved.

Example:
    resolver = VariableResolver({"root": "/data", "db": "${root}/onto.db"})
    resolver.resolve("sqlite:${db}")   # -> "sqlite:/data/onto.db"
    resolver.resolve("costs $$5")      # -> "costs $5"
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from ontosql.errors import (
    RecursiveVariableError,
    UnresolvedVariableError,
    VariableCycleError,
    VariableSyntaxError,
)

__all__ = [
    "Template",
    "VariableResolver",
    "is_valid_name",
    "parse_template",
]

logger = logging.getLogger(__name__)

_VALID_NAME = re.compile(r"[0-9a-zA-Z_.\-]+")


def is_valid_name(name: str) -> bool:
    """Check whether ``name`` is a legal variable name."""
    return _VALID_NAME.fullmatch(name) is not None


@dataclass(frozen=True)
class Template:
    """A parsed configuration string.

    Attributes:
        parts: Alternating pieces; each is either literal text (``is_ref`` False)
            or a variable name (``is_ref`` True)
    """

    parts: tuple[tuple[bool, str], ...]

    @property
    def dependencies(self) -> list[str]:
        """Referenced variable names, in order of first appearance."""
        seen: dict[str, None] = {}
        for is_ref, value in self.parts:
            if is_ref:
                seen.setdefault(value)
        return list(seen)

    def render(self, values: Mapping[str, str]) -> str:
        """Substitute references using ``values``.

        Raises:
            UnresolvedVariableError: If a referenced name is not in ``values``
        """
        pieces = []
        for is_ref, value in self.parts:
            if not is_ref:
                pieces.append(value)
            elif value in values:
                pieces.append(values[value])
            else:
                raise UnresolvedVariableError(value)
        return "".join(pieces)


def parse_template(raw: str) -> Template:
    """Parse ``raw`` into a Template.

    Raises:
        VariableSyntaxError: On a dangling ``$``, an unterminated ``${``,
            an empty ``${}`` or an invalid variable name
    """
    parts: list[tuple[bool, str]] = []
    literal: list[str] = []
    index = 0

    while True:
        dollar = raw.find("$", index)
        if dollar == -1:
            literal.append(raw[index:])
            break

        literal.append(raw[index:dollar])
        following = raw[dollar + 1 : dollar + 2]

        if following == "$":
            literal.append("$")
            index = dollar + 2
            continue
        if following != "{":
            raise VariableSyntaxError("Expecting '{' after the dollar sign")

        end = raw.find("}", dollar + 2)
        if end == -1:
            raise VariableSyntaxError("'${' not followed by '}'")
        if end == dollar + 2:
            raise VariableSyntaxError("Empty variable name '${}'")

        name = raw[dollar + 2 : end]
        if not is_valid_name(name):
            raise VariableSyntaxError(f"Invalid variable name '{name}'")

        if literal:
            parts.append((False, "".join(literal)))
            literal = []
        parts.append((True, name))
        index = end + 1

    text = "".join(literal)
    if text or not parts:
        parts.append((False, text))
    return Template(tuple(parts))


class VariableResolver:
    """Resolves a flat variable table and interpolates strings against it.

    The table is resolved once, at construction; afterwards it is immutable.

    Raises (from the constructor):
        VariableSyntaxError: A raw value is malformed
        UnresolvedVariableError: A raw value references an undeclared name
        RecursiveVariableError: A variable references itself
        VariableCycleError: Variables reference each other in a loop
    """

    def __init__(self, variables: Optional[Mapping[str, str]] = None) -> None:
        raw = dict(variables or {})
        for name in raw:
            if not is_valid_name(name):
                raise VariableSyntaxError(f"Invalid variable name '{name}'", "variables", name)
        self._values: dict[str, str] = {}
        self._resolve_all(raw)
        self.values: Mapping[str, str] = MappingProxyType(self._values)

    def _resolve_all(self, raw: dict[str, str]) -> None:
        templates: dict[str, Template] = {}
        depends_on: dict[str, set[str]] = {}
        dependents: dict[str, set[str]] = {name: set() for name in raw}

        for name in sorted(raw):
            try:
                template = parse_template(raw[name])
            except VariableSyntaxError as e:
                raise e.with_prefix("variables", name) from e

            deps = template.dependencies
            if name in deps:
                raise RecursiveVariableError(name, "variables", name)
            for dep in deps:
                if dep not in raw:
                    raise UnresolvedVariableError(dep, "variables", name)
                dependents[dep].add(name)

            templates[name] = template
            depends_on[name] = set(deps)

        queue = deque(sorted(name for name, deps in depends_on.items() if not deps))
        while queue:
            name = queue.popleft()
            self._values[name] = templates[name].render(self._values)
            del depends_on[name]
            for dependent in sorted(dependents[name]):
                pending = depends_on[dependent]
                pending.discard(name)
                if not pending:
                    queue.append(dependent)

        if depends_on:
            raise VariableCycleError(self._find_cycle(depends_on), "variables")

        logger.debug(f"Resolved {len(self._values)} variables")

    @staticmethod
    def _find_cycle(depends_on: Mapping[str, set[str]]) -> list[str]:
        """Walk dependencies from the smallest remaining name until one repeats."""
        walk: list[str] = []
        current = min(depends_on)
        while current not in walk:
            walk.append(current)
            current = min(depends_on[current])
        return walk[walk.index(current) :]

    def resolve(self, raw: str) -> str:
        """Interpolate ``raw`` against the resolved variables.

        Raises:
            VariableSyntaxError: If ``raw`` is malformed
            UnresolvedVariableError: If ``raw`` references an undefined name
        """
        return parse_template(raw).render(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)
