"""Parsing of extractor selections given on the command line.

A selection is a comma-separated list of items, each either a single index
(``3``) or an inclusive range with strictly ascending ends (``2-5``).
Whitespace around items and range ends is ignored.
"""

from __future__ import annotations

from ontosql.errors import ConfigurationError

__all__ = ["parse_indices"]


def _to_int(text: str) -> int:
    text = text.strip()
    if not text.isdigit():
        raise ValueError(text)
    return int(text)


def parse_indices(text: str) -> list[int]:
    """Parse a selection such as ``"0, 2-4,7"`` into sorted unique indices.

    Raises:
        ConfigurationError: If an item is not a number or a valid range
    """
    indices: set[int] = set()

    for item in text.split(","):
        if "-" in item:
            ends = item.split("-")
            if len(ends) != 2:
                raise ConfigurationError(f"'{item}' is not a valid range: format is \"N-N\"")
            try:
                start, end = _to_int(ends[0]), _to_int(ends[1])
            except ValueError:
                raise ConfigurationError(
                    f"'{item}' is not a valid range: format is \"N-N\""
                ) from None
            if start >= end:
                raise ConfigurationError(
                    f"'{item}' is not a valid range: ends are not in ascending order"
                )
            indices.update(range(start, end + 1))
        else:
            try:
                indices.add(_to_int(item))
            except ValueError:
                raise ConfigurationError(f"'{item}' is not a valid number") from None

    return sorted(indices)
