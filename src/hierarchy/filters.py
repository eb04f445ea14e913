"""Package-name exclusion filters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from constants import Constants
from exceptions import ConfigError


@dataclass(frozen=True)
class ExclusionFilter:
    """A regular expression tested against package names (``re.search`` semantics)."""

    pattern: "re.Pattern[str]"

    @classmethod
    def compile(cls, expression: str) -> "ExclusionFilter":
        """Compile ``expression``, raising ConfigError when it is not a valid regex."""
        try:
            return cls(re.compile(expression))
        except re.error as exc:
            raise ConfigError(f"Invalid filter expression {expression!r}: {exc}") from exc

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None

    def __str__(self) -> str:
        return self.pattern.pattern


FilterSet = Tuple[ExclusionFilter, ...]


def compile_filters(expressions: Iterable[str]) -> FilterSet:
    """Compile every non-empty expression into an immutable filter set."""
    return tuple(ExclusionFilter.compile(e) for e in expressions if e)


def filters_from_cli(provided: Optional[Sequence[str]], default: str) -> FilterSet:
    """Use the provided expressions, or split ``default`` on ``|`` when none given."""
    if provided is None:
        values: List[str] = [v for v in (default or "").split(Constants.FILTER_SEPARATOR) if v]
    else:
        values = list(provided)
    return compile_filters(values)


def matches_any(filters: Iterable[ExclusionFilter], name: str) -> bool:
    """True when any filter matches ``name``."""
    return any(f.matches(name) for f in filters)
