"""Glob-style patterns as used by KEYS and PSUBSCRIBE."""

from __future__ import annotations

import re
import warnings

ERR_END_WITH_ESCAPE = "end with escape \\"

# characters of a wildcard that mean something else in a regular expression
_REPLACEMENTS = {
    "+": r"\+",
    ")": r"\)",
    "$": r"\$",
    ".": r"\.",
    "{": r"\{",
    "}": r"\}",
    "|": r"\|",
    "*": ".*",
    "?": ".",
}


class WildcardError(ValueError):
    """Raised when a wildcard pattern cannot be compiled."""


class Pattern:
    """A compiled wildcard pattern."""

    __slots__ = ("source", "_regex")

    def __init__(self, source: str, regex: "re.Pattern[str]") -> None:
        self.source = source
        self._regex = regex

    def is_match(self, s: str) -> bool:
        """Tell whether the whole string matches the pattern."""
        return self._regex.fullmatch(s) is not None

    def __repr__(self) -> str:
        return f"Pattern({self.source!r})"


def _translate(src: str) -> str:
    out = []
    chars = iter(enumerate(src))
    for i, ch in chars:
        if ch == "\\":
            escaped = next(chars, None)
            if escaped is None:
                raise WildcardError(ERR_END_WITH_ESCAPE)
            out.append("\\" + escaped[1])
        elif ch == "^":
            negates = i >= 1 and src[i - 1] == "[" and (i == 1 or src[i - 2] != "\\")
            out.append("^" if negates else r"\^")
        else:
            out.append(_REPLACEMENTS.get(ch, ch))
    return "".join(out)


def compile_pattern(src: str) -> Pattern:
    """Compile a wildcard string; raise WildcardError if it is malformed."""
    expression = _translate(src)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FutureWarning)
            regex = re.compile(expression)
    except re.error as exc:
        raise WildcardError(str(exc)) from exc
    return Pattern(src, regex)