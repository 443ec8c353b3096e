"""Filter expressions and their encoded sizes.

filter syntax is the reporting api's: `name==value`, OR'd together with
commas and AND'd with semicolons. because those two characters (and the
backslash) are structural, they have to be escaped inside values - a
landing page like "/search?q=a,b" would otherwise turn into two filters.

the encoded size is what the planner actually cares about. the api limits
the length of the *encoded* url, so a value full of slashes and spaces
costs a lot more than its raw length suggests.
"""

import re
from dataclasses import dataclass
from typing import NamedTuple

from seriesforge.models.query import ReportQuery, encode_component

OR_OPERATOR = ","
AND_OPERATOR = ";"
ESCAPE_CHAR = "\\"
RESERVED_CHARS = frozenset({OR_OPERATOR, AND_OPERATOR, ESCAPE_CHAR})

# longest operators first so ">=" isn't read as ">" followed by "=value"
FILTER_OPERATORS = ("==", "!=", "=@", "!@", "=~", "!~", ">=", "<=", ">", "<")
_PREDICATE_RE = re.compile(
    r"^(?P<name>[^=!<>@~]+?)(?P<op>" + "|".join(re.escape(o) for o in FILTER_OPERATORS) + r")"
    r"(?P<value>.*)$",
    re.DOTALL,
)


def escape_value(value: str) -> str:
    """Backslash-escape the characters the filter syntax reserves.

    must be applied exactly once - escaping an already escaped value doubles
    the backslashes and the filter stops matching anything.
    """
    return "".join(ESCAPE_CHAR + ch if ch in RESERVED_CHARS else ch for ch in value)


def unescape_value(value: str) -> str:
    """Inverse of escape_value: drop the backslash in front of reserved chars."""
    out = []
    chars = iter(value)
    for ch in chars:
        if ch == ESCAPE_CHAR:
            nxt = next(chars, "")
            if nxt in RESERVED_CHARS:
                out.append(nxt)
                continue
            out.append(ch + nxt)
            continue
        out.append(ch)
    return "".join(out)


def equality_filter(dimension_name: str, dimension_value: str) -> str:
    """Build `name==value` with the value escaped."""
    return f"{dimension_name}=={escape_value(dimension_value)}"


def encoded_size(expression: str) -> int:
    """Length of an expression once percent-encoded for the url."""
    return len(encode_component(expression))


def operator_size() -> int:
    """Encoded length of the OR operator joining two filters (',' -> '%2C')."""
    return encoded_size(OR_OPERATOR)


def add_and_operator(query: ReportQuery | None) -> None:
    """Append an AND to any existing filter so more can be tacked on.

    a query with no filter is left alone - the planner then sends just the
    generated filter, with no dangling semicolon in front.
    """
    if query is not None and query.filters is not None:
        query.filters = query.filters + AND_OPERATOR


@dataclass(frozen=True, eq=False)
class Filter:
    """One `dimension==value` predicate and its encoded size.

    two filters are equal when their expressions are, regardless of how they
    were built. ordering is by encoded size, biggest first, since that's the
    order the bucket packing wants them in.
    """

    dimension_name: str
    dimension_value: str
    expression: str
    encoded_size: int

    @classmethod
    def create(cls, dimension_name: str, dimension_value: str) -> "Filter":
        expression = equality_filter(dimension_name, dimension_value)
        return cls(
            dimension_name=dimension_name,
            dimension_value=dimension_value,
            expression=expression,
            encoded_size=encoded_size(expression),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Filter):
            return NotImplemented
        return self.expression == other.expression

    def __hash__(self) -> int:
        return hash(self.expression)

    def __lt__(self, other: "Filter") -> bool:
        # "sorts before" - larger filters come first
        return self.encoded_size > other.encoded_size

    def __str__(self) -> str:
        return self.expression


class FilterPredicate(NamedTuple):
    """A parsed `name<op>value` predicate with the value unescaped."""

    name: str
    operator: str
    value: str


def _split_unescaped(expression: str) -> list[list[str]]:
    """Split on unescaped ';' then ',' keeping escapes intact in each piece."""
    groups: list[list[str]] = [[]]
    current: list[str] = []
    chars = iter(expression)
    for ch in chars:
        if ch == ESCAPE_CHAR:
            current.append(ch + next(chars, ""))
        elif ch == OR_OPERATOR:
            groups[-1].append("".join(current))
            current = []
        elif ch == AND_OPERATOR:
            groups[-1].append("".join(current))
            groups.append([])
            current = []
        else:
            current.append(ch)
    groups[-1].append("".join(current))
    return groups


def parse_filter_expression(expression: str | None) -> list[list[FilterPredicate]]:
    """Parse a filter string into AND-groups of OR'd predicates.

    empty pieces are skipped, which is what makes a trailing ';' (left by
    add_and_operator when nothing gets appended) harmless.
    """
    if not expression:
        return []

    parsed: list[list[FilterPredicate]] = []
    for group in _split_unescaped(expression):
        predicates = []
        for raw in group:
            if not raw:
                continue
            match = _PREDICATE_RE.match(raw)
            if match is None:
                raise ValueError(f"Invalid filter predicate: {raw!r}")
            predicates.append(
                FilterPredicate(
                    name=match.group("name"),
                    operator=match.group("op"),
                    value=unescape_value(match.group("value")),
                )
            )
        if predicates:
            parsed.append(predicates)
    return parsed
