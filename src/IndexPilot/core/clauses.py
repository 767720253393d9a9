"""Search document model.

The fixed vocabulary of predicates the query builder emits, and the
four-sequence boolean group that holds them.

Clause kinds map one-to-one onto the engine's query DSL:

- term         -> {"term": {field: value}}
- terms        -> {"terms": {field: [values]}}
- match        -> {"match": {field: value}}
- match_phrase -> {"match_phrase": {field: value}}
- multi_match  -> {"multi_match": {"query": value, "fields": [...], **options}}
- range        -> {"range": {field: {"gte": .., "lte": ..}}}
- exists       -> {"exists": {"field": field}}
- bool         -> {"bool": <compiled ClauseGroup>}
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Final, Iterable, Mapping, Sequence

from IndexPilot.core.errors import InvalidQueryArgument

TERM: Final = "term"
TERMS: Final = "terms"
MATCH: Final = "match"
MATCH_PHRASE: Final = "match_phrase"
MULTI_MATCH: Final = "multi_match"
RANGE: Final = "range"
EXISTS: Final = "exists"
BOOL: Final = "bool"

CLAUSE_KINDS: Final = frozenset({TERM, TERMS, MATCH, MATCH_PHRASE, MULTI_MATCH, RANGE, EXISTS, BOOL})

# Output order of the boolean sequences.
OCCURRENCES: Final[tuple[str, ...]] = ("filter", "should", "must", "must_not")

RANGE_OPERATORS: Final[Mapping[str, str]] = MappingProxyType(
    {">": "gt", "<": "lt", ">=": "gte", "<=": "lte"}
)


def check_occurrence(occur: str) -> str:
    """Return ``occur`` if it names one of the four boolean sequences.

    Raises:
        InvalidQueryArgument: If the sequence name is unknown.
    """
    if occur not in OCCURRENCES:
        raise InvalidQueryArgument(f"Invalid where type: {occur}.")
    return occur


@dataclass(frozen=True, slots=True)
class Clause:
    """One atomic predicate.

    Attributes:
        kind: One of ``CLAUSE_KINDS``.
        field: Target field; a tuple of fields for multi_match, None for bool.
        value: Term value, list of values, match query text, range bounds
            mapping, or the nested ``ClauseGroup`` for bool clauses.
        options: Extra per-clause options merged into the clause body.
    """

    kind: str
    field: str | tuple[str, ...] | None = None
    value: Any = None
    options: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in CLAUSE_KINDS:
            raise InvalidQueryArgument(f"Unsupported clause kind: {self.kind}")
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))
        if self.kind == RANGE:
            object.__setattr__(self, "value", MappingProxyType(dict(self.value)))
        elif self.kind == TERMS:
            object.__setattr__(self, "value", tuple(self.value))

    def to_dict(self) -> dict[str, Any]:
        """Render the clause as an engine-native query fragment."""
        if self.kind == BOOL:
            return {BOOL: self.value.to_dict()}
        if self.kind == EXISTS:
            return {EXISTS: {"field": self.field}}
        if self.kind == TERMS:
            return {TERMS: {self.field: list(self.value)}}
        if self.kind == RANGE:
            return {RANGE: {self.field: dict(self.value)}}
        if self.kind == MULTI_MATCH:
            body = {"query": self.value, "fields": list(self.field or ())}
            body.update(self.options)
            return {MULTI_MATCH: body}
        if self.options:
            return {self.kind: {self.field: {"query": self.value, **self.options}}}
        return {self.kind: {self.field: self.value}}


class ClauseGroup:
    """Clauses partitioned into the four boolean sequences.

    Each clause lives in exactly one sequence and insertion order is kept,
    since engines may be order-sensitive for scoring and highlighting.
    """

    __slots__ = ("_sequences",)

    def __init__(self) -> None:
        self._sequences: dict[str, list[Clause]] = {occur: [] for occur in OCCURRENCES}

    def add(self, clause: Clause, occur: str = "filter") -> None:
        """Append ``clause`` to the ``occur`` sequence."""
        self._sequences[check_occurrence(occur)].append(clause)

    def clauses(self, occur: str) -> tuple[Clause, ...]:
        """Return the clauses of one sequence in insertion order."""
        return tuple(self._sequences[check_occurrence(occur)])

    def is_empty(self) -> bool:
        return not any(self._sequences.values())

    def copy(self) -> ClauseGroup:
        """Return an independent group holding the same clauses."""
        other = ClauseGroup()
        for occur, clauses in self._sequences.items():
            other._sequences[occur].extend(clauses)
        return other

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Compile non-empty sequences; empty ones are omitted entirely."""
        return {
            occur: [clause.to_dict() for clause in clauses]
            for occur, clauses in self._sequences.items()
            if clauses
        }

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __repr__(self) -> str:
        return f"ClauseGroup({self.to_dict()!r})"


# ---------------------------------------------------------------------------
# Clause factories
# ---------------------------------------------------------------------------


def term(field_name: str, value: Any) -> Clause:
    return Clause(TERM, field_name, value)


def terms(field_name: str, values: Iterable[Any]) -> Clause:
    return Clause(TERMS, field_name, tuple(values))


def match(field_name: str, value: Any, **options: Any) -> Clause:
    return Clause(MATCH, field_name, value, options)


def match_phrase(field_name: str, value: Any, **options: Any) -> Clause:
    return Clause(MATCH_PHRASE, field_name, value, options)


def multi_match(fields: str | Sequence[str], value: Any, options: Mapping[str, Any] | None = None) -> Clause:
    """Build a multi_match clause; a single field name is accepted too."""
    field_names = (fields,) if isinstance(fields, str) else tuple(fields)
    return Clause(MULTI_MATCH, field_names, value, options or {})


def range_(field_name: str, operator: str, value: Any) -> Clause:
    """Build a one-sided range clause from a comparison operator.

    Raises:
        InvalidQueryArgument: If ``operator`` is not one of > < >= <=.
    """
    bound = RANGE_OPERATORS.get(operator)
    if bound is None:
        raise InvalidQueryArgument(f"Invalid operator: {operator}.")
    return Clause(RANGE, field_name, {bound: value})


def between(field_name: str, bounds: Sequence[Any]) -> Clause:
    """Build an inclusive range clause from ``(lower, upper)``.

    Raises:
        InvalidQueryArgument: If ``bounds`` does not hold exactly two values.
    """
    if isinstance(bounds, (str, bytes)) or len(bounds) != 2:
        raise InvalidQueryArgument(f"Between bounds for {field_name} must be a (lower, upper) pair")
    lower, upper = bounds
    return Clause(RANGE, field_name, {"gte": lower, "lte": upper})


def exists(field_name: str) -> Clause:
    return Clause(EXISTS, field_name)


def bool_(group: ClauseGroup) -> Clause:
    """Wrap a compiled sub-group as a nested bool clause (snapshot copy)."""
    return Clause(BOOL, None, group.copy())
