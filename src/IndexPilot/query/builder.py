"""Fluent query builder.

Accumulates selection, filtering, sorting, pagination, aggregation,
highlighting, field-aliasing and collapse directives, then compiles them into
one dispatch-ready query document:

    {
      "index": "orders",
      "type": "_doc",                         # only when set
      "_source": ["a", "b"],                  # or {"includes": [], "excludes": []}
      "from": 0, "size": 10,                  # only when set
      "body": {
        "sort": [{"created_at": "desc"}],
        "query": {"bool": {"filter": [...], "should": [...], ...}},
        "collapse": {...},
        "highlight": {"fields": {...}},
        "script_fields": {...},
        "aggs": {...},
        "script": {...},
      },
    }

A builder is a single-owner accumulator without internal locking. Use
``new_query()`` to get an independent instance for the same index.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from IndexPilot.core import clauses
from IndexPilot.core.clauses import Clause, ClauseGroup, check_occurrence
from IndexPilot.core.errors import InvalidQueryArgument

_ALIAS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)
_UNSET: Any = object()

_DEFAULT_INNER_HITS: Mapping[str, Any] = {
    "name": "items",
    "size": 5,
    "sort": [{"id": "desc"}],
}

# operator -> (clause factory, negated)
_COMPARISONS: dict[str, tuple[Callable[[str, Any], Clause], bool]] = {
    "=": (clauses.term, False),
    "!=": (clauses.term, True),
    "<>": (clauses.term, True),
    "match": (clauses.match, False),
    "not match": (clauses.match, True),
    "notmatch": (clauses.match, True),
    "like": (clauses.match_phrase, False),
    "not like": (clauses.match_phrase, True),
    "notlike": (clauses.match_phrase, True),
}


@dataclass(slots=True)
class QueryState:
    """Directives accumulated by one builder.

    Absent values mean "omit from output", never "use a zero default".
    """

    index: str | None = None
    doc_type: str | None = None
    source: list[str] | None = None
    wheres: ClauseGroup = field(default_factory=ClauseGroup)
    sort: list[dict[str, str]] = field(default_factory=list)
    offset: int | None = None
    limit: int | None = None
    aggs: dict[str, dict[str, Any]] = field(default_factory=dict)
    collapse: dict[str, Any] | None = None
    highlight_fields: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    script_fields: dict[str, dict[str, Any]] = field(default_factory=dict)
    script: dict[str, Any] | None = None


def script_field(field_name: str) -> dict[str, Any]:
    """Return the script-field body that exports ``field_name`` server side."""
    return {
        "script": {
            "source": f"doc['{field_name}'].value",
            "lang": "painless",
        },
        "ignore_failure": False,
    }


class QueryBuilder:
    """Chainable accumulator that compiles into one boolean query document.

    Every directive method returns the builder itself; ``compile()`` (alias
    ``to_dict()``) is pure and may be called repeatedly.
    """

    def __init__(self, index: str | None = None) -> None:
        self._state = QueryState(index=index)

    # ------------------------------------------------------------------
    # Target
    # ------------------------------------------------------------------

    @property
    def index_name(self) -> str | None:
        return self._state.index

    def index(self, name: str) -> QueryBuilder:
        self._state.index = name
        return self

    def doc_type(self, label: str) -> QueryBuilder:
        self._state.doc_type = label
        return self

    def new_query(self) -> QueryBuilder:
        """Return a fresh builder sharing only the index name."""
        return QueryBuilder(self._state.index)

    def for_nested_where(self) -> QueryBuilder:
        return self.new_query()

    # ------------------------------------------------------------------
    # Projection and aliases
    # ------------------------------------------------------------------

    def select(self, *fields: str | Sequence[str]) -> QueryBuilder:
        """Set the explicit field projection.

        Accepts either a single sequence or varargs. An entry such as
        ``"price as amount"`` keeps ``price`` in the projection and exports it
        again as the script field ``amount`` at compile time.
        """
        self._state.source = _flatten(fields)
        return self

    def add_select(self, *fields: str | Sequence[str]) -> QueryBuilder:
        extra = _flatten(fields)
        if self._state.source is None:
            self._state.source = extra
        else:
            self._state.source.extend(name for name in extra if name not in self._state.source)
        return self

    def add_alias(self, field_name: str, alias: str) -> QueryBuilder:
        """Export ``field_name`` as computed field ``alias`` (last write wins)."""
        return self.add_script_field(field_name, alias)

    def add_script_field(self, field_name: str, alias: str) -> QueryBuilder:
        if field_name and alias:
            self._state.script_fields[alias] = script_field(field_name)
        return self

    # ------------------------------------------------------------------
    # Sorting and pagination
    # ------------------------------------------------------------------

    def add_order(self, entries: Iterable[Mapping[str, str]], prepend: bool = False) -> QueryBuilder:
        new_entries = [dict(entry) for entry in entries]
        if prepend:
            self._state.sort[:0] = new_entries
        else:
            self._state.sort.extend(new_entries)
        return self

    def order_by(self, field_name: str, direction: str = "asc", prepend: bool = False) -> QueryBuilder:
        """Add a single-field sort; anything other than "asc" sorts descending."""
        normalized = "asc" if str(direction).lower() == "asc" else "desc"
        return self.add_order([{field_name: normalized}], prepend=prepend)

    def offset(self, value: int) -> QueryBuilder:
        """Set ``from``; negative values are ignored and keep the prior value."""
        if value >= 0:
            self._state.offset = value
        return self

    def skip(self, value: int) -> QueryBuilder:
        return self.offset(value)

    def limit(self, value: int) -> QueryBuilder:
        """Set ``size``; negative values are ignored and keep the prior value."""
        if value >= 0:
            self._state.limit = value
        return self

    def take(self, value: int) -> QueryBuilder:
        return self.limit(value)

    def for_page(self, page: int, per_page: int = 15) -> QueryBuilder:
        return self.skip((page - 1) * per_page).take(per_page)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def add_where(self, clause: Clause, occur: str = "filter") -> QueryBuilder:
        """Append a prebuilt clause to one boolean sequence.

        Raises:
            InvalidQueryArgument: If ``occur`` is not filter/should/must/must_not.
        """
        self._state.wheres.add(clause, occur)
        return self

    def where_term(self, field_name: str, value: Any, occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.term(field_name, value), occur)

    def where_terms(self, field_name: str, values: Iterable[Any], occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.terms(field_name, values), occur)

    def where_match(self, field_name: str, value: Any, occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.match(field_name, value), occur)

    def where_match_phrase(self, field_name: str, value: Any, occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.match_phrase(field_name, value), occur)

    def where_multi_match(
        self,
        fields: str | Sequence[str],
        value: Any,
        options: Mapping[str, Any] | None = None,
        occur: str = "filter",
    ) -> QueryBuilder:
        return self.add_where(clauses.multi_match(fields, value, options), occur)

    def where_range(self, field_name: str, operator: str, value: Any, occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.range_(field_name, operator, value), occur)

    def where_between(self, field_name: str, bounds: Sequence[Any], occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.between(field_name, bounds), occur)

    def where_not_between(self, field_name: str, bounds: Sequence[Any]) -> QueryBuilder:
        return self.where_between(field_name, bounds, "must_not")

    def where_exists(self, field_name: str, occur: str = "filter") -> QueryBuilder:
        return self.add_where(clauses.exists(field_name), occur)

    def where_not_exists(self, field_name: str) -> QueryBuilder:
        return self.where_exists(field_name, "must_not")

    def where_null(self, field_name: str) -> QueryBuilder:
        return self.where_not_exists(field_name)

    def where_in(self, field_name: str, values: Iterable[Any], occur: str = "filter") -> QueryBuilder:
        return self.where_terms(field_name, values, occur)

    def where_not_in(self, field_name: str, values: Iterable[Any]) -> QueryBuilder:
        return self.where_in(field_name, values, "must_not")

    def or_where_in(self, field_name: str, values: Iterable[Any]) -> QueryBuilder:
        return self.where_in(field_name, values, "should")

    def where(
        self,
        field_name: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator: Any = _UNSET,
        value: Any = _UNSET,
        occur: str = "filter",
    ) -> QueryBuilder:
        """Add a predicate.

        Three shapes are accepted:

        - ``where({"status": "paid", "age": (">", 18)})``: AND-ed predicates
          wrapped in one nested bool clause.
        - ``where(lambda q: q.where(...).or_where(...))``: nested bool clause.
        - ``where("age", ">", 18)``; the two-argument form implies ``=``.

        Raises:
            InvalidQueryArgument: For an unknown operator or sequence name.
        """
        if isinstance(field_name, Mapping):
            return self._add_mapping_of_wheres(field_name, occur)
        if callable(field_name):
            return self.where_nested(field_name, occur)

        if value is _UNSET:
            operator, value = "=", operator
        if value is _UNSET:
            raise InvalidQueryArgument(f"Missing value for where on {field_name}")
        return self._perform_where(field_name, operator, value, occur)

    def or_where(
        self,
        field_name: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator: Any = _UNSET,
        value: Any = _UNSET,
    ) -> QueryBuilder:
        """Same dispatch as ``where`` but into the ``should`` sequence."""
        return self.where(field_name, operator, value, "should")

    def where_nested(self, callback: Callable[[QueryBuilder], Any], occur: str = "filter") -> QueryBuilder:
        """Run ``callback`` on a fresh builder and add its predicates as one bool clause.

        A callback that adds nothing contributes nothing.
        """
        check_occurrence(occur)
        query = self.for_nested_where()
        callback(query)
        return self.add_nested_where_query(query, occur)

    def add_nested_where_query(self, query: QueryBuilder, occur: str = "filter") -> QueryBuilder:
        wheres = query.compile_wheres()
        if wheres:
            self.add_where(clauses.bool_(wheres), occur)
        return self

    # ------------------------------------------------------------------
    # Collapse, highlight, aggregations, script
    # ------------------------------------------------------------------

    def collapse(
        self,
        field_name: str,
        inner_hits: Mapping[str, Any] | None = None,
        max_concurrent_group_searches: int = 5,
    ) -> QueryBuilder:
        """De-duplicate hits by ``field_name``.

        ``inner_hits`` overrides are merged over the default
        ``{"name": "items", "size": 5, "sort": [{"id": "desc"}]}``.
        """
        options = copy.deepcopy(dict(_DEFAULT_INNER_HITS))
        options.update(inner_hits or {})
        self._state.collapse = {
            "field": field_name,
            "inner_hits": options,
            "max_concurrent_group_searches": max_concurrent_group_searches,
        }
        return self

    def highlight(
        self,
        field_name: str,
        pre_tag: str | Sequence[str] = "<em>",
        post_tag: str | Sequence[str] = "</em>",
    ) -> QueryBuilder:
        self._state.highlight_fields[field_name] = {
            "pre_tags": _as_list(pre_tag),
            "post_tags": _as_list(post_tag),
        }
        return self

    def aggregation(self, field_name: str, agg_type: str = "cardinality", alias: str | None = None) -> QueryBuilder:
        self._state.aggs[alias or field_name] = {agg_type: {"field": field_name}}
        return self

    def script(self, payload: Mapping[str, Any]) -> QueryBuilder:
        self._state.script = dict(payload)
        return self

    # ------------------------------------------------------------------
    # Conditional composition
    # ------------------------------------------------------------------

    def when(
        self,
        value: Any,
        callback: Callable[[QueryBuilder, Any], Any],
        default: Callable[[QueryBuilder, Any], Any] | None = None,
    ) -> Any:
        """Apply ``callback`` when ``value`` is truthy, else ``default`` if given."""
        if value:
            return callback(self, value) or self
        if default is not None:
            return default(self, value) or self
        return self

    def unless(
        self,
        value: Any,
        callback: Callable[[QueryBuilder, Any], Any],
        default: Callable[[QueryBuilder, Any], Any] | None = None,
    ) -> Any:
        if not value:
            return callback(self, value) or self
        if default is not None:
            return default(self, value) or self
        return self

    def tap(self, callback: Callable[[QueryBuilder, Any], Any]) -> Any:
        return self.when(True, callback)

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def compile_base(self) -> dict[str, Any]:
        params: dict[str, Any] = {"index": self._state.index}
        if self._state.doc_type is not None:
            params["type"] = self._state.doc_type
        return params

    def compile_wheres(self) -> ClauseGroup:
        """Return a snapshot of the accumulated predicates."""
        return self._state.wheres.copy()

    def compile_source(self, script_fields: dict[str, dict[str, Any]]) -> Any:
        """Compile the projection, registering ``x as y`` aliases into ``script_fields``."""
        if self._state.source is None:
            return {"includes": [], "excludes": []}

        projection: list[str] = []
        for name in self._state.source:
            parts = _ALIAS_RE.split(name.strip(), maxsplit=1)
            if len(parts) == 2 and parts[0] and parts[1]:
                source_field, alias = parts
                script_fields[alias] = script_field(source_field)
                projection.append(source_field)
            else:
                projection.append(name.strip())
        return projection

    def compile_body(self, script_fields: Mapping[str, dict[str, Any]] | None = None) -> dict[str, Any]:
        state = self._state
        if script_fields is None:
            script_fields = state.script_fields

        body: dict[str, Any] = {}
        if state.sort:
            body["sort"] = [dict(entry) for entry in state.sort]
        wheres = state.wheres.to_dict()
        if wheres:
            body["query"] = {"bool": wheres}
        if state.collapse:
            body["collapse"] = state.collapse
        if state.highlight_fields:
            body["highlight"] = {"fields": state.highlight_fields}
        if script_fields:
            body["script_fields"] = dict(script_fields)
        if state.aggs:
            body["aggs"] = state.aggs
        return body

    def compile(self) -> dict[str, Any]:
        """Compile all directives into one query document.

        Compilation never mutates the builder: aliases discovered in the
        projection are added to this compilation's script fields only, and
        the result is a deep copy the caller may modify freely.

        Returns:
            Dispatch-ready parameter document.
        """
        params = self.compile_base()

        script_fields = dict(self._state.script_fields)
        params["_source"] = self.compile_source(script_fields)

        if self._state.offset is not None:
            params["from"] = self._state.offset
        if self._state.limit is not None:
            params["size"] = self._state.limit

        body = self.compile_body(script_fields)
        if body:
            params["body"] = body
        if self._state.script:
            params.setdefault("body", {})["script"] = self._state.script

        return copy.deepcopy(params)

    def to_dict(self) -> dict[str, Any]:
        return self.compile()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _perform_where(self, field_name: str, operator: Any, value: Any, occur: str) -> QueryBuilder:
        check_occurrence(occur)
        op = " ".join(str(operator).lower().split())

        if op in clauses.RANGE_OPERATORS:
            return self.where_range(field_name, op, value, occur)

        entry = _COMPARISONS.get(op)
        if entry is None:
            raise InvalidQueryArgument(f"Invalid operator: {operator}.")
        factory, negated = entry
        clause = factory(field_name, value)
        if not negated:
            return self.add_where(clause, occur)
        if occur == "filter":
            return self.add_where(clause, "must_not")
        # Negation inside should/must/must_not needs its own bool scope.
        negation = ClauseGroup()
        negation.add(clause, "must_not")
        return self.add_where(clauses.bool_(negation), occur)

    def _add_mapping_of_wheres(self, conditions: Mapping[str, Any], occur: str) -> QueryBuilder:
        def apply(query: QueryBuilder) -> None:
            for key, value in conditions.items():
                if isinstance(value, tuple):
                    query.where(key, *value)
                elif isinstance(value, list):
                    query.where_in(key, value)
                else:
                    query.where(key, "=", value)

        return self.where_nested(apply, occur)


def _flatten(fields: tuple[str | Sequence[str], ...]) -> list[str]:
    if len(fields) == 1 and not isinstance(fields[0], str):
        return [str(name) for name in fields[0]]
    return [str(name) for name in fields]


def _as_list(value: str | Sequence[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)
