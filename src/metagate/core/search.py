"""Structured search queries for the document store.

Queries are composed from term, range and match clauses combined under a
bool query's ``must`` list, and render to the Elasticsearch query DSL with
``to_dict``. The same objects evaluate themselves against a single document
via ``matches``, which is what the local (in-memory and SQLite) stores use.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

ID_FIELD = "_id"

_TOKEN = re.compile(r"\w+")


def _tokens(text: Any) -> set[str]:
    """Lower-cased word tokens, approximating a standard analyzer."""
    if text is None:
        return set()
    return {token.lower() for token in _TOKEN.findall(str(text))}


def _field_value(doc_id: str, source: Mapping[str, Any], name: str) -> Any:
    if name == ID_FIELD:
        return doc_id
    return source.get(name)


class Query(Protocol):
    """A clause that can be rendered and evaluated."""

    def to_dict(self) -> dict[str, Any]: ...

    def matches(self, doc_id: str, source: Mapping[str, Any]) -> bool: ...


@dataclass(frozen=True)
class TermQuery:
    """Exact match of a field value."""

    name: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"term": {self.name: self.value}}

    def matches(self, doc_id: str, source: Mapping[str, Any]) -> bool:
        actual = _field_value(doc_id, source, self.name)
        if actual is None:
            return False
        return bool(actual == self.value or str(actual) == str(self.value))


@dataclass(frozen=True)
class RangeQuery:
    """Numeric bounds on a field; unset bounds are open."""

    name: str
    gte: float | None = None
    gt: float | None = None
    lte: float | None = None
    lt: float | None = None

    def to_dict(self) -> dict[str, Any]:
        bounds = {
            op: value
            for op, value in (
                ("gte", self.gte),
                ("gt", self.gt),
                ("lte", self.lte),
                ("lt", self.lt),
            )
            if value is not None
        }
        return {"range": {self.name: bounds}}

    def matches(self, doc_id: str, source: Mapping[str, Any]) -> bool:
        raw = _field_value(doc_id, source, self.name)
        if raw is None or isinstance(raw, bool):
            return False
        try:
            actual = float(raw)
        except (TypeError, ValueError):
            return False
        if self.gte is not None and actual < self.gte:
            return False
        if self.gt is not None and actual <= self.gt:
            return False
        if self.lte is not None and actual > self.lte:
            return False
        return not (self.lt is not None and actual >= self.lt)


@dataclass(frozen=True)
class MatchQuery:
    """Analyzed full-text match; any shared token is a hit."""

    name: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"match": {self.name: {"query": self.text}}}

    def matches(self, doc_id: str, source: Mapping[str, Any]) -> bool:
        wanted = _tokens(self.text)
        if not wanted:
            return False
        return not wanted.isdisjoint(_tokens(_field_value(doc_id, source, self.name)))


@dataclass
class BoolQuery:
    """Conjunction of must clauses. No clauses matches every document."""

    must_clauses: list[Query] = field(default_factory=list)

    def must(self, clause: Query) -> "BoolQuery":
        """Add a clause; returns self for chaining."""
        self.must_clauses.append(clause)
        return self

    def to_dict(self) -> dict[str, Any]:
        if not self.must_clauses:
            return {"bool": {}}
        return {"bool": {"must": [clause.to_dict() for clause in self.must_clauses]}}

    def matches(self, doc_id: str, source: Mapping[str, Any]) -> bool:
        return all(clause.matches(doc_id, source) for clause in self.must_clauses)


def term(name: str, value: Any) -> TermQuery:
    return TermQuery(name, value)


def range_(name: str, **bounds: float) -> RangeQuery:
    return RangeQuery(name, **bounds)


def match(name: str, text: str) -> MatchQuery:
    return MatchQuery(name, text)


def bool_() -> BoolQuery:
    return BoolQuery()


@dataclass(frozen=True)
class Search:
    """A query plus the maximum number of hits to return."""

    query: Query
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {"query": self.query.to_dict(), "size": self.size}


@dataclass(frozen=True)
class SearchHit:
    """One result row: the storage id and the raw stored document."""

    id: str
    source: dict[str, Any]
