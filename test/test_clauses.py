"""Tests for clause rendering and boolean clause groups."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from IndexPilot.core import clauses
from IndexPilot.core.clauses import Clause, ClauseGroup
from IndexPilot.core.errors import InvalidQueryArgument


class ClauseRenderTest(unittest.TestCase):
    def test_term_and_terms(self) -> None:
        self.assertEqual(clauses.term("status", "paid").to_dict(), {"term": {"status": "paid"}})
        self.assertEqual(clauses.terms("id", (1, 2)).to_dict(), {"terms": {"id": [1, 2]}})

    def test_match_with_options_uses_query_body(self) -> None:
        clause = clauses.match("title", "blue shoes", operator="and")
        self.assertEqual(clause.to_dict(), {"match": {"title": {"query": "blue shoes", "operator": "and"}}})

    def test_multi_match_accepts_single_field(self) -> None:
        clause = clauses.multi_match("title", "shoes", {"type": "best_fields"})
        self.assertEqual(
            clause.to_dict(),
            {"multi_match": {"query": "shoes", "fields": ["title"], "type": "best_fields"}},
        )

    def test_range_operators(self) -> None:
        for op, bound in (("<", "lt"), (">", "gt"), ("<=", "lte"), (">=", "gte")):
            with self.subTest(op=op):
                self.assertEqual(clauses.range_("age", op, 3).to_dict(), {"range": {"age": {bound: 3}}})

    def test_range_rejects_unknown_operator(self) -> None:
        with self.assertRaises(InvalidQueryArgument):
            clauses.range_("age", "=>", 3)

    def test_between_requires_pair(self) -> None:
        self.assertEqual(clauses.between("age", [1, 9]).to_dict(), {"range": {"age": {"gte": 1, "lte": 9}}})
        with self.assertRaises(InvalidQueryArgument):
            clauses.between("age", [1])

    def test_exists(self) -> None:
        self.assertEqual(clauses.exists("email").to_dict(), {"exists": {"field": "email"}})

    def test_unknown_kind_rejected(self) -> None:
        with self.assertRaises(InvalidQueryArgument):
            Clause("wildcard", "name", "a*")


class ClauseGroupTest(unittest.TestCase):
    def test_empty_sequences_are_omitted(self) -> None:
        group = ClauseGroup()
        group.add(clauses.term("a", 1), "should")
        self.assertEqual(group.to_dict(), {"should": [{"term": {"a": 1}}]})

    def test_insertion_order_is_kept(self) -> None:
        group = ClauseGroup()
        for value in (3, 1, 2):
            group.add(clauses.term("n", value))
        self.assertEqual([c.value for c in group.clauses("filter")], [3, 1, 2])

    def test_unknown_occurrence_rejected(self) -> None:
        with self.assertRaises(InvalidQueryArgument):
            ClauseGroup().add(clauses.term("a", 1), "maybe")

    def test_bool_clause_snapshots_group(self) -> None:
        inner = ClauseGroup()
        inner.add(clauses.term("a", 1))
        wrapped = clauses.bool_(inner)
        inner.add(clauses.term("b", 2))

        self.assertEqual(wrapped.to_dict(), {"bool": {"filter": [{"term": {"a": 1}}]}})

    def test_truthiness(self) -> None:
        group = ClauseGroup()
        self.assertFalse(group)
        group.add(clauses.exists("a"), "must_not")
        self.assertTrue(group)


if __name__ == "__main__":
    unittest.main()
