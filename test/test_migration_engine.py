"""Tests for alias-based index migrations.

Covers the three intents against an in-memory fake engine:
  1. create   - generation 0 with alias, stop when the alias already resolves
  2. recreate - blue-green cut-over ordering and backfill failure
  3. update   - close / settings / mapping, with reopen on failure
"""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from IndexPilot.core.errors import AdministrationOperationError
from IndexPilot.index import IndexDescriptor
from IndexPilot.migration import DONE, FAILED, SKIPPED, MigrationEngine, MigrationIntent, migrate


class _FakeEngine:
    """Records administration calls and keeps minimal index/alias state."""

    def __init__(self, indices=(), aliases=None, fail_on=()) -> None:
        self.indices: set[str] = set(indices)
        # alias -> one index, or a tuple when it resolves to several
        self.aliases: dict[str, str | tuple] = dict(aliases or {})
        self.fail_on = set(fail_on)
        self.calls: list[tuple] = []
        self.documents: dict[str, dict] = {}

    def _call(self, *call) -> None:
        self.calls.append(call)
        if call[0] in self.fail_on:
            raise AdministrationOperationError(f"{call[0]} failed", status=500)

    def _targets(self, alias) -> list[str]:
        target = self.aliases.get(alias, ())
        return [target] if isinstance(target, str) else list(target)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def exists(self, index):
        self._call("exists", index)
        return index in self.indices or index in self.aliases

    def get_alias(self, name):
        self._call("get_alias", name)
        if name in self.aliases:
            return {index: {"aliases": {name: {}}} for index in self._targets(name)}
        if name in self.indices:
            return {name: {"aliases": {}}}
        return {}

    def create(self, index, settings, mappings, aliases=None):
        self._call("create", index, settings, mappings, aliases)
        self.indices.add(index)
        for alias in aliases or {}:
            self.aliases[alias] = index
        return {"acknowledged": True}

    def put_alias(self, index, name):
        self._call("put_alias", index, name)
        self.aliases[name] = index

    def update_aliases(self, actions):
        self._call("update_aliases", actions)
        for action in actions:
            for op, target in action.items():
                indices = self._targets(target["alias"])
                if op == "remove":
                    indices.remove(target["index"])
                else:
                    indices.append(target["index"])
                self.aliases[target["alias"]] = indices[0] if len(indices) == 1 else tuple(indices)

    def delete(self, index):
        self._call("delete", index)
        self.indices.discard(index)

    def close(self, index):
        self._call("close", index)

    def open(self, index):
        self._call("open", index)

    def put_settings(self, index, settings):
        self._call("put_settings", index, settings)

    def put_mapping(self, index, doc_type, mapping):
        self._call("put_mapping", index, doc_type, mapping)

    def index(self, index, document, id=None):
        self._call("index", index, id)
        self.documents.setdefault(index, {})[id] = dict(document)

    def bulk(self, operations):
        operations = list(operations)
        self._call("bulk", len(operations))
        for op in operations:
            self.documents.setdefault(op["_index"], {})[op.get("_id")] = dict(op["_source"])
        return len(operations)

    def get(self, index, id):
        self._call("get", index, id)
        return {"_index": index, "_id": id, "_source": self.documents[index][id]}


def _descriptor(backfill=None) -> IndexDescriptor:
    return IndexDescriptor(
        name="orders",
        settings={"number_of_replicas": 0},
        properties={"id": {"type": "long"}},
        backfill=backfill,
    )


class CreateTest(unittest.TestCase):
    def test_creates_generation_zero_with_alias(self) -> None:
        engine = _FakeEngine()
        loaded: list[str] = []

        outcome = MigrationEngine(engine).create(_descriptor(lambda index, client: loaded.append(index)))

        self.assertEqual(outcome.status, DONE)
        self.assertEqual(outcome.physical_index, "orders_0")
        create = [c for c in engine.calls if c[0] == "create"][0]
        self.assertEqual(
            create,
            ("create", "orders_0", {"number_of_replicas": 0}, {"properties": {"id": {"type": "long"}}}, {"orders": {}}),
        )
        self.assertEqual(loaded, ["orders_0"])
        self.assertEqual(outcome.completed, ("create", "backfill"))

    def test_existing_alias_stops_without_side_effects(self) -> None:
        engine = _FakeEngine(indices={"orders_3"}, aliases={"orders": "orders_3"})

        with self.assertLogs("IndexPilot", level="WARNING"):
            outcome = MigrationEngine(engine).create(_descriptor(lambda index, client: self.fail("backfill ran")))

        self.assertEqual(outcome.status, SKIPPED)
        self.assertTrue(outcome.ok)
        self.assertEqual(engine.names(), ["exists", "get_alias"])

    def test_no_backfill_flag(self) -> None:
        outcome = MigrationEngine(_FakeEngine()).create(
            _descriptor(lambda index, client: self.fail("backfill ran")), run_backfill=False
        )
        self.assertEqual(outcome.completed, ("create",))

    def test_create_failure_is_reported(self) -> None:
        engine = _FakeEngine(fail_on={"create"})

        with self.assertLogs("IndexPilot", level="ERROR"):
            outcome = MigrationEngine(engine).create(_descriptor())

        self.assertEqual(outcome.status, FAILED)
        self.assertFalse(outcome.ok)
        self.assertIn("create failed", outcome.message)


class RecreateTest(unittest.TestCase):
    def test_cut_over_order(self) -> None:
        engine = _FakeEngine(indices={"orders_3"}, aliases={"orders": "orders_3"})

        outcome = MigrationEngine(engine).recreate(_descriptor(lambda index, client: client.exists(index)))

        self.assertEqual(outcome.status, DONE)
        self.assertEqual(outcome.physical_index, "orders_4")
        mutating = [c for c in engine.calls if c[0] in {"create", "update_aliases", "delete"}]
        self.assertEqual(mutating[0][:2], ("create", "orders_4"))
        self.assertIsNone(mutating[0][4])
        self.assertEqual(
            mutating[1],
            (
                "update_aliases",
                [
                    {"remove": {"index": "orders_3", "alias": "orders"}},
                    {"add": {"index": "orders_4", "alias": "orders"}},
                ],
            ),
        )
        self.assertEqual(mutating[2], ("delete", "orders_3"))
        self.assertEqual(engine.aliases, {"orders": "orders_4"})
        self.assertEqual(engine.indices, {"orders_4"})

    def test_backfill_writes_through_its_handle(self) -> None:
        engine = _FakeEngine(indices={"orders_3"}, aliases={"orders": "orders_3"})
        rows = [{"id": 1, "status": "paid"}, {"id": 2, "status": "open"}]

        def reindex(index, client):
            client.bulk({"_index": index, "_id": str(r["id"]), "_source": r} for r in rows)
            client.index(index, {"id": 3, "status": "late"}, id="3")

        outcome = MigrationEngine(engine).recreate(_descriptor(reindex))

        self.assertEqual(outcome.status, DONE)
        self.assertEqual(sorted(engine.documents["orders_4"]), ["1", "2", "3"])
        self.assertNotIn("orders_3", engine.documents)
        self.assertLess(engine.names().index("index"), engine.names().index("update_aliases"))

    def test_backfill_runs_before_alias_moves(self) -> None:
        engine = _FakeEngine(indices={"orders_3"}, aliases={"orders": "orders_3"})
        seen: list[str] = []

        MigrationEngine(engine).recreate(_descriptor(lambda index, client: seen.append(engine.aliases["orders"])))

        self.assertEqual(seen, ["orders_3"])

    def test_backfill_failure_keeps_old_alias(self) -> None:
        engine = _FakeEngine(indices={"orders_3"}, aliases={"orders": "orders_3"})

        def backfill(index, client):
            raise RuntimeError("source database unavailable")

        with self.assertLogs("IndexPilot", level="ERROR"):
            outcome = MigrationEngine(engine).recreate(_descriptor(backfill))

        self.assertEqual(outcome.status, FAILED)
        self.assertEqual(outcome.completed, ("create",))
        self.assertEqual(engine.aliases, {"orders": "orders_3"})
        self.assertEqual(engine.indices, {"orders_3", "orders_4"})
        self.assertNotIn("update_aliases", engine.names())
        self.assertNotIn("delete", engine.names())

    def test_without_existing_alias_nothing_is_deleted(self) -> None:
        engine = _FakeEngine()

        outcome = MigrationEngine(engine).recreate(_descriptor())

        self.assertEqual(outcome.physical_index, "orders_0")
        self.assertIn(("put_alias", "orders_0", "orders"), engine.calls)
        self.assertNotIn("delete", engine.names())
        self.assertEqual(outcome.completed, ("create", "alias"))

    def test_skips_generations_already_taken(self) -> None:
        engine = _FakeEngine(indices={"orders_3", "orders_4"}, aliases={"orders": "orders_3"})

        outcome = MigrationEngine(engine).recreate(_descriptor())

        self.assertEqual(outcome.physical_index, "orders_5")

    def test_delete_failure_leaves_old_index_and_reports(self) -> None:
        engine = _FakeEngine(indices={"orders_3"}, aliases={"orders": "orders_3"}, fail_on={"delete"})

        with self.assertLogs("IndexPilot", level="ERROR"):
            outcome = MigrationEngine(engine).recreate(_descriptor())

        self.assertEqual(outcome.status, FAILED)
        self.assertEqual(outcome.completed, ("create", "alias"))
        self.assertEqual(engine.aliases, {"orders": "orders_4"})
        self.assertIn("orders_3", engine.indices)

    def test_alias_over_several_generations_is_detached_from_all(self) -> None:
        engine = _FakeEngine(indices={"orders_2", "orders_3"}, aliases={"orders": ("orders_3", "orders_2")})

        with self.assertLogs("IndexPilot", level="WARNING"):
            outcome = MigrationEngine(engine).recreate(_descriptor())

        self.assertEqual(outcome.status, DONE)
        self.assertEqual(outcome.physical_index, "orders_4")
        swap = [c for c in engine.calls if c[0] == "update_aliases"][0]
        self.assertEqual(
            swap[1],
            [
                {"remove": {"index": "orders_2", "alias": "orders"}},
                {"remove": {"index": "orders_3", "alias": "orders"}},
                {"add": {"index": "orders_4", "alias": "orders"}},
            ],
        )
        self.assertEqual(engine.aliases, {"orders": "orders_4"})
        self.assertIn(("delete", "orders_3"), engine.calls)
        self.assertEqual(engine.indices, {"orders_2", "orders_4"})

    def test_concrete_index_under_logical_name_is_refused(self) -> None:
        engine = _FakeEngine(indices={"orders"})

        with self.assertLogs("IndexPilot", level="ERROR"):
            outcome = MigrationEngine(engine).recreate(_descriptor())

        self.assertEqual(outcome.status, FAILED)
        self.assertNotIn("create", engine.names())


class UpdateTest(unittest.TestCase):
    def test_update_sequence(self) -> None:
        engine = _FakeEngine(indices={"orders_0"}, aliases={"orders": "orders_0"})

        outcome = MigrationEngine(engine).update(_descriptor())

        self.assertEqual(outcome.status, DONE)
        self.assertEqual(engine.names(), ["exists", "close", "put_settings", "put_mapping", "open"])
        self.assertEqual(engine.calls[3], ("put_mapping", "orders", None, {"properties": {"id": {"type": "long"}}}))

    def test_reopens_when_put_mapping_fails(self) -> None:
        engine = _FakeEngine(indices={"orders_0"}, aliases={"orders": "orders_0"}, fail_on={"put_mapping"})

        with self.assertLogs("IndexPilot", level="ERROR"):
            outcome = MigrationEngine(engine).update(_descriptor())

        self.assertEqual(outcome.status, FAILED)
        self.assertEqual(engine.names(), ["exists", "close", "put_settings", "put_mapping", "open"])
        self.assertEqual(outcome.completed, ("close", "settings", "open"))

    def test_missing_index_is_skipped(self) -> None:
        engine = _FakeEngine()

        with self.assertLogs("IndexPilot", level="WARNING"):
            outcome = MigrationEngine(engine).update(_descriptor())

        self.assertEqual(outcome.status, SKIPPED)
        self.assertEqual(engine.names(), ["exists"])


class MigrateEntryPointTest(unittest.TestCase):
    def test_dispatches_by_intent_name(self) -> None:
        engine = _FakeEngine()

        outcome = migrate(_descriptor(), "recreate", client=engine, run_backfill=False)

        self.assertEqual(outcome.intent, MigrationIntent.RECREATE)
        self.assertEqual(outcome.physical_index, "orders_0")

    def test_unknown_intent_raises(self) -> None:
        with self.assertRaises(ValueError):
            migrate(_descriptor(), "drop", client=_FakeEngine())


if __name__ == "__main__":
    unittest.main()
