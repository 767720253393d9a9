"""Alias-based index migrations.

A logical index name is never a physical index itself: it is an alias that
resolves to one physical generation named ``{name}_{n}``. Three intents are
supported, one per invocation:

  create    Create generation 0 with the alias attached in the same call,
            then backfill. Stops with a warning if the alias already resolves.
  recreate  Blue-green: create the next generation, backfill it, swap the
            alias onto it atomically, then delete the previous generation.
  update    In place: close, put settings, put mapping, and always reopen.

Every administration failure is caught at the top of the intent, logged,
and returned as a failed ``MigrationOutcome``. Completed steps are never
rolled back, and no call is retried.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Final

from IndexPilot.core.errors import AdministrationOperationError
from IndexPilot.index.descriptor import IndexDescriptor, physical_name
from IndexPilot.utils.log import log

if TYPE_CHECKING:
    from IndexPilot.client.base import AdminClient

DONE: Final = "done"
SKIPPED: Final = "skipped"
FAILED: Final = "failed"


class MigrationIntent(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    RECREATE = "recreate"


@dataclass(frozen=True, slots=True)
class MigrationOutcome:
    """Result of one migration invocation.

    Attributes:
        index: Logical index name.
        intent: Intent that was run.
        status: One of ``done``, ``skipped`` or ``failed``.
        message: Operator-facing summary (the error text on failure).
        physical_index: Physical index the intent targeted, when known.
        completed: Names of the steps that finished, in order.
    """

    index: str
    intent: MigrationIntent
    status: str
    message: str = ""
    physical_index: str | None = None
    completed: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status != FAILED


class MigrationEngine:
    """Drives create / update / recreate against one administration client."""

    def __init__(self, client: AdminClient) -> None:
        self._client = client

    def run(
        self,
        descriptor: IndexDescriptor,
        intent: MigrationIntent | str,
        *,
        run_backfill: bool = True,
    ) -> MigrationOutcome:
        """Run one intent for ``descriptor``.

        Raises:
            ValueError: If ``intent`` is not create, update or recreate.
        """
        intent = MigrationIntent(intent)
        if intent is MigrationIntent.RECREATE:
            return self.recreate(descriptor, run_backfill=run_backfill)
        if intent is MigrationIntent.UPDATE:
            if run_backfill and descriptor.backfill is not None:
                log.debug("Backfill is not run for in-place updates of %s", descriptor.name)
            return self.update(descriptor)
        return self.create(descriptor, run_backfill=run_backfill)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def create(self, descriptor: IndexDescriptor, *, run_backfill: bool = True) -> MigrationOutcome:
        """Create generation 0 behind the logical alias, then backfill it."""
        name = descriptor.name
        intent = MigrationIntent.CREATE
        completed: list[str] = []
        new: str | None = None
        try:
            current = self.resolve_physical(name)
            if current is not None:
                log.warning("Index %s exists.", name)
                return MigrationOutcome(name, intent, SKIPPED, f"Index {name} exists.", physical_index=current)

            new = physical_name(name, 0)
            self._client.create(
                new,
                descriptor.settings_body(),
                descriptor.create_mappings(),
                aliases={name: {}},
            )
            completed.append("create")
            log.info("Index %s created.", new)

            if self._backfill(descriptor, new, run_backfill):
                completed.append("backfill")
        except Exception as e:  # noqa: BLE001 - reported to the operator
            return self._failed(name, intent, e, new, completed)

        return MigrationOutcome(name, intent, DONE, f"Index {new} created.", physical_index=new, completed=tuple(completed))

    def recreate(self, descriptor: IndexDescriptor, *, run_backfill: bool = True) -> MigrationOutcome:
        """Build the next generation and cut the alias over to it.

        The alias moves only after backfill returns, so the logical name
        never points at a half-populated index. The previous generation is
        deleted last, and only if one was resolved at the start. An alias over
        several generations is detached from all of them, but only the newest
        is deleted.
        """
        name = descriptor.name
        intent = MigrationIntent.RECREATE
        completed: list[str] = []
        new: str | None = None
        try:
            previous = self.aliased_indices(name)
            if name in previous:
                raise AdministrationOperationError(
                    f"Index {name} is a physical index, not an alias; it cannot be repointed"
                )
            if len(previous) > 1:
                log.warning("Alias %s resolves to several indices, all are detached: %s", name, ", ".join(previous))
            old = previous[-1] if previous else None

            new = self.next_generation(name, current=old)
            self._client.create(new, descriptor.settings_body(), descriptor.create_mappings())
            completed.append("create")
            log.info("Index %s created.", new)

            if self._backfill(descriptor, new, run_backfill):
                completed.append("backfill")

            self._repoint_alias(name, new, previous)
            completed.append("alias")
            log.info("Index %s alias to %s.", new, name)

            if old is not None:
                self._client.delete(old)
                completed.append("delete")
                log.warning("Index %s deleted.", old)
        except Exception as e:  # noqa: BLE001 - reported to the operator
            return self._failed(name, intent, e, new, completed)

        return MigrationOutcome(
            name,
            intent,
            DONE,
            f"Index {name} now resolves to {new}.",
            physical_index=new,
            completed=tuple(completed),
        )

    def update(self, descriptor: IndexDescriptor) -> MigrationOutcome:
        """Apply settings and mappings in place.

        Some settings are immutable on an open index, so the index is closed
        first. Reopening always runs, even when a settings or mapping call
        failed, so a migration error never leaves the index closed.
        """
        name = descriptor.name
        intent = MigrationIntent.UPDATE
        completed: list[str] = []
        try:
            if not self._client.exists(name):
                log.warning("%s not exists.", name)
                return MigrationOutcome(name, intent, SKIPPED, f"{name} not exists.")

            try:
                self._client.close(name)
                completed.append("close")
                log.warning("Index %s closed.", name)

                self._client.put_settings(name, descriptor.settings_body())
                completed.append("settings")
                log.info("Index %s settings updated.", name)

                self._client.put_mapping(name, descriptor.doc_type, descriptor.mapping_body())
                completed.append("mapping")
                log.info("Index %s mappings updated.", name)
            finally:
                self._client.open(name)
                completed.append("open")
                log.info("Index %s opened.", name)
        except Exception as e:  # noqa: BLE001 - reported to the operator
            return self._failed(name, intent, e, name, completed)

        return MigrationOutcome(name, intent, DONE, f"Index {name} updated.", physical_index=name, completed=tuple(completed))

    # ------------------------------------------------------------------
    # Alias and generation helpers
    # ------------------------------------------------------------------

    def aliased_indices(self, name: str) -> list[str]:
        """Return every physical index behind ``name``, oldest generation first.

        When ``name`` is a concrete index rather than an alias, the result is
        ``[name]``.
        """
        if not self._client.exists(name):
            return []
        return sorted(self._client.get_alias(name), key=lambda idx: _generation_of(name, idx))

    def resolve_physical(self, name: str) -> str | None:
        """Return the newest physical index behind ``name``, or None if nothing exists."""
        indices = self.aliased_indices(name)
        if len(indices) > 1:
            log.warning("Alias %s resolves to several indices: %s", name, ", ".join(indices))
        return indices[-1] if indices else None

    def next_generation(self, name: str, current: str | None = None) -> str:
        """Return the first unused physical name after ``current``.

        Tries ``name_0, name_1, ...`` (starting past the current generation
        when there is one) so generations only ever increase.
        """
        generation = _generation_of(name, current) + 1 if current is not None else 0
        while True:
            candidate = physical_name(name, generation)
            if not self._client.exists(candidate):
                return candidate
            generation += 1

    def _repoint_alias(self, name: str, new: str, previous: list[str]) -> None:
        """Point ``name`` at ``new`` alone, detaching every previous index in the same request."""
        if not previous:
            self._client.put_alias(new, name)
            return
        actions = [{"remove": {"index": index, "alias": name}} for index in previous]
        actions.append({"add": {"index": new, "alias": name}})
        self._client.update_aliases(actions)

    def _backfill(self, descriptor: IndexDescriptor, index: str, run_backfill: bool) -> bool:
        """Run the descriptor's backfill against ``index``; return whether it ran."""
        if not run_backfill or descriptor.backfill is None:
            return False
        log.info("Data loading.")
        descriptor.backfill(index, self._client)
        log.info("Data loaded.")
        return True

    @staticmethod
    def _failed(
        name: str,
        intent: MigrationIntent,
        error: Exception,
        physical: str | None,
        completed: list[str],
    ) -> MigrationOutcome:
        log.error("Migration %s of %s failed: %s", intent.value, name, error)
        if completed:
            log.error("Completed steps left in place: %s", ", ".join(completed))
        return MigrationOutcome(
            name,
            intent,
            FAILED,
            str(error) or type(error).__name__,
            physical_index=physical,
            completed=tuple(completed),
        )


def migrate(
    descriptor: IndexDescriptor,
    intent: MigrationIntent | str,
    *,
    client: AdminClient,
    run_backfill: bool = True,
) -> MigrationOutcome:
    """Run one migration intent for ``descriptor`` against ``client``."""
    return MigrationEngine(client).run(descriptor, intent, run_backfill=run_backfill)


def _generation_of(name: str, index: str) -> int:
    """Return ``n`` for ``{name}_{n}``, or -1 for names outside the scheme."""
    match = re.fullmatch(re.escape(name) + r"_(\d+)", index)
    return int(match.group(1)) if match else -1
