"""Reconcile the mod store with a freshly downloaded catalog."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .catalog import records_from_catalog
from .record import ModRecord
from .store import Store

logger = logging.getLogger(__name__)

# change line callback, e.g. "[ADD]    Title (1.0)"
EventCallback = Callable[[str], None]
# first-run progress callback: (entries processed, total entries)
ProgressCallback = Callable[[int, int], None]


@dataclass
class SyncReport:
    inserted: list[tuple[str, str]] = field(default_factory=list)
    updated: list[tuple[str, str]] = field(default_factory=list)
    deleted: list[tuple[str, str]] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    first_run: bool = False

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def is_noop(self) -> bool:
        return not (self.inserted or self.updated or self.deleted)


def _noop_event(line: str) -> None:
    pass


def _noop_progress(done: int, total: int) -> None:
    pass


def change_line(action: str, record: ModRecord) -> str:
    """Format a change line: the action tag padded to the width of [DELETE]."""
    return f"{f'[{action}]':<8} {record.title} ({record.version})"


class Synchronizer:
    """Applies the insert/update/delete diff between a catalog and the store."""

    def __init__(
        self,
        store: Store,
        on_event: EventCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.store = store
        self.on_event = on_event or _noop_event
        self.on_progress = on_progress or _noop_progress

    def _emit(self, report: SyncReport, action: str, record: ModRecord) -> None:
        line = change_line(action, record)
        report.changes.append(line)
        self.on_event(line)

    def sync(self, catalog: list[Any]) -> SyncReport:
        """
        Bring the store in line with ``catalog``.

        Every entry is parsed before the store is touched, so a malformed
        catalog leaves it unchanged. Write failures are not rolled back.

        On the first sync into an empty store, per-mod additions are not
        reported through ``on_event``; ``on_progress`` is called per entry
        instead.
        """
        records = records_from_catalog(catalog)

        stored_keys = self.store.get_all_keys()
        report = SyncReport(first_run=not stored_keys)
        incoming_keys: set[tuple[str, str]] = set()
        total = len(records)

        for i, record in enumerate(records):
            incoming_keys.add(record.key)
            stored = self.store.get(record.mid, record.version)

            if stored is None:
                self.store.insert(record)
                report.inserted.append(record.key)
                if report.first_run:
                    report.changes.append(change_line("ADD", record))
                else:
                    self._emit(report, "ADD", record)
            elif stored != record:
                self.store.update(record)
                report.updated.append(record.key)
                self._emit(report, "UPDATE", record)

            if report.first_run:
                self.on_progress(i + 1, total)

        for mid, version in sorted(stored_keys - incoming_keys):
            stored = self.store.get(mid, version)
            if stored is not None:
                self._emit(report, "DELETE", stored)
            self.store.delete(mid, version)
            report.deleted.append((mid, version))

        logger.info(
            "Sync complete: %d added, %d updated, %d deleted",
            report.inserted_count,
            report.updated_count,
            report.deleted_count,
        )
        return report
