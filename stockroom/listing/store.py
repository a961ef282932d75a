# stockroom/listing/store.py
"""
In-memory snapshot of one screen's records.

- load():      synchronous fetch; raises LoadError and keeps the old snapshot.
- refresh():   background fetch on the global QThreadPool; at most one in flight,
               a refresh requested meanwhile runs once right after it.
- apply_mutation(): patch the snapshot by id after a successful write.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot

from ..constants import LOAD_TIMEOUT_MS
from ..errors import LoadError

_log = logging.getLogger(__name__)

Loader = Callable[[], Sequence[Mapping[str, Any]]]


class MutationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class _LoadSignals(QObject):
    # (generation, rows) / (generation, message); delivered queued to the UI thread
    finished = Signal(int, object)
    failed = Signal(int, str)


class _LoadRunnable(QRunnable):
    def __init__(self, work: Callable[[], None]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._work = work

    @Slot()
    def run(self) -> None:  # type: ignore[override]
        self._work()


class RecordStore(QObject):
    loaded = Signal(list)
    loadFailed = Signal(str)
    loadingChanged = Signal(bool)

    def __init__(
        self,
        loader: Loader,
        id_field: str,
        *,
        threaded: bool = True,
        timeout_ms: int = LOAD_TIMEOUT_MS,
        pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._loader = loader
        self._id_field = id_field
        self._threaded = threaded
        self._timeout_ms = int(timeout_ms)
        self._pool = pool or QThreadPool.globalInstance()

        self._rows: list[dict] = []
        self._has_snapshot = False
        self._last_error: Optional[str] = None

        self._generation = 0
        self._in_flight = False
        self._rerun = False
        self._closed = False

        self._signals = _LoadSignals(self)
        self._signals.finished.connect(self._on_finished)
        self._signals.failed.connect(self._on_failed)

        self._watchdog = QTimer(self)
        self._watchdog.setSingleShot(True)
        self._watchdog.timeout.connect(self._on_timeout)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def id_field(self) -> str:
        return self._id_field

    @property
    def snapshot(self) -> list[dict]:
        return list(self._rows)

    @property
    def has_snapshot(self) -> bool:
        return self._has_snapshot

    @property
    def is_loading(self) -> bool:
        return self._in_flight

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def find(self, record_id) -> Optional[dict]:
        for r in self._rows:
            if r.get(self._id_field) == record_id:
                return r
        return None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _fetch(self) -> list[dict]:
        try:
            rows = [dict(r) for r in self._loader()]
        except LoadError:
            raise
        except Exception as exc:
            raise LoadError(f"Could not load records: {exc}") from exc
        seen = set()
        for r in rows:
            key = r.get(self._id_field)
            if key in seen:
                raise LoadError(f"Duplicate {self._id_field} {key!r} in loaded records")
            seen.add(key)
        return rows

    def load(self) -> list[dict]:
        """Fetch synchronously and replace the snapshot. Raises LoadError."""
        try:
            rows = self._fetch()
        except LoadError as exc:
            _log.warning("load failed: %s", exc, exc_info=True)
            self._last_error = str(exc)
            self.loadFailed.emit(str(exc))
            raise
        self._replace(rows)
        return self.snapshot

    def refresh(self) -> None:
        """Reload without clearing the current snapshot while in flight."""
        if self._closed:
            return
        if self._in_flight:
            self._rerun = True
            return
        self._start()

    def _start(self) -> None:
        self._generation += 1
        gen = self._generation
        self._in_flight = True
        self._rerun = False
        self.loadingChanged.emit(True)

        if not self._threaded:
            try:
                rows = self._fetch()
            except LoadError as exc:
                self._on_failed(gen, str(exc))
            else:
                self._on_finished(gen, rows)
            return

        signals = self._signals
        fetch = self._fetch

        def work() -> None:
            try:
                rows = fetch()
            except LoadError as exc:
                outcome = (signals.failed, gen, str(exc))
            else:
                outcome = (signals.finished, gen, rows)
            signal, *args = outcome
            try:
                signal.emit(*args)
            except RuntimeError:
                # the owning screen was destroyed while this load ran
                _log.debug("store gone before load #%s completed", gen)

        if self._timeout_ms > 0:
            self._watchdog.start(self._timeout_ms)
        self._pool.start(_LoadRunnable(work))

    def _settle(self) -> None:
        self._watchdog.stop()
        self._in_flight = False
        self.loadingChanged.emit(False)
        if self._rerun and not self._closed:
            self._start()

    def _on_finished(self, gen: int, rows) -> None:
        if gen != self._generation or self._closed:
            _log.debug("dropping late load result #%s", gen)
            return
        self._replace(rows)
        self._settle()

    def _on_failed(self, gen: int, message: str) -> None:
        if gen != self._generation or self._closed:
            _log.debug("dropping late load failure #%s: %s", gen, message)
            return
        _log.warning("refresh failed: %s", message)
        self._last_error = message
        self.loadFailed.emit(message)
        self._settle()

    def _on_timeout(self) -> None:
        if not self._in_flight:
            return
        gen = self._generation
        # bump the generation so the abandoned worker's result is ignored
        self._generation += 1
        message = f"Loading records timed out after {self._timeout_ms / 1000:g}s"
        _log.error("%s (load #%s)", message, gen)
        self._last_error = message
        self.loadFailed.emit(str(LoadError(message)))
        self._settle()

    def _replace(self, rows: list[dict]) -> None:
        self._rows = list(rows)
        self._has_snapshot = True
        self._last_error = None
        self.loaded.emit(self.snapshot)

    # ------------------------------------------------------------------
    # Local correction after a confirmed write
    # ------------------------------------------------------------------
    def apply_mutation(self, kind: MutationKind, record) -> None:
        kind = MutationKind(kind)
        if kind is MutationKind.DELETE:
            key = record.get(self._id_field) if isinstance(record, Mapping) else record
            self._rows = [r for r in self._rows if r.get(self._id_field) != key]
            return

        row = dict(record)
        key = row.get(self._id_field)
        if key is None:
            raise ValueError(f"record has no {self._id_field}")
        for i, r in enumerate(self._rows):
            if r.get(self._id_field) == key:
                self._rows[i] = row
                return
        self._rows.append(row)

    def close(self) -> None:
        """Stop reacting to loads; used on screen teardown."""
        self._closed = True
        self._rerun = False
        self._watchdog.stop()
