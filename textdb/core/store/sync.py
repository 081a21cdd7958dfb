from __future__ import annotations

import logging
import os
import random
import threading
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from textdb.core.config.io import atomic_write_text, move_to_backups
from textdb.core.errors import CorruptedStoreError
from textdb.core.logger import get_logger
from textdb.core.ops_log import OpsLogger
from textdb.core.store.codec import decode, encode

if TYPE_CHECKING:
    from textdb.core.store.database import TextDatabase


@dataclass(frozen=True)
class SyncResult:
    store: str
    loaded: int
    replayed: int
    skipped: int
    entries: int
    written: bool
    duration_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SyncEngine:
    """
    Background reconciliation of one store with its backing file.

    Each cycle: read file -> decode -> replay pending edits -> write if changed -> commit.
    File I/O never happens while the store lock is held. Cycles are serialized,
    whether started by the background thread, sync() or close().
    """

    def __init__(
        self,
        store: "TextDatabase",
        *,
        logger: Optional[logging.Logger] = None,
        ops: Optional[OpsLogger] = None,
        backups_keep: int = 10,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.cfg = store.cfg
        self.logger = logger or get_logger("sync")
        self.ops = ops
        self.backups_keep = int(backups_keep)
        self._rng = rng or random.Random()
        self._stop = threading.Event()
        self._cycle_lock = threading.Lock()
        self._thread = threading.Thread(target=self._loop, name=f"textdb-sync-{store.name}", daemon=True)
        self._started = False

        self.cycles = 0
        self.failures = 0
        self.last_error: Optional[str] = None
        self.last_result: Optional[SyncResult] = None

    # ---- lifecycle ----
    def start(self) -> None:
        if self._started:
            return
        self._started = True
        # First reconciliation happens before the store is handed out.
        self._run_guarded(reason="initial")
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=float(self.cfg.join_timeout_seconds))

    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    # ---- cycles ----
    def sync_once(self) -> SyncResult:
        """Run one cycle now. Raises OSError / CorruptedStoreError; pending edits are never lost."""
        with self._cycle_lock:
            return self._cycle()

    def flush_final(self) -> Optional[SyncResult]:
        attempts = int(self.cfg.final_flush_attempts)
        for attempt in range(1, attempts + 1):
            try:
                res = self.sync_once()
                self._journal("final_flush", "ok", res.to_dict())
                return res
            except CorruptedStoreError as e:
                self.logger.error(f'TextDB "{self.store.name}" final flush: {e.user_message} Replacing file with in-memory state.')
                return self._replace_corrupt_file()
            except OSError as e:
                self.logger.warning(f'TextDB "{self.store.name}" final flush attempt {attempt}/{attempts} failed: {e}')
                if attempt < attempts:
                    time.sleep(0.2 * attempt)
            except Exception:  # noqa: BLE001
                self.logger.exception(f'Unexpected error in TextDB "{self.store.name}" final flush')
                break
        pending = self.store.pending_count()
        self.logger.error(f'TextDB "{self.store.name}" final flush failed; {pending} pending edit(s) were not persisted.')
        self._journal("final_flush", "failed", {"pending": pending})
        return None

    def _cycle(self) -> SyncResult:
        t0 = time.monotonic()
        sep = self.cfg.separator
        text = self._read_text()
        try:
            disk = decode(text, sep)
        except CorruptedStoreError as e:
            e.context["path"] = self.store.path
            raise

        merged, drained, skipped = self.store._merge_pending(disk)
        try:
            encoded = encode(merged, sep)
            written = False
            if encoded != text:
                atomic_write_text(self.store.path, encoded)
                written = True
        except BaseException:
            self.store._requeue(drained)
            raise
        self.store._commit(merged)

        res = SyncResult(
            store=self.store.name,
            loaded=len(disk),
            replayed=len(drained) - len(skipped),
            skipped=len(skipped),
            entries=len(merged),
            written=written,
            duration_ms=round((time.monotonic() - t0) * 1000.0, 3),
        )
        self.cycles += 1
        self.last_result = res
        return res

    def _read_text(self) -> str:
        path = self.store.path
        if not os.path.exists(path):
            return ""
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()

    def _replace_corrupt_file(self) -> Optional[SyncResult]:
        with self._cycle_lock:
            t0 = time.monotonic()
            try:
                backup = move_to_backups(self.store.path, self.store.paths.backups_dir, reason="corrupt", keep=self.backups_keep)
                snapshot, drained = self.store._take_snapshot()
                try:
                    atomic_write_text(self.store.path, encode(snapshot, self.cfg.separator))
                except BaseException:
                    self.store._requeue(drained)
                    raise
            except OSError as e:
                self.logger.error(f'TextDB "{self.store.name}" could not replace corrupt file: {e}')
                self._journal("final_flush", "failed", {"error": str(e)})
                return None
            self.logger.warning(f'TextDB "{self.store.name}" corrupt file moved to {backup}')
            res = SyncResult(
                store=self.store.name,
                loaded=0,
                replayed=len(drained),
                skipped=0,
                entries=len(snapshot),
                written=True,
                duration_ms=round((time.monotonic() - t0) * 1000.0, 3),
            )
            self.last_result = res
            self._journal("final_flush", "replaced_corrupt", {**res.to_dict(), "backup": backup})
            return res

    # ---- background loop ----
    def _loop(self) -> None:
        delay = float(self.cfg.sync_interval_seconds)
        while not self._stop.wait(delay):
            delay = self._run_guarded(reason="interval")

    def _run_guarded(self, *, reason: str) -> float:
        """One cycle that never raises. Returns the delay before the next one."""
        interval = float(self.cfg.sync_interval_seconds)
        name = self.store.name
        try:
            res = self.sync_once()
        except OSError as e:
            self._record_failure(e)
            delay = interval + self._rng.uniform(float(self.cfg.retry_jitter_min_seconds), float(self.cfg.retry_jitter_max_seconds))
            self.logger.warning(f'TextDB "{name}" synchronization: file unavailable ({e}), retrying in {delay:.2f} seconds.')
            self._journal("sync", "io_error", {"reason": reason, "error": str(e), "retry_in": round(delay, 2)})
            return delay
        except CorruptedStoreError as e:
            self._record_failure(e)
            self.logger.error(f'TextDB "{name}" synchronization: {e.user_message} ({e.context.get("token_count")} tokens in {self.store.path})')
            self._journal("sync", "corrupted", {"reason": reason, **e.context})
            return interval
        except Exception as e:  # noqa: BLE001
            self._record_failure(e)
            self.logger.exception(f'Unexpected error in TextDB "{name}" synchronization')
            self._journal("sync", "error", {"reason": reason, "error": f"{type(e).__name__}: {e}"})
            return interval
        self.last_error = None
        self.logger.debug(f'TextDB "{name}" synchronized ({reason}): {res.entries} entries, {res.replayed} edits, written={res.written}')
        self._journal("sync", "ok", {"reason": reason, **res.to_dict()})
        return interval

    def _record_failure(self, e: BaseException) -> None:
        self.failures += 1
        self.last_error = f"{type(e).__name__}: {e}"

    def _journal(self, event: str, outcome: str, details: Dict[str, Any]) -> None:
        if self.ops is None:
            return
        try:
            self.ops.log(store=self.store.name, event=event, outcome=outcome, details=details)
        except OSError as e:
            self.logger.debug(f"ops journal write failed: {e}")
