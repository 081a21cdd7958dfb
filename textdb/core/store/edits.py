from __future__ import annotations

import collections
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, Iterable, List, Optional

from textdb.core.errors import DuplicateKeyError


class EditKind(str, Enum):
    SET = "SET"
    ADD = "ADD"
    REMOVE = "REMOVE"
    CLEAR = "CLEAR"


@dataclass(frozen=True)
class PendingEdit:
    kind: EditKind
    key: Optional[str] = None
    value: Optional[str] = None

    @classmethod
    def set(cls, key: str, value: str) -> "PendingEdit":
        return cls(EditKind.SET, key, value)

    @classmethod
    def add(cls, key: str, value: str) -> "PendingEdit":
        return cls(EditKind.ADD, key, value)

    @classmethod
    def remove(cls, key: str) -> "PendingEdit":
        return cls(EditKind.REMOVE, key)

    @classmethod
    def clear(cls) -> "PendingEdit":
        return cls(EditKind.CLEAR)

    def apply(self, target: Dict[str, str]) -> None:
        """Apply to target in place. ADD on an existing key raises DuplicateKeyError and leaves target unchanged."""
        if self.kind == EditKind.SET:
            target[str(self.key)] = str(self.value)
        elif self.kind == EditKind.ADD:
            if self.key in target:
                raise DuplicateKeyError(str(self.key))
            target[str(self.key)] = str(self.value)
        elif self.kind == EditKind.REMOVE:
            target.pop(str(self.key), None)
        elif self.kind == EditKind.CLEAR:
            target.clear()
        else:  # pragma: no cover
            raise ValueError(f"unknown edit kind: {self.kind}")

    def describe(self) -> str:
        if self.kind == EditKind.CLEAR:
            return "CLEAR"
        if self.kind == EditKind.REMOVE:
            return f"REMOVE {self.key!r}"
        return f"{self.kind.value} {self.key!r}"


class EditQueue:
    """
    FIFO of pending edits.

    - put() is safe from any number of threads
    - drain() hands every queued edit to exactly one caller
    - requeue() puts a drained batch back ahead of newer edits
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._q: Deque[PendingEdit] = collections.deque()

    def put(self, edit: PendingEdit) -> None:
        with self._lock:
            self._q.append(edit)

    def drain(self) -> List[PendingEdit]:
        with self._lock:
            out = list(self._q)
            self._q.clear()
            return out

    def requeue(self, edits: Iterable[PendingEdit]) -> None:
        batch = list(edits)
        if not batch:
            return
        with self._lock:
            self._q.extendleft(reversed(batch))

    def peek(self) -> List[PendingEdit]:
        with self._lock:
            return list(self._q)

    def __len__(self) -> int:
        with self._lock:
            return len(self._q)


def replay(edits: Iterable[PendingEdit], target: Dict[str, str], *, logger: Optional[logging.Logger] = None, store: str = "") -> List[PendingEdit]:
    """
    Apply edits in order. An edit that fails is logged and skipped; the rest still apply.
    Returns the skipped edits.
    """
    skipped: List[PendingEdit] = []
    for edit in edits:
        try:
            edit.apply(target)
        except DuplicateKeyError as e:
            skipped.append(edit)
            if logger:
                logger.warning(f'TextDB "{store}" replay skipped {edit.describe()}: {e.user_message}')
    return skipped
