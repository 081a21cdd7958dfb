from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S", time.gmtime())


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        if d:
            os.makedirs(d, exist_ok=True)


def read_json_file(path: str) -> ReadResult:
    if not os.path.exists(path):
        return ReadResult(ok=False, data={}, error="missing")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
        if not isinstance(obj, dict):
            return ReadResult(ok=False, data={}, error="not_object")
        return ReadResult(ok=True, data=obj)
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    except OSError as e:
        return ReadResult(ok=False, data={}, error=str(e))


def atomic_write_text(path: str, text: str) -> None:
    """
    Write text through a temp file in the same directory, then os.replace.
    Newlines are written untranslated so multi-char separators survive.
    """
    ensure_dirs(os.path.dirname(path))
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".txt", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError:
                pass
        os.replace(tmp, path)
    finally:
        try:
            if os.path.exists(tmp):
                os.remove(tmp)
        except OSError:
            pass


def atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n")


def move_to_backups(path: str, backups_dir: str, *, reason: str, keep: int = 10) -> Optional[str]:
    """
    Move a damaged file to backups/<name>.<ts>.<reason> and prune old copies of the same file.
    Returns the backup path, or None if there was nothing to move.
    """
    if not os.path.exists(path):
        return None
    ensure_dirs(backups_dir)
    base = os.path.basename(path)
    out = os.path.join(backups_dir, f"{base}.{_ts()}.{reason}")
    n = 1
    while os.path.exists(out):
        n += 1
        out = os.path.join(backups_dir, f"{base}.{_ts()}.{reason}.{n}")
    shutil.move(path, out)
    # rename keeps the old mtime; retention below sorts on mtime
    try:
        os.utime(out, None)
    except OSError:
        pass
    # retention per file
    try:
        prefix = f"{base}."
        items = [os.path.join(backups_dir, f) for f in os.listdir(backups_dir) if f.startswith(prefix)]
        items.sort(key=lambda p: os.path.getmtime(p), reverse=True)
        for p in items[max(1, int(keep)) :]:
            try:
                os.remove(p)
            except OSError:
                pass
    except OSError:
        pass
    return out
