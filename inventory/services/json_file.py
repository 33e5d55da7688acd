"""Shared helpers for the JSON-backed stores"""

import json
import shutil
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator

from ..utils.exceptions import TransientStoreFailure


def read_json(path: Path, store: str) -> Dict[str, Any]:
    """Load a JSON document; a missing file is an empty store"""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f) or {}
    except (json.JSONDecodeError, OSError) as e:
        raise TransientStoreFailure(f"Failed to read {path}: {str(e)}", store=store)


def atomic_write(path: Path, data: Dict[str, Any], store: str) -> None:
    """Write JSON file atomically"""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with tempfile.NamedTemporaryFile(mode="w", dir=path.parent, delete=False, encoding="utf-8") as tf:
            json.dump(data, tf, indent=2, ensure_ascii=False, default=str)
            temp_path = Path(tf.name)
    except OSError as e:
        raise TransientStoreFailure(f"Failed to write {path}: {str(e)}", store=store)

    try:
        # Atomic move/replace
        shutil.move(str(temp_path), str(path))
    except OSError as e:
        # Clean up temp file if move failed
        if temp_path.exists():
            temp_path.unlink()
        raise TransientStoreFailure(f"Failed to save {path}: {str(e)}", store=store)


@contextmanager
def bounded_lock(lock: threading.Lock, timeout_seconds: float, store: str) -> Generator[None, None, None]:
    """Acquire a store lock or fail with TransientStoreFailure after the timeout"""
    if not lock.acquire(timeout=timeout_seconds):
        raise TransientStoreFailure(f"{store} store busy for more than {timeout_seconds}s", store=store)
    try:
        yield
    finally:
        lock.release()
