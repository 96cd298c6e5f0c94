"""
Per-path in-process locks serialising access to the config and log files.

Cross-process locking is not provided; one writer per path is assumed.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Dict, Union

_GUARD = threading.Lock()
_LOCKS: Dict[str, threading.RLock] = {}


def lock_for(path: Union[str, Path]) -> threading.RLock:
    """Return the lock shared by every caller touching ``path``."""
    key = os.path.normcase(os.path.abspath(os.fspath(path)))
    with _GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock
