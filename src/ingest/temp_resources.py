"""Temporary clone directories and the repository handles that live in them.

A clone leaves pack files that may still be memory-mapped by an open
repository handle, so the handle is always released before the directory is
removed, and removal is retried with increasing delays. Whatever still cannot
be removed is scheduled for deletion when the interpreter exits.
"""

import atexit
import gc
import os
import shutil
import stat
import tempfile
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from common.constants import TEMP_DIR_PREFIX
from common.logger import get_logger

logger = get_logger(__name__)

_pending_lock = threading.Lock()
_pending_paths: list[Path] = []
_exit_hook_registered = False


def _force_remove(path: Path) -> None:
    """Remove a directory tree, clearing read-only bits git leaves on pack files."""

    def _on_rm_error(func, p, exc):
        os.chmod(p, stat.S_IWRITE)
        func(p)

    shutil.rmtree(path, onexc=_on_rm_error)


def remove_directory(
    path: Path,
    retry_delay_ms: int = 100,
    final_delay_ms: int = 500,
    remover: Callable[[Path], None] = _force_remove,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Remove a directory in up to three attempts.

    1. Immediately.
    2. After a garbage collection pass and ``retry_delay_ms``.
    3. After ``final_delay_ms``.

    If every attempt fails, the directory contents are registered for removal
    at interpreter exit. Never raises.

    Args:
        path: Directory to remove
        retry_delay_ms: Delay before the second attempt
        final_delay_ms: Delay before the third attempt
        remover: Function that removes a directory tree
        sleep: Sleep function (seconds)

    Returns:
        True if the directory is gone, False if removal was deferred
    """
    if not path.exists():
        return True

    stages = (
        ("immediate", None),
        ("after gc", retry_delay_ms),
        ("final", final_delay_ms),
    )
    last_error: Exception | None = None

    for stage, delay_ms in stages:
        if delay_ms is not None:
            if stage == "after gc":
                gc.collect()
            sleep(delay_ms / 1000)
        try:
            remover(path)
        except OSError as e:
            last_error = e
            logger.debug(f"Cleanup attempt ({stage}) failed for {path}: {e}")
            continue
        if not path.exists():
            if stage != "immediate":
                logger.debug(f"Removed {path} on {stage} attempt")
            return True

    logger.warning(
        f"Could not remove temporary directory {path} ({last_error}); deferring removal to exit"
    )
    schedule_removal_at_exit(path)
    return False


def schedule_removal_at_exit(path: Path) -> None:
    """Register a directory and everything beneath it for removal at exit."""
    global _exit_hook_registered
    with _pending_lock:
        _pending_paths.append(path)
        if not _exit_hook_registered:
            atexit.register(_remove_pending_paths)
            _exit_hook_registered = True


def pending_removals() -> list[Path]:
    """Paths currently deferred to interpreter exit."""
    with _pending_lock:
        return list(_pending_paths)


def _remove_pending_paths() -> None:
    with _pending_lock:
        paths = list(_pending_paths)
        _pending_paths.clear()

    for root in paths:
        if not root.exists():
            continue
        # Children first so directories are empty when their turn comes
        for dirpath, dirnames, filenames in os.walk(root, topdown=False):
            for name in filenames:
                _unlink_quietly(Path(dirpath) / name)
            for name in dirnames:
                _rmdir_quietly(Path(dirpath) / name)
        _rmdir_quietly(root)


def _unlink_quietly(path: Path) -> None:
    try:
        os.chmod(path, stat.S_IWRITE)
        path.unlink()
    except OSError as e:
        logger.debug(f"Exit cleanup could not remove {path}: {e}")


def _rmdir_quietly(path: Path) -> None:
    try:
        path.rmdir()
    except OSError as e:
        logger.debug(f"Exit cleanup could not remove {path}: {e}")


class CloneWorkspace:
    """Context manager owning one clone directory and its repository handle.

    Example:
        >>> with CloneWorkspace(parent_dir=tmp) as workspace:
        ...     workspace.attach(git.Repo.clone_from(url, workspace.path))
        ...     ...
        # handle closed, then directory removed
    """

    def __init__(
        self,
        parent_dir: Path | None = None,
        retry_delay_ms: int = 100,
        final_delay_ms: int = 500,
        prefix: str = TEMP_DIR_PREFIX,
        remover: Callable[[Path], None] = _force_remove,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.parent_dir = parent_dir
        self.retry_delay_ms = retry_delay_ms
        self.final_delay_ms = final_delay_ms
        self.prefix = prefix
        self._remover = remover
        self._sleep = sleep
        self.path: Path | None = None
        self.handle: Any = None

    def __enter__(self) -> "CloneWorkspace":
        if self.parent_dir is not None:
            self.parent_dir.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.parent_dir))
        logger.debug(f"Created clone directory {self.path}")
        return self

    def attach(self, handle: Any) -> Any:
        """Take ownership of a repository handle; it is closed on exit."""
        self.handle = handle
        return handle

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def release(self) -> None:
        """Close the handle, then remove the directory. Never raises."""
        handle, self.handle = self.handle, None
        if handle is not None:
            try:
                handle.close()
            except Exception as e:
                logger.warning(f"Failed to close repository handle: {e}")

        path, self.path = self.path, None
        if path is not None:
            remove_directory(
                path,
                retry_delay_ms=self.retry_delay_ms,
                final_delay_ms=self.final_delay_ms,
                remover=self._remover,
                sleep=self._sleep,
            )
