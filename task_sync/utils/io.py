"""
Locked, atomic JSON file access for file-backed task stores.

Readers take a shared advisory lock on ``<file>.lock`` and writers an
exclusive one, so two processes syncing against the same file never observe
a half-written document. Writes go to a sibling temp file that is fsynced and
renamed over the target.
"""

import contextlib
import errno
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

try:  # fcntl is only available on POSIX platforms
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - Windows fallback
    fcntl = None  # type: ignore


DEFAULT_LOCK_TIMEOUT = 8.0  # seconds
LOCK_POLL_INTERVAL = 0.05  # seconds

PathLike = Union[str, Path]


def _as_path(file_path: PathLike) -> Path:
    return Path(os.path.expanduser(str(file_path)))


class FileLock:
    """Advisory lock on a companion ``.lock`` file; a no-op without fcntl."""

    def __init__(self, target: Path, exclusive: bool, timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT):
        self.target = target
        self.lock_path = target.with_name(f"{target.name}.lock")
        self.exclusive = exclusive
        self.timeout = timeout
        self._handle = None

    def acquire(self) -> None:
        if fcntl is None:
            return
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = open(self.lock_path, "a")

        mode = fcntl.LOCK_EX if self.exclusive else fcntl.LOCK_SH
        if self.timeout is None:
            fcntl.flock(self._handle.fileno(), mode)
            return

        deadline = time.monotonic() + self.timeout
        while True:
            try:
                fcntl.flock(self._handle.fileno(), mode | fcntl.LOCK_NB)
                return
            except OSError as exc:  # pragma: no cover - depends on timing
                if exc.errno not in (errno.EACCES, errno.EAGAIN):
                    self.release()
                    raise
                if time.monotonic() >= deadline:
                    self.release()
                    raise TimeoutError(f"Timed out waiting for lock on {self.target}") from exc
                time.sleep(LOCK_POLL_INTERVAL)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


def file_lock(target_path: PathLike, exclusive: bool,
              timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT) -> FileLock:
    """Context manager form of :class:`FileLock`."""
    return FileLock(_as_path(target_path), exclusive, timeout)


def _dump_atomically(target: Path, data: Any, indent: int) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=indent, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, str(target))
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def read_json(file_path: PathLike, default: Any = None, *,
              lock_timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT) -> Any:
    """
    Read a JSON document under a shared lock.

    Returns ``default`` when the file does not exist. Unlike a best-effort
    config read, errors are raised so a store can report a failed fetch.

    Raises:
        TimeoutError: If the lock cannot be acquired
        ValueError: If the file is not valid JSON
        OSError: If the file cannot be read
    """
    target = _as_path(file_path)
    if not target.exists():
        return default

    with FileLock(target, exclusive=False, timeout=lock_timeout):
        return json.loads(target.read_text(encoding="utf-8"))


def write_json_atomic(file_path: PathLike, data: Any, indent: int = 2, *,
                      lock_timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT) -> None:
    """Replace a JSON document atomically under an exclusive lock."""
    target = _as_path(file_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    with FileLock(target, exclusive=True, timeout=lock_timeout):
        _dump_atomically(target, data, indent)


@contextlib.contextmanager
def locked_json(file_path: PathLike, default: Any = None, *,
                lock_timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT) -> Iterator[List[Any]]:
    """Read-modify-write a JSON document under one exclusive lock.

    Yields a single-element list holding the parsed document (or ``default``
    when the file is absent). Whatever it holds when the block exits normally
    is written back; nothing is written if the block raises.
    """
    target = _as_path(file_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    with FileLock(target, exclusive=True, timeout=lock_timeout):
        holder = [json.loads(target.read_text(encoding="utf-8")) if target.exists() else default]
        yield holder
        _dump_atomically(target, holder[0], indent=2)
