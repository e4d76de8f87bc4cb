"""Advisory lock serializing deployments of one application"""

import errno
import fcntl
import logging
import os
from pathlib import Path
from typing import Optional

from ..api.exceptions import ConcurrentDeploymentDetected

logger = logging.getLogger(__name__)


class DeployLock:
    """Non-blocking exclusive flock on ``<app_root>/.deploy.lock``

    Usage::

        with DeployLock(lock_path):
            ...

    A second holder fails fast with ConcurrentDeploymentDetected. The lock
    is released by the kernel if the process dies.
    """

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self._fd: Optional[int] = None

    @property
    def is_held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Take the lock

        Raises:
            ConcurrentDeploymentDetected: If another process holds it
        """
        if self._fd is not None:
            return

        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            holder = self._read_holder(fd)
            os.close(fd)
            if e.errno in (errno.EAGAIN, errno.EACCES, errno.EWOULDBLOCK):
                raise ConcurrentDeploymentDetected(str(self.lock_path.parent), holder) from e
            raise

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug(f"Acquired deployment lock {self.lock_path}")

    def release(self) -> None:
        """Drop the lock if held"""
        if self._fd is None:
            return
        try:
            os.ftruncate(self._fd, 0)
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug(f"Released deployment lock {self.lock_path}")

    @staticmethod
    def _read_holder(fd: int) -> Optional[str]:
        try:
            os.lseek(fd, 0, os.SEEK_SET)
            content = os.read(fd, 64).decode(errors="replace").strip()
            return f"pid {content}" if content else None
        except OSError:
            return None

    def __enter__(self) -> 'DeployLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
