"""Bounded-retry text access to sysfs pseudo-files."""

from __future__ import annotations

import errno
import logging
import os
import time

from .models import Absent, AttributeValue, Present


_LOG = logging.getLogger("dvfstool.sysfs")

_TRAILING = " \t\r\n"


class SysfsAccessor:
    """Thin wrapper over os.open/read/write with settings suited to sysfs attributes.

    Reads retry only on EAGAIN; every other failure reports Absent at once.
    Writes are single-shot. Nothing here raises for I/O errors.
    """

    def __init__(self, attempts: int = 3, retry_delay_s: float = 0.001, max_bytes: int = 4095) -> None:
        self.attempts = max(1, attempts)
        self.retry_delay_s = retry_delay_s
        self.max_bytes = max_bytes

    def read_text(self, path: str) -> AttributeValue:
        for attempt in range(1, self.attempts + 1):
            try:
                fd = os.open(path, os.O_RDONLY)
            except BlockingIOError:
                self._backoff(path, attempt)
                continue
            except OSError as exc:
                self._note_unavailable(path, exc)
                return Absent

            try:
                raw = os.read(fd, self.max_bytes)
            except BlockingIOError:
                self._backoff(path, attempt)
                continue
            except OSError as exc:
                self._note_unavailable(path, exc)
                return Absent
            finally:
                os.close(fd)

            return Present(raw.decode("utf-8", errors="replace").rstrip(_TRAILING))

        _LOG.debug("read retries exhausted path=%s", path, extra={"event": "read_retries_exhausted"})
        return Absent

    def write_text(self, path: str, value: str) -> bool:
        if not value.endswith("\n"):
            value += "\n"
        payload = value.encode("utf-8")
        try:
            fd = os.open(path, os.O_WRONLY)
        except OSError as exc:
            _LOG.warning("open for write failed path=%s err=%s", path, exc, extra={"event": "write_open_failed"})
            return False
        try:
            written = os.write(fd, payload)
        except OSError as exc:
            _LOG.warning("write failed path=%s err=%s", path, exc, extra={"event": "write_failed"})
            return False
        finally:
            os.close(fd)
        return written == len(payload)

    @staticmethod
    def exists(path: str) -> bool:
        return os.path.exists(path)

    def _backoff(self, path: str, attempt: int) -> None:
        _LOG.debug("EAGAIN path=%s attempt=%d", path, attempt, extra={"event": "read_eagain"})
        if attempt < self.attempts:
            time.sleep(self.retry_delay_s)

    @staticmethod
    def _note_unavailable(path: str, exc: OSError) -> None:
        if exc.errno != errno.ENOENT:
            _LOG.debug("attribute unavailable path=%s err=%s", path, exc, extra={"event": "read_unavailable"})
