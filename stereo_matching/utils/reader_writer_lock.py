"""
读写锁
多个读者可同时持有锁, 写者独占; 等待中的写者优先于新的读者
"""

import threading
from contextlib import contextmanager


class ReaderWriterLock:
    """读写锁 (支持读锁升级为写锁)"""

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._num_readers = 0
        self._num_pending_writers = 0
        self._current_writer = False
        self._pending_upgrade = False

    def acquire_read_lock(self):
        with self._condition:
            while (self._current_writer or self._num_pending_writers > 0
                   or self._pending_upgrade):
                self._condition.wait()
            self._num_readers += 1

    def release_read_lock(self):
        with self._condition:
            if self._num_readers == 0:
                raise RuntimeError("Read lock released without being held")
            self._num_readers -= 1
            self._condition.notify_all()

    def acquire_write_lock(self):
        with self._condition:
            self._num_pending_writers += 1
            while (self._num_readers > 0 or self._current_writer
                   or self._pending_upgrade):
                self._condition.wait()
            self._num_pending_writers -= 1
            self._current_writer = True

    def release_write_lock(self):
        with self._condition:
            if not self._current_writer:
                raise RuntimeError("Write lock released without being held")
            self._current_writer = False
            self._condition.notify_all()

    def upgrade_to_write_lock(self) -> bool:
        """
        将持有的读锁升级为写锁

        Returns:
            True 升级成功; False 已有其他升级在等待, 此时读锁被释放
        """
        with self._condition:
            if self._num_readers == 0:
                raise RuntimeError("Upgrade requested without holding a read lock")
            if self._pending_upgrade:
                self._num_readers -= 1
                self._condition.notify_all()
                return False

            self._pending_upgrade = True
            while self._num_readers > 1 or self._current_writer:
                self._condition.wait()
            self._pending_upgrade = False
            self._num_readers -= 1
            self._current_writer = True
            return True

    @contextmanager
    def read_locked(self):
        """作用域读锁"""
        self.acquire_read_lock()
        try:
            yield self
        finally:
            self.release_read_lock()

    @contextmanager
    def write_locked(self):
        """作用域写锁"""
        self.acquire_write_lock()
        try:
            yield self
        finally:
            self.release_write_lock()
