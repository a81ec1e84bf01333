#!/usr/bin/env python3
"""
读写锁与帧存储单元测试
"""

import time
import threading
import pytest
import numpy as np
from stereo_matching.utils.reader_writer_lock import ReaderWriterLock
from stereo_matching.utils.frame_store import FrameStore
from stereo_matching.utils.data_structures import VisualFrame

TIMEOUT = 5.0

def wait_until(predicate, timeout=TIMEOUT):
    """轮询直到条件成立"""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.005)
    return True

class TestReaderWriterLock:
    """ReaderWriterLock测试类"""

    def setup_method(self):
        self.lock = ReaderWriterLock()

    def test_concurrent_readers(self):
        """测试多个读者可同时持有锁"""
        barrier = threading.Barrier(3, timeout=TIMEOUT)

        def reader():
            with self.lock.read_locked():
                barrier.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        barrier.wait()
        for thread in threads:
            thread.join(TIMEOUT)

        assert not any(thread.is_alive() for thread in threads)

    def test_writer_waits_for_reader(self):
        """测试写者等待读者释放"""
        acquired = threading.Event()

        def writer():
            with self.lock.write_locked():
                acquired.set()

        self.lock.acquire_read_lock()
        thread = threading.Thread(target=writer)
        thread.start()

        assert wait_until(lambda: self.lock._num_pending_writers == 1)
        assert not acquired.is_set()

        self.lock.release_read_lock()
        assert acquired.wait(TIMEOUT)
        thread.join(TIMEOUT)

    def test_pending_writer_blocks_new_readers(self):
        """测试等待中的写者优先于新读者"""
        order = []

        def writer():
            with self.lock.write_locked():
                order.append('writer')

        def reader():
            with self.lock.read_locked():
                order.append('reader')

        self.lock.acquire_read_lock()
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        assert wait_until(lambda: self.lock._num_pending_writers == 1)

        reader_thread = threading.Thread(target=reader)
        reader_thread.start()
        time.sleep(0.05)
        assert order == []

        self.lock.release_read_lock()
        writer_thread.join(TIMEOUT)
        reader_thread.join(TIMEOUT)
        assert order == ['writer', 'reader']

    def test_upgrade(self):
        """测试读锁升级为写锁"""
        self.lock.acquire_read_lock()
        assert self.lock.upgrade_to_write_lock() == True
        assert self.lock._current_writer
        assert self.lock._num_readers == 0
        self.lock.release_write_lock()

        # 升级后可再次获取读锁
        with self.lock.read_locked():
            pass

    def test_second_upgrade_fails(self):
        """测试已有升级等待时, 第二个升级失败并释放读锁"""
        upgraded = threading.Event()

        def first_upgrader():
            assert self.lock.upgrade_to_write_lock()
            upgraded.set()
            self.lock.release_write_lock()

        self.lock.acquire_read_lock()
        self.lock.acquire_read_lock()  # 代表第一个升级者持有的读锁
        thread = threading.Thread(target=first_upgrader)
        thread.start()
        assert wait_until(lambda: self.lock._pending_upgrade)

        assert self.lock.upgrade_to_write_lock() == False
        assert upgraded.wait(TIMEOUT)
        thread.join(TIMEOUT)
        assert self.lock._num_readers == 0

    def test_release_without_holding(self):
        with pytest.raises(RuntimeError):
            self.lock.release_read_lock()
        with pytest.raises(RuntimeError):
            self.lock.release_write_lock()
        with pytest.raises(RuntimeError):
            self.lock.upgrade_to_write_lock()

    def test_context_manager_releases_on_error(self):
        """测试异常时作用域锁被释放"""
        with pytest.raises(ValueError):
            with self.lock.write_locked():
                raise ValueError("boom")

        assert not self.lock._current_writer
        with self.lock.read_locked():
            assert self.lock._num_readers == 1

class TestFrameStore:
    """FrameStore测试类"""

    def make_frame(self, frame_id):
        return VisualFrame(keypoints=np.zeros((1, 2)),
                           descriptors=np.zeros((1, 32), dtype=np.uint8),
                           frame_id=frame_id)

    def test_add_and_get(self):
        store = FrameStore()
        for frame_id in (3, 1, 2):
            store.add_frame(self.make_frame(frame_id))

        assert len(store) == 3
        assert store.frame_ids() == [1, 2, 3]
        assert 2 in store
        assert store.get_frame(2).frame_id == 2

    def test_replace_frame(self):
        store = FrameStore()
        store.add_frame(self.make_frame(1))
        replacement = self.make_frame(1)
        store.add_frame(replacement)

        assert len(store) == 1
        assert store.get_frame(1) is replacement

    def test_unknown_frame(self):
        with pytest.raises(KeyError):
            FrameStore().get_frame(0)

    def test_concurrent_writers(self):
        """测试多线程并发写入"""
        store = FrameStore()

        def add_range(start):
            for frame_id in range(start, start + 50):
                store.add_frame(self.make_frame(frame_id))

        threads = [threading.Thread(target=add_range, args=(start,)) for start in (0, 50, 100, 150)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(TIMEOUT)

        assert store.frame_ids() == list(range(200))
