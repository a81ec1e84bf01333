"""
帧存储
按帧ID保存VisualFrame, 读写由读写锁保护
"""

from typing import Dict, List

from .data_structures import VisualFrame
from .reader_writer_lock import ReaderWriterLock


class FrameStore:
    """线程安全的帧存储"""

    def __init__(self):
        self._frames: Dict[int, VisualFrame] = {}
        self._lock = ReaderWriterLock()

    def add_frame(self, frame: VisualFrame):
        """添加或替换帧"""
        with self._lock.write_locked():
            self._frames[frame.frame_id] = frame

    def get_frame(self, frame_id: int) -> VisualFrame:
        with self._lock.read_locked():
            if frame_id not in self._frames:
                raise KeyError(f"Unknown frame id: {frame_id}")
            return self._frames[frame_id]

    def frame_ids(self) -> List[int]:
        with self._lock.read_locked():
            return sorted(self._frames)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._frames)

    def __contains__(self, frame_id: int) -> bool:
        with self._lock.read_locked():
            return frame_id in self._frames
