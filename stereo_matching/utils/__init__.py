"""
工具模块
包含配置管理、数据结构、读写锁和可视化等实用工具
"""

from .config_manager import ConfigManager
from .data_structures import VisualFrame, StereoMatchWithScore
from .exceptions import ContractViolationError
from .frame_store import FrameStore
from .reader_writer_lock import ReaderWriterLock

__all__ = [
    'ConfigManager',
    'VisualFrame',
    'StereoMatchWithScore',
    'ContractViolationError',
    'FrameStore',
    'ReaderWriterLock'
]
