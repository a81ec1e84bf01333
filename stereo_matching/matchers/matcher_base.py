"""
匹配器基类
定义帧间特征匹配器的通用接口
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
import numpy as np

from ..utils.data_structures import VisualFrame, StereoMatchWithScore

class MatcherBase(ABC):
    """特征匹配器基类"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @abstractmethod
    def match(self, frame0: VisualFrame, frame1: VisualFrame, **kwargs) -> List[StereoMatchWithScore]:
        """
        执行帧间特征匹配

        Args:
            frame0: 参考帧
            frame1: 当前帧

        Returns:
            互斥匹配列表, 索引对应各帧关键点/描述子的顺序
        """
        pass

    def is_match_reliable(self, matches: List[StereoMatchWithScore], threshold: float = 0.5) -> bool:
        """判断匹配结果是否可靠"""
        if not matches:
            return False
        return np.mean([m.score for m in matches]) > threshold
