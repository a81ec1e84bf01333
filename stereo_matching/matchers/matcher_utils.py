"""
匹配器工具函数和数据结构
"""

from dataclasses import dataclass, field
from typing import List
import cv2
import numpy as np

from ..utils.data_structures import StereoMatchWithScore
from ..utils.exceptions import ContractViolationError

def hamming_distances(descriptor: np.ndarray, candidates: np.ndarray) -> np.ndarray:
    """
    计算一个描述子与一组描述子之间的汉明距离

    Args:
        descriptor: 打包的二进制描述子 [B] uint8
        candidates: 候选描述子 [M, B] uint8

    Returns:
        distances: 不同比特数 [M]
    """
    if candidates.shape[0] == 0:
        return np.zeros(0, dtype=np.int64)

    # K=0: 返回完整的 [1, M] 距离矩阵
    distances, _ = cv2.batchDistance(np.ascontiguousarray(descriptor, dtype=np.uint8).reshape(1, -1),
                                     np.ascontiguousarray(candidates, dtype=np.uint8),
                                     dtype=cv2.CV_32S, normType=cv2.NORM_HAMMING, K=0)
    return distances.reshape(-1).astype(np.int64)

def compute_matching_score(num_matching_bits: int, descriptor_size_bits: int) -> float:
    """匹配得分 = 相同比特数 / 描述子比特数, 得分越高(<=1)越可能是真匹配"""
    return float(num_matching_bits) / descriptor_size_bits

def ratio_test(descriptor_size_bits: int, distance_closest: int,
               distance_second_closest: int, lowe_ratio: float) -> bool:
    """
    Lowe比率检验, 通过时返回True

    不存在第二候选 (distance > 描述子比特数) 或第二距离为0时无法判断, 视为通过
    """
    if distance_closest > distance_second_closest:
        raise ContractViolationError(
            f"Closest distance {distance_closest} exceeds second closest {distance_second_closest}"
        )
    if distance_second_closest > descriptor_size_bits:
        return True
    if distance_second_closest == 0:
        return True
    return distance_closest / float(distance_second_closest) < lowe_ratio

@dataclass
class MatchingResult:
    """特征匹配结果数据结构"""
    matches: List[StereoMatchWithScore]  # 互斥匹配, 按frame0索引排序
    num_initial_matches: int = 0         # 第一阶段结束时的匹配数
    num_inferior_resolved: int = 0       # 第二阶段新建立的匹配数
    num_unresolved_inferior: int = 0     # 最终仍未匹配的劣匹配数
    num_inferior_iterations: int = 0     # 第二阶段实际迭代次数
    processing_time: float = 0.0         # 处理时间(ms)

    @property
    def num_matches(self) -> int:
        return len(self.matches)

    def filter_by_score(self, threshold: float) -> 'MatchingResult':
        """按得分过滤匹配"""
        return MatchingResult(
            matches=[m for m in self.matches if m.score > threshold],
            num_initial_matches=self.num_initial_matches,
            num_inferior_resolved=self.num_inferior_resolved,
            num_unresolved_inferior=self.num_unresolved_inferior,
            num_inferior_iterations=self.num_inferior_iterations,
            processing_time=self.processing_time
        )

    def to_array(self) -> np.ndarray:
        """转换为 [L, 3] 数组: [idx0, idx1, score]"""
        if not self.matches:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([[m.index_frame0, m.index_frame1, m.score] for m in self.matches],
                        dtype=np.float64)

    def mean_score(self) -> float:
        if not self.matches:
            return 0.0
        return float(np.mean([m.score for m in self.matches]))
