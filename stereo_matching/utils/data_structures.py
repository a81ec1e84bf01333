"""
数据结构定义
定义匹配器使用的帧与匹配数据结构
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Sequence, Dict, Any

@dataclass
class VisualFrame:
    """视觉帧: 关键点位置和二进制描述子 (按索引对齐)"""
    keypoints: np.ndarray            # 关键点 [N, 2] (x, y)
    descriptors: np.ndarray          # 打包的二进制描述子 [N, B] uint8
    camera_id: int = 0
    frame_id: int = 0
    timestamp: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.keypoints = np.asarray(self.keypoints, dtype=np.float64).reshape(-1, 2)
        self.descriptors = np.asarray(self.descriptors, dtype=np.uint8)
        if self.descriptors.ndim != 2:
            raise ValueError(f"Descriptors must be [N, B], got shape {self.descriptors.shape}")

        if self.descriptors.shape[0] != self.keypoints.shape[0]:
            raise ValueError(
                f"Keypoint/descriptor count mismatch: "
                f"{self.keypoints.shape[0]} vs {self.descriptors.shape[0]}"
            )

    @property
    def num_keypoints(self) -> int:
        return self.keypoints.shape[0]

    @property
    def descriptor_size_bits(self) -> int:
        """描述子长度(比特)"""
        return self.descriptors.shape[1] * 8

    @classmethod
    def from_cv2(cls, keypoints: Sequence, descriptors: Optional[np.ndarray],
                 **kwargs) -> 'VisualFrame':
        """从OpenCV检测结果 (cv2.KeyPoint列表 + 描述子) 构建帧"""
        if descriptors is None or len(keypoints) == 0:
            size_bytes = kwargs.pop('descriptor_size_bytes', 32)
            return cls(keypoints=np.zeros((0, 2)),
                       descriptors=np.zeros((0, size_bytes), dtype=np.uint8),
                       **kwargs)

        pts = np.array([kp.pt for kp in keypoints], dtype=np.float64)
        return cls(keypoints=pts, descriptors=descriptors, **kwargs)

@dataclass(frozen=True)
class StereoMatchWithScore:
    """一对帧间匹配 (frame0索引, frame1索引, 匹配得分)"""
    index_frame0: int
    index_frame1: int
    score: float
