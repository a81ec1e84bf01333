"""
序列匹配
用线程池并行匹配相互独立的相邻帧对
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from .matcher_utils import MatchingResult
from .stereo_matcher import StereoMatcher
from ..utils.frame_store import FrameStore

logger = logging.getLogger(__name__)

def match_frame_sequence(matcher: StereoMatcher, frame_store: FrameStore,
                         frame_ids: Optional[Sequence[int]] = None,
                         max_workers: int = 4,
                         rotations: Optional[Sequence[np.ndarray]] = None) -> List[MatchingResult]:
    """
    并行匹配相邻帧对 (frame_ids[i], frame_ids[i + 1])

    每个帧对是一次独立的匹配调用, 不共享可变状态。
    相邻帧来自同一相机, 因此不使用相机组的立体外参, 而是使用帧间旋转。

    Args:
        matcher: 匹配器
        frame_store: 帧存储
        frame_ids: 帧ID顺序, 默认为存储中的全部帧 (升序)
        max_workers: 线程数
        rotations: 每个帧对的帧间旋转 R_C1_C0 (例如陀螺仪积分), 默认为单位阵

    Returns:
        与帧对顺序一致的匹配结果
    """
    if max_workers <= 0:
        raise ValueError(f"max_workers must be positive, got {max_workers}")

    frame_ids = list(frame_store.frame_ids() if frame_ids is None else frame_ids)
    pairs = list(zip(frame_ids[:-1], frame_ids[1:]))
    if not pairs:
        return []

    if rotations is None:
        rotations = [np.eye(3)] * len(pairs)
    elif len(rotations) != len(pairs):
        raise ValueError(f"Expected {len(pairs)} rotations, got {len(rotations)}")

    def _match_pair(pair, rotation_C1_C0):
        frame0 = frame_store.get_frame(pair[0])
        frame1 = frame_store.get_frame(pair[1])
        return matcher.match_with_statistics(frame0, frame1, rotation_C1_C0)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(_match_pair, pairs, rotations))

    logger.info(f"Matched {len(pairs)} frame pairs, "
                f"{sum(r.num_matches for r in results)} matches in total")
    return results
