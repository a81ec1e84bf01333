"""
匹配可视化工具
在图像上绘制关键点和帧间匹配, 以及匹配得分分布
"""

import cv2
import numpy as np
from pathlib import Path
from typing import Sequence, Tuple

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .data_structures import VisualFrame, StereoMatchWithScore

# 颜色为BGR8
BLUE = (255, 0, 0)
GREEN = (0, 255, 0)
BRIGHT_GREEN = (110, 255, 110)
RED = (0, 0, 255)
YELLOW = (0, 255, 255)
TURQUOISE = (180, 180, 0)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

KEYPOINT_RADIUS = 1


def to_bgr(image: np.ndarray) -> np.ndarray:
    """灰度图转三通道BGR (返回副本)"""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def _check_drawable(image: np.ndarray):
    if image is None or image.ndim != 3 or image.shape[2] != 3:
        raise ValueError("Expected a BGR image of shape [H, W, 3]")


def _to_point(xy: np.ndarray) -> Tuple[int, int]:
    return int(round(xy[0])), int(round(xy[1]))


def draw_keypoints(frame: VisualFrame, image: np.ndarray, color: Tuple[int, int, int] = YELLOW):
    """在image上原地绘制frame的全部关键点"""
    _check_drawable(image)
    for keypoint in frame.keypoints:
        cv2.circle(image, _to_point(keypoint), KEYPOINT_RADIUS, color, -1)


def draw_keypoint_matches(frame0: VisualFrame, frame1: VisualFrame,
                          matches: Sequence[StereoMatchWithScore],
                          keypoint_color: Tuple[int, int, int],
                          line_color: Tuple[int, int, int],
                          image: np.ndarray):
    """
    在frame1的图像上原地绘制匹配

    每个匹配绘制frame1关键点, 并连线到对应frame0关键点的位置
    """
    _check_drawable(image)
    for match in matches:
        if not 0 <= match.index_frame0 < frame0.num_keypoints:
            raise IndexError(f"frame0 index out of range: {match.index_frame0}")
        if not 0 <= match.index_frame1 < frame1.num_keypoints:
            raise IndexError(f"frame1 index out of range: {match.index_frame1}")

        pt0 = _to_point(frame0.keypoints[match.index_frame0])
        pt1 = _to_point(frame1.keypoints[match.index_frame1])
        cv2.line(image, pt1, pt0, line_color, 1)
        cv2.circle(image, pt1, KEYPOINT_RADIUS, keypoint_color, -1)


def plot_score_histogram(matches: Sequence[StereoMatchWithScore], save_path: str,
                         bins: int = 20) -> Path:
    """保存匹配得分直方图"""
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)

    scores = np.array([m.score for m in matches], dtype=np.float64)

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.hist(scores, bins=bins, range=(0.0, 1.0), color='tab:green')
    ax.set_xlabel('Matching score')
    ax.set_ylabel('Matches')
    ax.set_title(f'{len(scores)} matches')
    fig.tight_layout()
    fig.savefig(save_path)
    plt.close(fig)
    return save_path
