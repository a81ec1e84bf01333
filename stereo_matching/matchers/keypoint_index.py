"""
按行排序的关键点索引
frame1的关键点按y坐标排序, 并建立 行 -> 第一个 y >= 行 的排序位置 查找表,
从而以O(1)查询预测行附近的水平带状区域
"""

from typing import Tuple
import numpy as np

from ..utils.exceptions import ContractViolationError


class KeypointRowIndex:
    """frame1关键点的行索引"""

    def __init__(self, keypoints: np.ndarray, image_height: int):
        """
        Args:
            keypoints: frame1关键点 [N, 2] (x, y)
            image_height: 图像高度 H
        """
        if image_height <= 0:
            raise ContractViolationError(f"Image height must be positive, got {image_height}")

        keypoints = np.asarray(keypoints, dtype=np.float64).reshape(-1, 2)
        self.image_height = int(image_height)

        # 稳定排序: y相同的关键点保持原索引顺序
        self.sorted_indices = np.argsort(keypoints[:, 1], kind='stable')
        self.sorted_rows = keypoints[self.sorted_indices, 1]
        self.row_lut = np.searchsorted(self.sorted_rows,
                                       np.arange(self.image_height, dtype=np.float64),
                                       side='left')
        self._check_lut()

    def __len__(self) -> int:
        return self.sorted_indices.shape[0]

    def _check_lut(self):
        if self.row_lut.shape[0] != self.image_height:
            raise ContractViolationError("Row lookup table has wrong length")
        if np.any(np.diff(self.row_lut) < 0):
            raise ContractViolationError("Row lookup table is not non-decreasing")
        if self.row_lut.size and (self.row_lut[0] < 0 or self.row_lut[-1] > len(self)):
            raise ContractViolationError("Row lookup table points outside the sorted view")

    def _clamp_row(self, row: int) -> int:
        return min(max(row, 0), self.image_height - 1)

    def row_bounds(self, predicted_row: float, window_half_side_length_px: int) -> Tuple[int, int]:
        """
        预测行所在带状区域的 [上, 下] 行号 (已截断到图像内)

        上下边界都是 int(predicted_row + 0.5 ± 半窗口), 即先按行取整再开窗,
        因此候选最多可超出 predicted_row ± 半窗口 0.5 像素
        (例如预测行100.4、半窗口20时, 第80.0行仍在带内)
        """
        if window_half_side_length_px <= 0:
            raise ContractViolationError(
                f"Window half side length must be positive, got {window_half_side_length_px}"
            )
        top = self._clamp_row(int(predicted_row + 0.5 - window_half_side_length_px))
        bottom = self._clamp_row(int(predicted_row + 0.5 + window_half_side_length_px))
        return top, bottom

    def query(self, predicted_row: float, window_half_side_length_px: int) -> Tuple[int, int]:
        """
        查询带状区域内的关键点

        Returns:
            [begin, end) 排序视图中的位置区间
        """
        top, bottom = self.row_bounds(predicted_row, window_half_side_length_px)
        begin = int(self.row_lut[top])
        end = int(self.row_lut[bottom])

        if not 0 <= begin <= end <= len(self):
            raise ContractViolationError(f"Invalid window range [{begin}, {end})")
        return begin, end

    def channel_indices(self, begin: int, end: int) -> np.ndarray:
        """排序视图区间对应的frame1关键点索引"""
        return self.sorted_indices[begin:end]
