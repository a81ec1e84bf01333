"""
立体/时序帧间匹配器
利用极线约束 (预测行附近的水平带) 限制搜索范围的二进制描述子匹配
"""

import time
import logging
import numpy as np
from typing import Dict, Any, List, Optional

from .matcher_base import MatcherBase
from .matcher_utils import MatchingResult, hamming_distances, compute_matching_score, ratio_test
from .keypoint_index import KeypointRowIndex
from .candidate_tracker import CandidateTracker, ClaimStatus
from ..camera.camera_rig import CameraRig, StereoPairIdentifier, RotationKeypointPredictor
from ..utils.data_structures import VisualFrame, StereoMatchWithScore

logger = logging.getLogger(__name__)

class StereoMatcher(MatcherBase):
    """
    帧间匹配器

    初始匹配 (第一阶段) 尝试将frame0的每个关键点匹配到frame1的某个关键点:
    先用相机间旋转预测关键点在frame1中的位置, 然后在预测行附近的水平带内
    搜索得分高于宽松阈值且通过比率检验的最佳候选。若小窗口内没有任何候选,
    窗口只放大一次。

    初始匹配可以挤掉得分更低的已有匹配, 被挤掉 (或竞争失败) 的匹配称为劣匹配。
    第二阶段只在第一阶段比较过的候选中为劣匹配寻找新的对应, 不再计算描述子
    距离, 也不做比率检验, 因此使用更严格的阈值。第二阶段同样可以挤掉匹配,
    所以迭代执行多次 (有上限)。

    输出的匹配是互斥的。每次调用的所有中间数据都是局部的, 同一个实例
    可以被多个线程同时用于不同的帧对。
    """

    def __init__(self, stereo_pair: StereoPairIdentifier, camera_rig: CameraRig,
                 config: Optional[Dict[str, Any]] = None,
                 keypoint_predictor: Optional[RotationKeypointPredictor] = None):
        """
        Args:
            stereo_pair: 相机组中的相机对, frame0来自first_camera_id, frame1来自second_camera_id
            camera_rig: 相机组
            config: StereoMatcher配置段
            keypoint_predictor: 关键点位置预测器, 默认由相机组外参构建
        """
        super().__init__(config)
        self.stereo_pair = stereo_pair
        self.camera_rig = camera_rig
        # 行索引覆盖的是frame1的图像
        self.image_height = camera_rig.get_camera(stereo_pair.second_camera_id).image_height

        if keypoint_predictor is None:
            keypoint_predictor = RotationKeypointPredictor.from_stereo_pair(camera_rig, stereo_pair)
        self.keypoint_predictor = keypoint_predictor

        # 相同比特数占描述子长度的比例高于该阈值才可能匹配
        self.matching_threshold_relaxed = self.config.get('matching_threshold_relaxed', 0.8)
        # 劣匹配没有比率检验, 使用更严格的阈值
        self.matching_threshold_strict = self.config.get('matching_threshold_strict', 0.85)
        self.lowe_ratio = self.config.get('lowe_ratio', 0.8)
        self.small_search_distance = self.config.get('small_search_distance_px', 10)
        self.large_search_distance = self.config.get('large_search_distance_px', 20)
        self.max_inferior_iterations = self.config.get('max_inferior_iterations', 3)

    def match(self, frame0: VisualFrame, frame1: VisualFrame,
              rotation_C1_C0: Optional[np.ndarray] = None) -> List[StereoMatchWithScore]:
        """
        匹配两帧

        Args:
            frame0: 第一帧
            frame1: 第二帧
            rotation_C1_C0: 可选的帧间旋转, 覆盖相机组外参

        Returns:
            按frame0索引排序的互斥匹配
        """
        return self.match_with_statistics(frame0, frame1, rotation_C1_C0).matches

    def match_with_statistics(self, frame0: VisualFrame, frame1: VisualFrame,
                              rotation_C1_C0: Optional[np.ndarray] = None) -> MatchingResult:
        """匹配两帧并返回统计信息"""
        start_time = time.time()

        if frame0.num_keypoints == 0 or frame1.num_keypoints == 0:
            logger.debug("Empty frame, nothing to match")
            return MatchingResult(matches=[], processing_time=(time.time() - start_time) * 1000)

        if frame0.descriptors.shape[1] != frame1.descriptors.shape[1]:
            raise ValueError(
                f"Descriptor size mismatch: {frame0.descriptor_size_bits} vs "
                f"{frame1.descriptor_size_bits} bits"
            )
        if frame0.descriptors.shape[1] == 0:
            raise ValueError("Descriptors must be at least one byte wide")

        keypoint_index = KeypointRowIndex(frame1.keypoints, self.image_height)
        descriptors_frame1_sorted = frame1.descriptors[keypoint_index.sorted_indices]
        predicted, valid = self.keypoint_predictor.predict(frame0.keypoints, rotation_C1_C0)

        tracker = CandidateTracker()
        for idx_frame0 in range(frame0.num_keypoints):
            if not valid[idx_frame0]:
                continue
            self._match_keypoint(idx_frame0, frame0.descriptors[idx_frame0],
                                 predicted[idx_frame0], frame0.descriptor_size_bits,
                                 keypoint_index, descriptors_frame1_sorted, tracker)

        num_initial_matches = tracker.num_claims
        num_inferior_resolved = 0
        num_iterations = 0
        while num_iterations < self.max_inferior_iterations and tracker.inferior_keypoints():
            num_iterations += 1
            num_new_matches = self._match_inferior_keypoints(tracker)
            num_inferior_resolved += num_new_matches
            if num_new_matches == 0:
                break

        result = MatchingResult(
            matches=tracker.matches(),
            num_initial_matches=num_initial_matches,
            num_inferior_resolved=num_inferior_resolved,
            num_unresolved_inferior=len(tracker.inferior_keypoints()),
            num_inferior_iterations=num_iterations,
            processing_time=(time.time() - start_time) * 1000
        )
        logger.debug(
            f"Matched {result.num_matches}/{frame0.num_keypoints} keypoints "
            f"(initial {num_initial_matches}, inferior resolved {num_inferior_resolved}, "
            f"unresolved {result.num_unresolved_inferior}, iterations {num_iterations}) "
            f"in {result.processing_time:.1f}ms"
        )
        return result

    def _match_keypoint(self, idx_frame0: int, descriptor: np.ndarray,
                        predicted_position: np.ndarray, descriptor_size_bits: int,
                        keypoint_index: KeypointRowIndex,
                        descriptors_frame1_sorted: np.ndarray,
                        tracker: CandidateTracker):
        """初始匹配: 尝试匹配frame0的一个关键点, 允许挤掉已有的匹配"""
        predicted_row = predicted_position[1]
        begin, end = keypoint_index.query(predicted_row, self.small_search_distance)
        if begin == end:
            begin, end = keypoint_index.query(predicted_row, self.large_search_distance)
        if begin == end:
            return

        distances = hamming_distances(descriptor, descriptors_frame1_sorted[begin:end])
        indices_frame1 = keypoint_index.channel_indices(begin, end)

        for index_frame1, distance in zip(indices_frame1, distances):
            num_matching_bits = descriptor_size_bits - int(distance)
            if num_matching_bits > 0:
                tracker.record_candidate(idx_frame0, int(index_frame1),
                                         compute_matching_score(num_matching_bits, descriptor_size_bits))

        # 稳定排序: 距离相同时取排序视图中靠前的候选
        order = np.argsort(distances, kind='stable')
        distance_closest = int(distances[order[0]])
        distance_second_closest = int(distances[order[1]]) if len(order) > 1 else descriptor_size_bits + 1

        score = compute_matching_score(descriptor_size_bits - distance_closest, descriptor_size_bits)
        if score <= self.matching_threshold_relaxed:
            return
        if not ratio_test(descriptor_size_bits, distance_closest, distance_second_closest, self.lowe_ratio):
            return

        result = tracker.claim(int(indices_frame1[order[0]]), idx_frame0, score)
        if result.status is ClaimStatus.REJECTED:
            # 竞争失败的关键点同样作为劣匹配进入第二阶段
            tracker.mark_inferior(idx_frame0)

    def _match_inferior_keypoints(self, tracker: CandidateTracker) -> int:
        """
        第二阶段: 只在已比较过的候选中为劣匹配寻找对应

        Returns:
            本轮新建立的匹配数
        """
        num_new_matches = 0
        for idx_frame0 in tracker.inferior_keypoints():
            candidates = tracker.candidates(idx_frame0)

            best_score = self.matching_threshold_strict
            best_index_frame1 = None
            for index_frame1, score in zip(candidates.indices_frame1, candidates.scores):
                if score <= best_score:
                    continue
                # 只考虑能赢得的候选
                current_score = tracker.claim_score(index_frame1)
                if current_score is not None and current_score >= score:
                    continue
                best_score = score
                best_index_frame1 = index_frame1

            if best_index_frame1 is None:
                continue

            result = tracker.claim(best_index_frame1, idx_frame0, best_score)
            if result.status is not ClaimStatus.REJECTED:
                num_new_matches += 1

        return num_new_matches
