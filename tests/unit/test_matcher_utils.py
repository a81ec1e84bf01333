#!/usr/bin/env python3
"""
匹配工具函数单元测试
"""

import pytest
import numpy as np
from stereo_matching.matchers.matcher_utils import (
    MatchingResult, hamming_distances, compute_matching_score, ratio_test
)
from stereo_matching.utils.data_structures import StereoMatchWithScore
from stereo_matching.utils.exceptions import ContractViolationError

def test_hamming_distances():
    """测试汉明距离"""
    descriptor = np.array([0b00000000, 0b11111111], dtype=np.uint8)
    candidates = np.array([
        [0b00000000, 0b11111111],
        [0b00000001, 0b11111111],
        [0b11111111, 0b00000000],
        [0b10101010, 0b11110000],
    ], dtype=np.uint8)

    np.testing.assert_array_equal(hamming_distances(descriptor, candidates), [0, 1, 16, 8])

def test_hamming_distances_empty():
    """测试空候选"""
    descriptor = np.zeros(32, dtype=np.uint8)
    assert hamming_distances(descriptor, np.zeros((0, 32), dtype=np.uint8)).shape == (0,)

def test_hamming_distances_random_descriptors():
    """测试随机ORB长度描述子的汉明距离等于异或后的比特数"""
    rng = np.random.default_rng(11)
    descriptor = rng.integers(0, 256, 32, dtype=np.uint8)
    candidates = rng.integers(0, 256, (25, 32), dtype=np.uint8)

    expected = [sum(bin(int(byte)).count('1') for byte in np.bitwise_xor(descriptor, row))
                for row in candidates]
    distances = hamming_distances(descriptor, candidates)

    assert distances.dtype == np.int64
    np.testing.assert_array_equal(distances, expected)

def test_matching_score():
    """测试匹配得分"""
    assert compute_matching_score(256, 256) == 1.0
    assert compute_matching_score(72, 80) == pytest.approx(0.9)

class TestRatioTest:
    """比率检验测试"""

    def test_no_second_candidate_passes(self):
        assert ratio_test(256, 10, 257, 0.8) == True

    def test_zero_second_distance_passes(self):
        assert ratio_test(256, 0, 0, 0.8) == True

    def test_distinct_closest_passes(self):
        assert ratio_test(256, 10, 20, 0.8) == True

    def test_ambiguous_closest_fails(self):
        # 40 / 48 = 0.833 >= 0.8
        assert ratio_test(256, 40, 48, 0.8) == False
        # 恰好等于比率也不通过
        assert ratio_test(256, 40, 50, 0.8) == False

    def test_inconsistent_distances(self):
        with pytest.raises(ContractViolationError):
            ratio_test(256, 30, 20, 0.8)

class TestMatchingResult:
    """MatchingResult测试"""

    def setup_method(self):
        self.result = MatchingResult(
            matches=[
                StereoMatchWithScore(0, 3, 0.9),
                StereoMatchWithScore(2, 1, 0.82),
            ],
            num_initial_matches=2,
            processing_time=3.0
        )

    def test_num_matches(self):
        assert self.result.num_matches == 2
        assert self.result.mean_score() == pytest.approx(0.86)

    def test_filter_by_score(self):
        filtered = self.result.filter_by_score(0.85)
        assert filtered.num_matches == 1
        assert filtered.matches[0].index_frame0 == 0
        assert filtered.processing_time == 3.0

    def test_to_array(self):
        array = self.result.to_array()
        assert array.shape == (2, 3)
        np.testing.assert_allclose(array[1], [2, 1, 0.82])

    def test_empty(self):
        empty = MatchingResult(matches=[])
        assert empty.to_array().shape == (0, 3)
        assert empty.mean_score() == 0.0
