"""
候选匹配记录
记录第一阶段中每个frame0关键点比较过的frame1候选及其得分,
并维护frame1关键点当前被哪个frame0关键点占用
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..utils.data_structures import StereoMatchWithScore
from ..utils.exceptions import ContractViolationError


class ClaimStatus(Enum):
    ACCEPTED = 'accepted'
    PREEMPTED = 'preempted'
    REJECTED = 'rejected'

@dataclass
class ClaimResult:
    """占用frame1关键点的结果"""
    status: ClaimStatus
    evicted_index_frame0: Optional[int] = None

@dataclass
class MatchCandidates:
    """一个frame0关键点的候选 (frame1索引, 得分), 追加写入"""
    indices_frame1: List[int] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)

    def add_candidate(self, index_frame1: int, score: float):
        if not 0.0 < score <= 1.0:
            raise ContractViolationError(f"Matching score must lie in (0, 1], got {score}")
        self.indices_frame1.append(index_frame1)
        self.scores.append(score)

    def __len__(self) -> int:
        return len(self.indices_frame1)

class CandidateTracker:
    """候选记录、当前匹配表和劣匹配集合 (每次匹配调用新建)"""

    def __init__(self):
        self._attempted: Dict[int, MatchCandidates] = {}
        # frame1索引 -> 当前占用它的匹配
        self._claims: Dict[int, StereoMatchWithScore] = {}
        # frame0索引 -> 它占用的frame1索引
        self._claimed_by_frame0: Dict[int, int] = {}
        # 有序集合, 保证迭代顺序确定
        self._inferior: Dict[int, None] = {}

    def record_candidate(self, index_frame0: int, index_frame1: int, score: float):
        self._attempted.setdefault(index_frame0, MatchCandidates()).add_candidate(index_frame1, score)

    def candidates(self, index_frame0: int) -> MatchCandidates:
        return self._attempted.get(index_frame0, MatchCandidates())

    def claim_score(self, index_frame1: int) -> Optional[float]:
        """frame1关键点当前匹配的得分, 未被占用时为None"""
        match = self._claims.get(index_frame1)
        return None if match is None else match.score

    def claim(self, index_frame1: int, index_frame0: int, score: float) -> ClaimResult:
        """
        尝试让index_frame0占用index_frame1

        未被占用则接受; 被得分更低的其他关键点占用则将其挤出并加入劣匹配集合;
        否则拒绝
        """
        if not 0.0 < score <= 1.0:
            raise ContractViolationError(f"Matching score must lie in (0, 1], got {score}")

        held = self._claimed_by_frame0.get(index_frame0)
        if held is not None and held != index_frame1:
            raise ContractViolationError(
                f"frame0 keypoint {index_frame0} already matched to frame1 keypoint {held}"
            )

        previous = self._claims.get(index_frame1)
        if previous is None:
            self._set_claim(StereoMatchWithScore(index_frame0, index_frame1, score))
            return ClaimResult(ClaimStatus.ACCEPTED)

        if previous.index_frame0 != index_frame0 and score > previous.score:
            del self._claimed_by_frame0[previous.index_frame0]
            self._set_claim(StereoMatchWithScore(index_frame0, index_frame1, score))
            self.mark_inferior(previous.index_frame0)
            return ClaimResult(ClaimStatus.PREEMPTED, previous.index_frame0)

        return ClaimResult(ClaimStatus.REJECTED)

    def _set_claim(self, match: StereoMatchWithScore):
        self._claims[match.index_frame1] = match
        self._claimed_by_frame0[match.index_frame0] = match.index_frame1
        self._inferior.pop(match.index_frame0, None)

    def is_matched(self, index_frame0: int) -> bool:
        return index_frame0 in self._claimed_by_frame0

    def mark_inferior(self, index_frame0: int):
        self._inferior[index_frame0] = None

    def is_inferior(self, index_frame0: int) -> bool:
        return index_frame0 in self._inferior

    def inferior_keypoints(self) -> List[int]:
        """劣匹配frame0索引 (插入顺序的快照)"""
        return list(self._inferior)

    @property
    def num_claims(self) -> int:
        return len(self._claims)

    def matches(self) -> List[StereoMatchWithScore]:
        """当前互斥匹配, 按frame0索引排序"""
        return sorted(self._claims.values(), key=lambda m: m.index_frame0)
