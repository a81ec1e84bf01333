"""
Matcher modules
"""

from .matcher_base import MatcherBase
from .matcher_utils import MatchingResult
from .keypoint_index import KeypointRowIndex
from .candidate_tracker import CandidateTracker, ClaimStatus, ClaimResult
from .stereo_matcher import StereoMatcher
from .sequence_matching import match_frame_sequence

__all__ = [
    'MatcherBase',
    'MatchingResult',
    'KeypointRowIndex',
    'CandidateTracker',
    'ClaimStatus',
    'ClaimResult',
    'StereoMatcher',
    'match_frame_sequence'
]
