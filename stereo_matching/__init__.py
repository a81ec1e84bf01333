"""
Stereo Matching: epipolar-band keypoint matching with binary descriptors

Frame-to-frame correspondence search for stereo or sequential camera pairs,
restricted to a horizontal band around the rotation-predicted keypoint row.
"""

from .version import __version__
from .camera import PinholeCamera, CameraRig, StereoPairIdentifier, RotationKeypointPredictor
from .matchers import StereoMatcher, MatchingResult, match_frame_sequence
from .utils import ConfigManager, VisualFrame, StereoMatchWithScore, ContractViolationError

__all__ = [
    '__version__',
    'PinholeCamera',
    'CameraRig',
    'StereoPairIdentifier',
    'RotationKeypointPredictor',
    'StereoMatcher',
    'MatchingResult',
    'match_frame_sequence',
    'ConfigManager',
    'VisualFrame',
    'StereoMatchWithScore',
    'ContractViolationError',
    'create_stereo_matcher'
]

def create_stereo_matcher(config_path: str) -> StereoMatcher:
    """便捷的匹配器创建函数"""
    config = ConfigManager.load_config(config_path)
    camera_rig = CameraRig.from_config(config['camera_rig'])
    pair_config = config.get('stereo_pair', {})
    stereo_pair = StereoPairIdentifier(pair_config.get('first_camera_id', 0),
                                       pair_config.get('second_camera_id', 0))
    return StereoMatcher(stereo_pair, camera_rig, ConfigManager.get_matcher_config(config))
