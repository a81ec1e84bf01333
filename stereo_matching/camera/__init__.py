"""
Camera modules
"""

from .camera_rig import PinholeCamera, CameraRig, StereoPairIdentifier, RotationKeypointPredictor

__all__ = [
    'PinholeCamera',
    'CameraRig',
    'StereoPairIdentifier',
    'RotationKeypointPredictor'
]
