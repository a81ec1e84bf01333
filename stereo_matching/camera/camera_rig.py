"""
相机模型与相机组
提供匹配器所需的图像尺寸以及关键点位置预测
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple

from .geometry_utils import predict_keypoints_by_rotation, rotation_from_axis_angle

@dataclass
class PinholeCamera:
    """针孔相机"""
    camera_matrix: np.ndarray       # 内参 [3, 3]
    image_width: int
    image_height: int
    rotation_body_camera: np.ndarray = field(default_factory=lambda: np.eye(3))  # R_B_C

    def __post_init__(self):
        self.camera_matrix = np.asarray(self.camera_matrix, dtype=np.float64)
        self.rotation_body_camera = np.asarray(self.rotation_body_camera, dtype=np.float64)
        if self.camera_matrix.shape != (3, 3):
            raise ValueError(f"camera_matrix must be 3x3, got {self.camera_matrix.shape}")
        if self.rotation_body_camera.shape != (3, 3):
            raise ValueError("rotation_body_camera must be 3x3")
        if int(self.image_height) <= 0 or int(self.image_width) <= 0:
            raise ValueError(f"Invalid image size: {self.image_width}x{self.image_height}")
        self.image_width = int(self.image_width)
        self.image_height = int(self.image_height)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'PinholeCamera':
        """从配置构建: fx, fy, cx, cy, width, height, 可选 rotation (轴角)"""
        K = np.array([[config['fx'], 0.0, config['cx']],
                      [0.0, config['fy'], config['cy']],
                      [0.0, 0.0, 1.0]])
        rotation = rotation_from_axis_angle(config.get('rotation', [0.0, 0.0, 0.0]))
        return cls(camera_matrix=K, image_width=config['width'],
                   image_height=config['height'], rotation_body_camera=rotation)

@dataclass(frozen=True)
class StereoPairIdentifier:
    """相机组中的一对相机"""
    first_camera_id: int
    second_camera_id: int

class CameraRig:
    """相机组: 按ID管理多个相机"""

    def __init__(self, cameras: Dict[int, PinholeCamera]):
        if not cameras:
            raise ValueError("CameraRig requires at least one camera")
        self.cameras = dict(cameras)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'CameraRig':
        """从camera_rig配置段构建"""
        cameras = {}
        for camera_config in config.get('cameras', []):
            cameras[int(camera_config['id'])] = PinholeCamera.from_config(camera_config)
        return cls(cameras)

    def get_camera(self, camera_id: int) -> PinholeCamera:
        if camera_id not in self.cameras:
            raise KeyError(f"Unknown camera id: {camera_id}")
        return self.cameras[camera_id]

    def relative_rotation(self, first_camera_id: int, second_camera_id: int) -> np.ndarray:
        """R_C1_C0 = R_B_C1^T * R_B_C0"""
        R_B_C0 = self.get_camera(first_camera_id).rotation_body_camera
        R_B_C1 = self.get_camera(second_camera_id).rotation_body_camera
        return R_B_C1.T @ R_B_C0

class RotationKeypointPredictor:
    """基于相机间旋转预测frame0关键点在frame1中的位置"""

    def __init__(self, camera0: PinholeCamera, camera1: PinholeCamera,
                 rotation_C1_C0: Optional[np.ndarray] = None):
        self.camera0 = camera0
        self.camera1 = camera1
        self.rotation_C1_C0 = np.eye(3) if rotation_C1_C0 is None else np.asarray(rotation_C1_C0, dtype=np.float64)

    @classmethod
    def from_stereo_pair(cls, camera_rig: CameraRig,
                         stereo_pair: StereoPairIdentifier) -> 'RotationKeypointPredictor':
        return cls(camera_rig.get_camera(stereo_pair.first_camera_id),
                   camera_rig.get_camera(stereo_pair.second_camera_id),
                   camera_rig.relative_rotation(stereo_pair.first_camera_id,
                                                stereo_pair.second_camera_id))

    def predict(self, keypoints_frame0: np.ndarray,
                rotation_C1_C0: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        预测关键点位置

        Args:
            keypoints_frame0: frame0关键点 [N, 2]
            rotation_C1_C0: 覆盖默认旋转 (例如陀螺仪积分得到的帧间旋转)

        Returns:
            predicted: 预测位置 [N, 2]
            valid: 预测有效的掩码 [N]
        """
        R = self.rotation_C1_C0 if rotation_C1_C0 is None else rotation_C1_C0
        return predict_keypoints_by_rotation(keypoints_frame0, self.camera0.camera_matrix,
                                             self.camera1.camera_matrix, R)
