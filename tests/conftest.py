"""
pytest配置文件
定义测试夹具和全局配置
"""

import pytest
import sys
import numpy as np
from pathlib import Path

# 添加项目路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from stereo_matching.camera.camera_rig import PinholeCamera, CameraRig, StereoPairIdentifier

CAMERA_MATRIX = np.array([[500.0, 0.0, 320.0],
                          [0.0, 500.0, 240.0],
                          [0.0, 0.0, 1.0]])

@pytest.fixture
def project_root_path():
    return project_root

@pytest.fixture
def camera_rig():
    """两个相同的640x480相机, 外参旋转为单位阵"""
    return CameraRig({
        0: PinholeCamera(CAMERA_MATRIX, 640, 480),
        1: PinholeCamera(CAMERA_MATRIX, 640, 480),
    })

@pytest.fixture
def stereo_pair():
    return StereoPairIdentifier(first_camera_id=0, second_camera_id=1)

@pytest.fixture
def sample_config():
    """样例配置fixture"""
    return {
        'StereoMatcher': {
            'matching_threshold_relaxed': 0.8,
            'matching_threshold_strict': 0.85,
            'lowe_ratio': 0.8,
            'small_search_distance_px': 10,
            'large_search_distance_px': 20,
            'max_inferior_iterations': 3
        },
        'camera_rig': {
            'cameras': [
                {'id': 0, 'fx': 500.0, 'fy': 500.0, 'cx': 320.0, 'cy': 240.0,
                 'width': 640, 'height': 480},
                {'id': 1, 'fx': 500.0, 'fy': 500.0, 'cx': 320.0, 'cy': 240.0,
                 'width': 640, 'height': 480}
            ]
        }
    }

@pytest.fixture
def textured_image_pair():
    """水平平移8像素的纹理图像对 (模拟校正后的立体视差)"""
    import cv2

    rng = np.random.default_rng(7)
    coarse = rng.integers(0, 256, (120, 165), dtype=np.uint8)
    wide = cv2.resize(coarse, (660, 480), interpolation=cv2.INTER_LINEAR)

    img0 = np.ascontiguousarray(wide[:, 0:640])
    img1 = np.ascontiguousarray(wide[:, 8:648])
    return img0, img1
