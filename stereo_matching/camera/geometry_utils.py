"""
几何工具函数
包含反投影、投影以及基于旋转的关键点位置预测
"""

import numpy as np
from typing import Tuple

def back_project(keypoints: np.ndarray, intrinsics: np.ndarray) -> np.ndarray:
    """
    将像素坐标反投影为归一化方向向量 (z = 1)

    Args:
        keypoints: 关键点坐标 [N, 2]
        intrinsics: 相机内参矩阵 [3, 3]

    Returns:
        bearings: 方向向量 [N, 3]
    """
    keypoints = np.asarray(keypoints, dtype=np.float64).reshape(-1, 2)
    homogeneous = np.hstack([keypoints, np.ones((keypoints.shape[0], 1))])
    return homogeneous @ np.linalg.inv(intrinsics).T

def rotate_points(points: np.ndarray, R: np.ndarray) -> np.ndarray:
    """
    使用旋转矩阵旋转3D点

    Args:
        points: 输入3D点 [N, 3]
        R: 旋转矩阵 [3, 3]

    Returns:
        rotated_points: 旋转后的3D点 [N, 3]
    """
    return np.asarray(points, dtype=np.float64) @ np.asarray(R, dtype=np.float64).T

def project_points(points_3d: np.ndarray, intrinsics: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    将3D点投影到图像平面

    Args:
        points_3d: 3D点 [N, 3]
        intrinsics: 相机内参 [3, 3]

    Returns:
        points_2d: 投影的2D点 [N, 2] (深度无效处为NaN)
        valid: 深度为正的掩码 [N]
    """
    points_3d = np.asarray(points_3d, dtype=np.float64).reshape(-1, 3)
    valid = points_3d[:, 2] > 0

    points_2d = np.full((points_3d.shape[0], 2), np.nan)
    if np.any(valid):
        pixels = points_3d[valid] @ np.asarray(intrinsics, dtype=np.float64).T
        points_2d[valid] = pixels[:, :2] / pixels[:, 2:3]

    return points_2d, valid

def predict_keypoints_by_rotation(keypoints: np.ndarray, intrinsics0: np.ndarray,
                                  intrinsics1: np.ndarray,
                                  R_C1_C0: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    用帧间旋转预测关键点在frame1中的位置 (无穷远单应)

    Args:
        keypoints: frame0关键点 [N, 2]
        intrinsics0: frame0相机内参 [3, 3]
        intrinsics1: frame1相机内参 [3, 3]
        R_C1_C0: 从相机0到相机1的旋转 [3, 3]

    Returns:
        predicted: 预测位置 [N, 2]
        valid: 预测有效的掩码 [N]
    """
    bearings = back_project(keypoints, intrinsics0)
    return project_points(rotate_points(bearings, R_C1_C0), intrinsics1)

def rotation_from_axis_angle(axis_angle: np.ndarray) -> np.ndarray:
    """轴角转旋转矩阵 (Rodrigues)"""
    axis_angle = np.asarray(axis_angle, dtype=np.float64).reshape(3)
    angle = np.linalg.norm(axis_angle)
    if angle < 1e-12:
        return np.eye(3)

    k = axis_angle / angle
    K = np.array([[0.0, -k[2], k[1]],
                  [k[2], 0.0, -k[0]],
                  [-k[1], k[0], 0.0]])
    return np.eye(3) + np.sin(angle) * K + (1.0 - np.cos(angle)) * (K @ K)
