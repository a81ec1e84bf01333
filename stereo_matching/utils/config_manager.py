"""
配置管理器
统一的配置文件加载和管理
"""

import logging
import yaml
from typing import Dict, Any
from pathlib import Path

logger = logging.getLogger(__name__)

# StereoMatcher配置段的默认值
STEREO_MATCHER_DEFAULTS = {
    'matching_threshold_relaxed': 0.8,
    'matching_threshold_strict': 0.85,
    'lowe_ratio': 0.8,
    'small_search_distance_px': 10,
    'large_search_distance_px': 20,
    'max_inferior_iterations': 3,
}

class ConfigManager:
    """配置管理器"""

    @staticmethod
    def load_config(config_path: str) -> Dict[str, Any]:
        """
        加载YAML配置文件

        Args:
            config_path: 配置文件路径

        Returns:
            config: 配置字典
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        # 处理继承关系
        if 'inherit_from' in config:
            parent_path = config_path.parent / config['inherit_from']
            parent_config = ConfigManager.load_config(parent_path)
            config = ConfigManager.merge_configs(parent_config, config)
            del config['inherit_from']  # 移除继承标记

        return config

    @staticmethod
    def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
        """递归合并配置字典"""
        merged = base_config.copy()

        for key, value in override_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = ConfigManager.merge_configs(merged[key], value)
            else:
                merged[key] = value

        return merged

    @staticmethod
    def get_matcher_config(config: Dict[str, Any]) -> Dict[str, Any]:
        """取出StereoMatcher配置段并补全默认值"""
        return ConfigManager.merge_configs(STEREO_MATCHER_DEFAULTS,
                                           config.get('StereoMatcher', {}) or {})

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> bool:
        """验证配置有效性"""
        required_sections = ['StereoMatcher', 'camera_rig']

        for section in required_sections:
            if section not in config:
                logger.warning(f"Missing required section '{section}' in config")
                return False

        matcher_config = ConfigManager.get_matcher_config(config)

        # 阈值必须位于 (0, 1]
        for key in ('matching_threshold_relaxed', 'matching_threshold_strict', 'lowe_ratio'):
            value = matcher_config[key]
            if not isinstance(value, (int, float)) or not 0.0 < value <= 1.0:
                logger.warning(f"StereoMatcher.{key} must lie in (0, 1], got {value!r}")
                return False

        # 搜索窗口必须为正整数
        small = matcher_config['small_search_distance_px']
        large = matcher_config['large_search_distance_px']
        for key, value in (('small_search_distance_px', small), ('large_search_distance_px', large)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                logger.warning(f"StereoMatcher.{key} must be a positive integer, got {value!r}")
                return False
        if large < small:
            logger.warning(f"StereoMatcher.large_search_distance_px ({large}) "
                           f"is smaller than small_search_distance_px ({small})")
            return False

        iterations = matcher_config['max_inferior_iterations']
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 0:
            logger.warning(f"StereoMatcher.max_inferior_iterations must be >= 0, got {iterations!r}")
            return False

        cameras = config['camera_rig'].get('cameras', []) if isinstance(config['camera_rig'], dict) else []
        if not cameras:
            logger.warning("camera_rig defines no cameras")
            return False

        return True

    @staticmethod
    def save_config(config: Dict[str, Any], save_path: str):
        """保存配置到文件"""
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, 'w', encoding='utf-8') as f:
            yaml.dump(config, f, default_flow_style=False, allow_unicode=True, indent=2)
