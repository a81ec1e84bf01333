#!/usr/bin/env python3
"""
命令行入口集成测试
"""

import pytest
import numpy as np
import cv2
from run_stereo_matching import main, parse_arguments
from stereo_matching.utils.config_manager import ConfigManager

@pytest.fixture
def config_path(sample_config, tmp_path):
    sample_config['stereo_pair'] = {'first_camera_id': 0, 'second_camera_id': 1}
    sample_config['orb'] = {'max_features': 500}
    path = tmp_path / 'config.yaml'
    ConfigManager.save_config(sample_config, path)
    return str(path)

def test_requires_images():
    with pytest.raises(SystemExit):
        parse_arguments(['--image0', 'a.png'])

def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        parse_arguments(['--version'])
    assert excinfo.value.code == 0
    assert '0.1.0' in capsys.readouterr().out

def test_pair_mode(textured_image_pair, config_path, tmp_path):
    """测试图像对模式的输出文件"""
    image0_path = tmp_path / 'left.png'
    image1_path = tmp_path / 'right.png'
    cv2.imwrite(str(image0_path), textured_image_pair[0])
    cv2.imwrite(str(image1_path), textured_image_pair[1])
    output_dir = tmp_path / 'out'

    exit_code = main(['--config', config_path,
                      '--image0', str(image0_path), '--image1', str(image1_path),
                      '--output-dir', str(output_dir)])

    assert exit_code == 0
    assert (output_dir / 'matches.png').exists()
    assert (output_dir / 'score_histogram.png').exists()

    matches = np.load(output_dir / 'matches.npy')
    assert matches.ndim == 2 and matches.shape[1] == 3
    assert matches.shape[0] > 0

def test_sequence_mode(textured_image_pair, config_path, tmp_path):
    """测试序列模式为每对相邻帧输出匹配"""
    image_dir = tmp_path / 'sequence'
    image_dir.mkdir()
    image0, image1 = textured_image_pair
    for idx, image in enumerate([image0, image1, image0]):
        cv2.imwrite(str(image_dir / f'{idx:06d}.png'), image)
    output_dir = tmp_path / 'out'

    exit_code = main(['--config', config_path, '--image-dir', str(image_dir),
                      '--workers', '2', '--output-dir', str(output_dir)])

    assert exit_code == 0
    assert (output_dir / 'matches_00000.npy').exists()
    assert (output_dir / 'matches_00001.npy').exists()

def test_invalid_config(sample_config, textured_image_pair, tmp_path):
    """测试无效配置返回错误码"""
    sample_config['StereoMatcher']['lowe_ratio'] = 2.0
    path = tmp_path / 'bad.yaml'
    ConfigManager.save_config(sample_config, path)

    image_path = tmp_path / 'img.png'
    cv2.imwrite(str(image_path), textured_image_pair[0])

    assert main(['--config', str(path), '--image0', str(image_path), '--image1', str(image_path),
                 '--output-dir', str(tmp_path / 'out')]) == 1

def test_missing_image(config_path, tmp_path):
    with pytest.raises(FileNotFoundError):
        main(['--config', config_path, '--image0', str(tmp_path / 'none.png'),
              '--image1', str(tmp_path / 'none.png'), '--output-dir', str(tmp_path / 'out')])
