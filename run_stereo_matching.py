#!/usr/bin/env python3
"""
Stereo Matching - Main Entry Point
检测ORB特征并用极线带匹配器匹配图像对或图像序列
"""

import sys
import glob
import logging
import argparse
from pathlib import Path

import cv2
import numpy as np

from stereo_matching import (
    ConfigManager,
    StereoMatcher,
    StereoPairIdentifier,
    VisualFrame,
    create_stereo_matcher,
    match_frame_sequence
)
from stereo_matching.utils.frame_store import FrameStore
from stereo_matching.utils import visualization
from stereo_matching.version import get_version_string

logger = logging.getLogger('StereoMatching')


def parse_arguments(argv=None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(description='Epipolar-band stereo keypoint matching')

    parser.add_argument('--config', type=str, default='configs/stereo_matcher.yaml',
                       help='配置文件路径 (默认: configs/stereo_matcher.yaml)')
    parser.add_argument('--image0', type=str, help='第一帧图像')
    parser.add_argument('--image1', type=str, help='第二帧图像')
    parser.add_argument('--image-dir', type=str,
                       help='图像序列目录 (按文件名排序, 匹配相邻帧)')
    parser.add_argument('--pattern', type=str, default='*.png',
                       help='序列图像文件名模式 (默认: *.png)')
    parser.add_argument('--max-features', type=int, default=None,
                       help='ORB特征数量 (默认: 使用配置)')
    parser.add_argument('--workers', type=int, default=4,
                       help='序列模式线程数 (默认: 4)')
    parser.add_argument('--output-dir', type=str, default='output',
                       help='输出目录 (默认: output)')
    parser.add_argument('--version', action='version',
                       version=f'%(prog)s {get_version_string()}')
    parser.add_argument('--verbose', action='store_true',
                       help='输出调试日志')

    args = parser.parse_args(argv)
    if args.image_dir is None and (args.image0 is None or args.image1 is None):
        parser.error('either --image-dir or both --image0 and --image1 are required')
    return args


def setup_logging(output_dir: Path, verbose: bool):
    """初始化日志系统"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(output_dir / "stereo_matching.log"),
            logging.StreamHandler()
        ]
    )


def load_gray(image_path: str) -> np.ndarray:
    image = cv2.imread(image_path, cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise FileNotFoundError(f"Cannot read image: {image_path}")
    return image


def detect_frame(detector, image: np.ndarray, frame_id: int, camera_id: int) -> VisualFrame:
    """检测ORB关键点和描述子"""
    keypoints, descriptors = detector.detectAndCompute(image, None)
    frame = VisualFrame.from_cv2(keypoints, descriptors, frame_id=frame_id, camera_id=camera_id)
    logger.info(f"Frame {frame_id}: {frame.num_keypoints} keypoints")
    return frame


def run_pair(args, matcher, detector, output_dir: Path):
    """匹配一对图像"""
    image0 = load_gray(args.image0)
    image1 = load_gray(args.image1)

    frame0 = detect_frame(detector, image0, 0, matcher.stereo_pair.first_camera_id)
    frame1 = detect_frame(detector, image1, 1, matcher.stereo_pair.second_camera_id)

    result = matcher.match_with_statistics(frame0, frame1)
    logger.info(f"{result.num_matches} matches (initial {result.num_initial_matches}, "
                f"inferior resolved {result.num_inferior_resolved}, "
                f"mean score {result.mean_score():.3f}) in {result.processing_time:.1f}ms")

    overlay = visualization.to_bgr(image1)
    visualization.draw_keypoints(frame1, overlay, visualization.YELLOW)
    visualization.draw_keypoint_matches(frame0, frame1, result.matches,
                                        visualization.BRIGHT_GREEN, visualization.TURQUOISE,
                                        overlay)
    cv2.imwrite(str(output_dir / "matches.png"), overlay)
    visualization.plot_score_histogram(result.matches, output_dir / "score_histogram.png")
    np.save(output_dir / "matches.npy", result.to_array())


def run_sequence(args, matcher, detector, output_dir: Path):
    """并行匹配序列中的相邻帧"""
    image_paths = sorted(glob.glob(str(Path(args.image_dir) / args.pattern)))
    if len(image_paths) < 2:
        raise RuntimeError("Sequence must contain at least two images.")

    # 序列中的帧都来自first_camera_id, 帧对使用同一相机的内参和图像高度
    camera_id = matcher.stereo_pair.first_camera_id
    sequence_matcher = StereoMatcher(StereoPairIdentifier(camera_id, camera_id),
                                     matcher.camera_rig, matcher.config)

    frame_store = FrameStore()
    for frame_id, image_path in enumerate(image_paths):
        frame_store.add_frame(detect_frame(detector, load_gray(image_path), frame_id, camera_id))

    results = match_frame_sequence(sequence_matcher, frame_store, max_workers=args.workers)
    for pair_idx, result in enumerate(results):
        logger.info(f"Pair {pair_idx}-{pair_idx + 1}: {result.num_matches} matches, "
                    f"mean score {result.mean_score():.3f}")
        np.save(output_dir / f"matches_{pair_idx:05d}.npy", result.to_array())


def main(argv=None):
    """主函数"""
    args = parse_arguments(argv)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(output_dir, args.verbose)

    config = ConfigManager.load_config(args.config)
    if not ConfigManager.validate_config(config):
        logger.error(f"Invalid configuration: {args.config}")
        return 1

    matcher = create_stereo_matcher(args.config)
    max_features = args.max_features or config.get('orb', {}).get('max_features', 2000)
    detector = cv2.ORB_create(max_features)

    if args.image_dir is not None:
        run_sequence(args, matcher, detector, output_dir)
    else:
        run_pair(args, matcher, detector, output_dir)

    logger.info(f"Results saved to {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
