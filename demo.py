"""
CIPV Replay Demo - Runs a recorded or hand-written scenario through the CIPV stage.

The scenario YAML describes the calibration and, per frame, the ego motion,
the lane lines (ground coordinates) and the tracked objects. Image coordinates
are derived from the calibration so the full image -> ground path is exercised.

Usage:
    python demo.py
    python demo.py --scenario scenarios/cut_in.yaml --verbose
"""

import argparse
import logging
import math
from collections import deque
from pathlib import Path

import numpy as np
import yaml

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import CipvOptions, DetectedLaneLine, LaneLinePositionType, TrackedObject
from cipv.perception.cipv_core import Cipv

logger = logging.getLogger(__name__)

LANE_TYPES = {
    'ego_left': LaneLinePositionType.EGO_LEFT,
    'ego_right': LaneLinePositionType.EGO_RIGHT,
    'adjacent_left': LaneLinePositionType.ADJACENT_LEFT,
    'adjacent_right': LaneLinePositionType.ADJACENT_RIGHT,
}


def setup_logging(verbose: bool = False):
    """Configure logging."""
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def ego_motion_matrix(velocity: float, yaw_rate: float, time_unit: float) -> np.ndarray:
    """
    Transform taking points from the previous ego frame into the current one.

    Args:
        velocity: Ego speed in m/s
        yaw_rate: Ego yaw rate in rad/s
        time_unit: Frame period in seconds

    Returns:
        (4, 4) homogeneous transform
    """
    dyaw = yaw_rate * time_unit
    distance = velocity * time_unit
    cos_yaw = math.cos(dyaw)
    sin_yaw = math.sin(dyaw)

    motion = np.eye(4)
    motion[:2, :2] = [[cos_yaw, sin_yaw], [-sin_yaw, cos_yaw]]
    motion[:2, 3] = motion[:2, :2] @ np.array([-distance, 0.0])
    return motion


def build_lane_lines(frame: dict, stage: Cipv):
    lane_lines = []
    for lane in frame.get('lanes', []):
        ground = [tuple(p) for p in lane['points']]
        image = [stage.ground_to_image(x, y) for x, y in ground]
        lane_lines.append(DetectedLaneLine(
            pos_type=LANE_TYPES.get(lane['type'], LaneLinePositionType.OTHER),
            image_points=image,
            ground_points=ground,
        ))
    return lane_lines


def build_objects(frame: dict, stage: Cipv):
    objects = []
    for entry in frame.get('objects', []):
        x, y = entry['x'], entry['y']
        u, v = stage.ground_to_image(x, y)
        objects.append(TrackedObject(
            track_id=entry['track_id'],
            size=np.array([entry.get('length', 4.5), entry.get('width', 1.8), entry.get('height', 1.5)]),
            center=np.array([x, y, 0.0]),
            direction=np.array([math.cos(entry.get('heading', 0.0)), math.sin(entry.get('heading', 0.0)), 0.0]),
            local_center=np.array([-y, 1.5, max(x, 1.0)]),
            alpha=entry.get('heading', 0.0) + math.atan2(y, max(x, 1.0)),
            box=(u - 0.5, v - 1.0, 1.0, 1.0),
        ))
    return objects


def run_scenario(scenario: dict) -> list:
    """
    Replay every frame of a scenario.

    Returns:
        Per-frame CIPV track id (None when no object is flagged)
    """
    config = CipvConfig(**scenario.get('config', {}))
    stage = Cipv(config)
    stage.init(np.array(scenario['homography'], dtype=np.float64))

    motion_buffer = deque(maxlen=config.drops_history_size)
    results = []

    for index, frame in enumerate(scenario['frames']):
        options = CipvOptions(
            yaw_rate=frame.get('yaw_rate', 0.0),
            velocity=frame.get('velocity', 0.0),
        )

        # Keep every entry as the accumulated motion up to the current frame
        motion = ego_motion_matrix(options.velocity, options.yaw_rate, config.time_unit)
        for i in range(len(motion_buffer)):
            motion_buffer[i] = motion @ motion_buffer[i]
        motion_buffer.append(motion)

        lane_lines = build_lane_lines(frame, stage)
        objects = build_objects(frame, stage)

        stage.determine_cipv(lane_lines, options, objects)
        stage.collect_drops(list(motion_buffer), objects)

        cipv_id = next((obj.track_id for obj in objects if obj.is_cipv), None)
        results.append(cipv_id)
        logger.info(f"Frame {index:3d}: {len(objects)} objects, "
                    f"left_valid={stage.ego_lanes.left_valid}, right_valid={stage.ego_lanes.right_valid}, "
                    f"CIPV track={cipv_id}")
        for obj in objects:
            logger.debug(f"  track {obj.track_id}: {len(obj.drops)} drops")

    return results


def main():
    """Replay a scenario file."""
    parser = argparse.ArgumentParser(description='CIPV Scenario Replay')
    parser.add_argument('--scenario', type=str,
                        default=str(Path(__file__).parent / 'scenarios' / 'cut_in.yaml'),
                        help='Scenario YAML file (default: scenarios/cut_in.yaml)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging (DEBUG level)')
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)

    with open(args.scenario, 'r') as f:
        scenario = yaml.safe_load(f)

    logger.info("=" * 80)
    logger.info(f"CIPV REPLAY: {scenario.get('name', args.scenario)}")
    logger.info("=" * 80)

    results = run_scenario(scenario)
    changes = sum(1 for a, b in zip(results, results[1:]) if a != b)
    logger.info(f"Processed {len(results)} frames, CIPV changed {changes} times")


if __name__ == '__main__':
    main()
