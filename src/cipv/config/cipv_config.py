"""
Configuration dataclass for the CIPV stage.

This module centralizes all CIPV-related tuning constants to provide a single
source of truth for lane synthesis, object classification and trajectory history.
"""

import math
from dataclasses import dataclass


@dataclass
class CipvConfig:
    """Configuration for CIPV determination and drop collection."""

    # Ego lane construction
    min_lane_line_points: int = 2
    half_lane_width: float = 1.21  # half ego width (0.81m) + 0.40m margin

    # Virtual ego lane from vehicle dynamics
    time_unit: float = 0.1  # average frame period in seconds
    virtual_lane_steps: int = 24
    virtual_lane_tick: int = 5
    use_yaw_rate_path: bool = False

    # Object plausibility
    min_object_size: float = 1.0e-2
    max_dist_object_to_lane: float = 70.0
    max_vehicle_width: float = 5.0
    forty_five_degree: float = math.pi / 4

    # Trajectory history
    drops_history_size: int = 20
    max_allowed_skip_object: int = 10

    # Numerics
    epsilon: float = 1.0e-6

    # Operating mode
    image_based: bool = False

    # 0: silent, 1: minimal, 2: important, 3: verbose, 5: all
    debug_level: int = 0
