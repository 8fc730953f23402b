"""
Data structures exchanged with the camera perception pipeline.

Lane lines, tracked objects and ego-motion matrices are produced by upstream
stages (lane detector, object tracker, motion estimator). The CIPV stage reads
them and writes back only the CIPV flag and the trajectory drops.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple
import numpy as np


class LaneLinePositionType(Enum):
    """Position tag assigned to a lane line by the lane detector."""
    EGO_LEFT = "ego_left"
    EGO_RIGHT = "ego_right"
    ADJACENT_LEFT = "adjacent_left"
    ADJACENT_RIGHT = "adjacent_right"
    OTHER = "other"


@dataclass
class DetectedLaneLine:
    """Raw lane line detection with parallel image and ground point sets."""
    pos_type: LaneLinePositionType
    image_points: List[Tuple[float, float]] = field(default_factory=list)   # (u, v) pixels, near-to-far
    ground_points: List[Tuple[float, float]] = field(default_factory=list)  # (x, y) meters, near-to-far

    def __len__(self) -> int:
        return len(self.image_points)


@dataclass
class TrackedObject:
    """Camera object as handed over by the tracker."""
    track_id: int
    size: np.ndarray          # (3,) length, width, height in meters
    center: np.ndarray        # (3,) ground position in ego frame (x forward, y left)
    direction: np.ndarray     # (3,) heading unit vector in ego frame
    local_center: np.ndarray  # (3,) camera frame center (x right, y down, z forward)
    alpha: float              # observation angle in radians
    box: Tuple[float, float, float, float]  # image box (x, y, width, height) in pixels
    is_cipv: bool = False
    drops: List[np.ndarray] = field(default_factory=list)  # motion-compensated history, newest first

    def __post_init__(self):
        self.size = np.asarray(self.size, dtype=np.float64)
        self.center = np.asarray(self.center, dtype=np.float64)
        self.direction = np.asarray(self.direction, dtype=np.float64)
        self.local_center = np.asarray(self.local_center, dtype=np.float64)


@dataclass
class CipvOptions:
    """Per-frame ego motion scalars."""
    yaw_rate: float = 0.0   # rad/s
    velocity: float = 0.0   # m/s


# Per-frame 4x4 homogeneous ego-motion transforms, oldest first
MotionBuffer = Sequence[np.ndarray]
