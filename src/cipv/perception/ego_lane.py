"""
Ego lane construction.

EgoLaneBuilder extracts the ego-adjacent lane lines from the lane detector
output in both image and ground coordinates. VirtualLaneSynthesizer fills in
missing sides so that every frame has a complete ground-plane ego corridor.

Ground frame: x points forward, y points left, origin at the ego vehicle.
"""

import logging
import math
import numpy as np
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import DetectedLaneLine, LaneLinePositionType, CipvOptions
from cipv.perception.errors import LaneLineMismatch

logger = logging.getLogger(__name__)


@dataclass
class LaneLineSimple:
    """Ordered lane boundary points, near to far."""
    points: List[np.ndarray] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def clear(self):
        self.points.clear()

    def extend(self, points: Sequence[Sequence[float]]):
        self.points.extend(np.array([p[0], p[1]], dtype=np.float64) for p in points)

    def segments(self):
        """Yield (index, start, end) for each consecutive point pair."""
        for i in range(len(self.points) - 1):
            yield i, self.points[i], self.points[i + 1]


@dataclass
class EgoLane:
    """Left and right boundary of the ego corridor in one coordinate frame."""
    left_line: LaneLineSimple = field(default_factory=LaneLineSimple)
    right_line: LaneLineSimple = field(default_factory=LaneLineSimple)


@dataclass
class EgoLanes:
    """Per-frame ego lane in image and ground coordinates with side validity."""
    image: EgoLane = field(default_factory=EgoLane)
    ground: EgoLane = field(default_factory=EgoLane)
    left_valid: bool = False
    right_valid: bool = False


class EgoLaneBuilder:
    """Extracts the ego-left and ego-right lane lines from detector output."""

    def __init__(self, config: CipvConfig):
        self.config = config

    def build(self, lane_lines: Sequence[DetectedLaneLine]) -> EgoLanes:
        """
        Build the ego lane from raw detections.

        A side is valid when its detection has at least min_lane_line_points points.
        If several detections carry the same side tag, the last one wins.

        Args:
            lane_lines: Lane detections for the current frame

        Returns:
            EgoLanes with image/ground lines and validity flags

        Raises:
            LaneLineMismatch: If a detection's image and ground point sets differ in length
        """
        ego_lanes = EgoLanes()

        for lane_line in lane_lines:
            if lane_line.pos_type == LaneLinePositionType.EGO_LEFT:
                ego_lanes.left_valid = self._copy_side(
                    lane_line, ego_lanes.image.left_line, ego_lanes.ground.left_line, "left")
            elif lane_line.pos_type == LaneLinePositionType.EGO_RIGHT:
                ego_lanes.right_valid = self._copy_side(
                    lane_line, ego_lanes.image.right_line, ego_lanes.ground.right_line, "right")

        return ego_lanes

    def _copy_side(
        self,
        lane_line: DetectedLaneLine,
        image_line: LaneLineSimple,
        ground_line: LaneLineSimple,
        side: str
    ) -> bool:
        if len(lane_line.image_points) != len(lane_line.ground_points):
            raise LaneLineMismatch(
                f"{side} lane line has {len(lane_line.image_points)} image points "
                f"but {len(lane_line.ground_points)} ground points"
            )

        image_line.clear()
        ground_line.clear()

        if self.config.debug_level >= 2:
            logger.debug(f"[EGO LANE] {side} lane line with {len(lane_line)} points")

        if len(lane_line) < self.config.min_lane_line_points:
            return False

        image_line.extend(lane_line.image_points)
        ground_line.extend(lane_line.ground_points)
        return True


class VirtualLaneSynthesizer:
    """
    Completes the ground ego lane when one or both sides are missing.

    One side missing: the valid side is shifted laterally to the other side of ego.
    Both missing: a virtual corridor is extrapolated from ego velocity.
    """

    def __init__(self, config: CipvConfig):
        self.config = config

    def synthesize(self, ego_lanes: EgoLanes, options: CipvOptions) -> EgoLanes:
        """
        Fill in missing ground lane lines in place.

        Args:
            ego_lanes: Output of EgoLaneBuilder.build()
            options: Ego yaw rate and velocity

        Returns:
            The same EgoLanes instance
        """
        ground = ego_lanes.ground
        half_width = self.config.half_lane_width

        if ego_lanes.left_valid and ego_lanes.right_valid:
            if self.config.debug_level >= 2:
                logger.debug("[VIRTUAL LANE] Both lane lines valid")

        elif ego_lanes.right_valid:
            # Left boundary mirrored onto the +y side
            right_near_y = float(ground.right_line.points[0][1])
            target_y = abs(right_near_y) + half_width
            self.make_virtual_lane(ground.right_line, target_y - right_near_y, ground.left_line)
            logger.debug(f"[VIRTUAL LANE] Made left lane at y={target_y:.2f}")

        elif ego_lanes.left_valid:
            left_near_y = float(ground.left_line.points[0][1])
            target_y = -(abs(left_near_y) + half_width)
            self.make_virtual_lane(ground.left_line, target_y - left_near_y, ground.right_line)
            logger.debug(f"[VIRTUAL LANE] Made right lane at y={target_y:.2f}")

        else:
            self.make_virtual_ego_lane(options.yaw_rate, options.velocity, half_width,
                                       ground.left_line, ground.right_line)
            logger.debug(f"[VIRTUAL LANE] Made both lanes from velocity={options.velocity:.2f}")

        return ego_lanes

    @staticmethod
    def make_virtual_lane(
        ref_lane_line: LaneLineSimple,
        offset_distance: float,
        virtual_lane_line: LaneLineSimple
    ):
        """Rebuild virtual_lane_line as ref_lane_line shifted by offset_distance in y."""
        virtual_lane_line.clear()
        virtual_lane_line.extend((p[0], p[1] + offset_distance) for p in ref_lane_line.points)

    def vehicle_dynamics(self, tick: int, yaw_rate: float, velocity: float) -> Tuple[float, float]:
        """
        Ego displacement after tick frames.

        Straight constant-velocity model by default. With use_yaw_rate_path the
        ego follows a constant-turn-rate arc.
        """
        elapsed = tick * self.config.time_unit

        if not self.config.use_yaw_rate_path or abs(yaw_rate) < self.config.epsilon:
            return velocity * elapsed, 0.0

        theta = yaw_rate * elapsed
        radius = velocity / yaw_rate
        return radius * math.sin(theta), radius * (1.0 - math.cos(theta))

    def make_virtual_ego_lane(
        self,
        yaw_rate: float,
        velocity: float,
        offset_distance: float,
        left_lane_line: LaneLineSimple,
        right_lane_line: LaneLineSimple
    ):
        """Rebuild both lane lines around the extrapolated ego path."""
        left_lane_line.clear()
        right_lane_line.clear()

        for step in range(self.config.virtual_lane_steps):
            x, y = self.vehicle_dynamics(step * self.config.virtual_lane_tick, yaw_rate, velocity)
            left_lane_line.extend([(x, y + offset_distance)])
            right_lane_line.extend([(x, y - offset_distance)])
