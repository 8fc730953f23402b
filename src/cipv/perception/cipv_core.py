"""
Cipv - Closest-In-Path Vehicle determination for a monocular camera.

This module wires the ego lane, edge extraction, lane containment, selection
and trajectory history components into the per-frame entry points used by the
camera perception pipeline.
"""

import logging
import numpy as np
from typing import List, Sequence, Tuple

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import DetectedLaneLine, TrackedObject, CipvOptions, MotionBuffer
from cipv.perception.coordinate_mapper import CoordinateMapper
from cipv.perception.ego_lane import EgoLaneBuilder, VirtualLaneSynthesizer, EgoLanes
from cipv.perception.object_edge import ObjectEdgeExtractor
from cipv.perception.lane_containment import LaneContainmentClassifier
from cipv.perception.cipv_selector import CipvSelector
from cipv.perception.trajectory_history import TrajectoryHistoryTracker
from cipv.perception.errors import CalibrationError, RejectionError

logger = logging.getLogger(__name__)


class Cipv:
    """
    Per-camera CIPV stage.

    Responsibilities:
    - Hold the image <-> ground calibration
    - Build and complete the ego lane every frame
    - Classify objects against the ego lane and flag the CIPV with hysteresis
    - Maintain motion-compensated trajectory history per track

    Each instance owns its own calibration, selection state and history.
    Frames must be fed in order from a single thread.
    """

    def __init__(self, config: CipvConfig = None):
        self.config = config if config is not None else CipvConfig()

        self.mapper = CoordinateMapper()
        self.lane_builder = EgoLaneBuilder(self.config)
        self.lane_synthesizer = VirtualLaneSynthesizer(self.config)
        self.edge_extractor = ObjectEdgeExtractor(self.config, self.mapper)
        self.classifier = LaneContainmentClassifier(self.config, self.edge_extractor)
        self.selector = CipvSelector()
        self.history = TrajectoryHistoryTracker(self.config)

        # Last frame's ego lane, kept for inspection
        self.ego_lanes = EgoLanes()

    def init(self, homography_im2car: np.ndarray) -> bool:
        """
        Install the image-to-ground homography.

        Args:
            homography_im2car: (3, 3) image-to-ground projective transform

        Returns:
            True on success

        Raises:
            CalibrationError: If the homography is not invertible
        """
        self.mapper.set_homography(homography_im2car)
        logger.info(f"Initialized {self.name()} "
                    f"({'image' if self.config.image_based else 'ground'} based, "
                    f"debug_level={self.config.debug_level})")
        return True

    @property
    def initialized(self) -> bool:
        return self.mapper.calibrated

    def build_ego_lanes(self, lane_lines: Sequence[DetectedLaneLine], options: CipvOptions) -> EgoLanes:
        """Extract the ego lane lines and synthesize any missing side."""
        ego_lanes = self.lane_builder.build(lane_lines)
        return self.lane_synthesizer.synthesize(ego_lanes, options)

    def classify_objects(self, objects: Sequence[TrackedObject], ego_lanes: EgoLanes) -> List[bool]:
        """
        Run lane containment on every object.

        Rejected objects count as not in lane and never stop the loop.
        """
        in_lane = []
        for obj in objects:
            if self.config.debug_level >= 2:
                self._trace_image_edge(obj)
            try:
                inside = self.classifier.is_in_lane(obj, ego_lanes.image, ego_lanes.ground)
            except RejectionError as e:
                logger.debug(f"Track {obj.track_id} not classified: {type(e).__name__}: {e}")
                inside = False
            in_lane.append(inside)
        return in_lane

    def _trace_image_edge(self, obj: TrackedObject):
        try:
            edge = self.edge_extractor.closest_edge_image(obj)
        except RejectionError as e:
            logger.debug(f"[EDGE] track {obj.track_id} has no image edge: {e}")
            return
        logger.debug(f"[EDGE] track {obj.track_id} image edge "
                     f"start={edge.start.round(2).tolist()} end={edge.end.round(2).tolist()}")

    def determine_cipv(
        self,
        lane_lines: Sequence[DetectedLaneLine],
        options: CipvOptions,
        objects: List[TrackedObject]
    ) -> bool:
        """
        Flag the closest in-path vehicle among objects.

        Args:
            lane_lines: Lane detections for the current frame (read only)
            options: Ego yaw rate and velocity (read only)
            objects: Objects of the current frame; is_cipv is updated in place

        Returns:
            True once the frame has been processed

        Raises:
            CalibrationError: If init() has not installed a homography
        """
        if not self.initialized:
            raise CalibrationError(f"{self.name()} used before init()")
        if self.config.debug_level >= 3:
            logger.debug(f"Cipv got {len(objects)} objects and {len(lane_lines)} lane lines")

        self.ego_lanes = self.build_ego_lanes(lane_lines, options)
        in_lane = self.classify_objects(objects, self.ego_lanes)
        decision = self.selector.select(objects, in_lane)
        CipvSelector.apply(objects, decision)

        if decision.has_winner and self.config.debug_level >= 1:
            logger.debug(f"final cipv_index: {decision.winner_index}, "
                         f"final cipv_track_id: {decision.winner_track_id}")
        return True

    def collect_drops(self, motion_buffer: MotionBuffer, objects: List[TrackedObject]) -> bool:
        """
        Update trajectory history and write motion-compensated drops to objects.

        Returns:
            False if the motion buffer is empty, True otherwise
        """
        return self.history.collect(motion_buffer, objects)

    def image_to_ground(self, image_x: float, image_y: float) -> Tuple[float, float]:
        return self.mapper.image_to_ground(image_x, image_y)

    def ground_to_image(self, ground_x: float, ground_y: float) -> Tuple[float, float]:
        return self.mapper.ground_to_image(ground_x, ground_y)

    def reset(self):
        """Reset selection state and trajectory history for a new sequence."""
        self.selector.reset()
        self.history.reset()
        self.ego_lanes = EgoLanes()

    @staticmethod
    def name() -> str:
        return "Cipv"
