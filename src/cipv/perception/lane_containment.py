"""
Object-in-ego-lane classification.

  |           |
  | *------*  |
  |         *-+-----*
  |           |  *--------* <- closest edge of object
 *+------*    |
  |           |
l_lane     r_lane

An object is in the ego lane when the end point of its closest edge is not
left of the left boundary, the start point is left of the right boundary, and
the lane-to-edge distances are physically plausible.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import TrackedObject
from cipv.perception.ego_lane import EgoLane, LaneLineSimple
from cipv.perception.object_edge import ObjectEdgeExtractor
from cipv.perception.errors import (
    DegenerateSegment, InsufficientLaneData, ImplausibleLaneDistance, ImageModeNotSupported
)
from cipv.perception.geometry_utils import distance_point_to_segment, is_point_left_of_line

logger = logging.getLogger(__name__)


@dataclass
class LaneDistances:
    """Shortest distances from the closest-edge endpoints to each lane line."""
    start_to_right: float
    start_to_left: float
    end_to_right: float
    end_to_left: float


class LaneContainmentClassifier:
    """Decides whether an object's closest edge lies inside the ego corridor."""

    def __init__(self, config: CipvConfig, edge_extractor: ObjectEdgeExtractor):
        self.config = config
        self.edge_extractor = edge_extractor

    def nearest_segment(
        self,
        point: np.ndarray,
        lane_line: LaneLineSimple
    ) -> Tuple[Optional[int], float]:
        """
        Find the lane segment closest to a point.

        Degenerate segments are skipped.

        Returns:
            (segment index, distance), or (None, inf) if no segment is usable
        """
        closest_index = None
        shortest_distance = float('inf')
        for i, seg_start, seg_end in lane_line.segments():
            try:
                distance = distance_point_to_segment(point, seg_start, seg_end, self.config.epsilon)
            except DegenerateSegment:
                continue
            if distance < shortest_distance:
                closest_index = i
                shortest_distance = distance
        return closest_index, shortest_distance

    def check_distances(self, distances: LaneDistances):
        """
        Plausibility gate on lane-to-object distances.

        Raises:
            ImplausibleLaneDistance: If any endpoint is too far from a lane, or the
                endpoints' distances to the same lane differ by more than a vehicle width
        """
        max_dist = self.config.max_dist_object_to_lane
        for name in ('start_to_right', 'start_to_left', 'end_to_right', 'end_to_left'):
            value = getattr(distances, name)
            if value > max_dist:
                raise ImplausibleLaneDistance(f"distance {name} ({value:.2f} m) is too long")

        width = abs(distances.start_to_right - distances.end_to_right)
        if width > self.config.max_vehicle_width:
            raise ImplausibleLaneDistance(f"width of vehicle to right lane ({width:.2f} m) is too long")

        width = abs(distances.end_to_left - distances.start_to_left)
        if width > self.config.max_vehicle_width:
            raise ImplausibleLaneDistance(f"width of vehicle to left lane ({width:.2f} m) is too long")

    def is_in_lane_ground(self, obj: TrackedObject, egolane_ground: EgoLane) -> bool:
        """
        Classify an object against the ground-frame ego lane.

        Returns:
            True if the object's closest edge lies between the lane lines

        Raises:
            RejectionError: If the object cannot be classified this frame
        """
        edge = self.edge_extractor.closest_edge_ground(obj)

        left_line = egolane_ground.left_line
        right_line = egolane_ground.right_line
        if len(left_line) <= 1:
            raise InsufficientLaneData("No left lane")
        if len(right_line) <= 1:
            raise InsufficientLaneData("No right lane")

        left_clear = False
        left_index, end_to_left = self.nearest_segment(edge.end, left_line)
        if left_index is not None:
            if self.config.debug_level >= 3:
                logger.debug(f"[LEFT] closest_index: {left_index}, shortest_distance: {end_to_left:.3f}")
            left_clear = not is_point_left_of_line(
                edge.end, left_line.points[left_index], left_line.points[left_index + 1])

        right_clear = False
        right_index, start_to_right = self.nearest_segment(edge.start, right_line)
        if right_index is not None:
            if self.config.debug_level >= 3:
                logger.debug(f"[RIGHT] closest_index: {right_index}, shortest_distance: {start_to_right:.3f}")
            right_clear = is_point_left_of_line(
                edge.start, right_line.points[right_index], right_line.points[right_index + 1])

        _, start_to_left = self.nearest_segment(edge.start, left_line)
        _, end_to_right = self.nearest_segment(edge.end, right_line)

        self.check_distances(LaneDistances(
            start_to_right=start_to_right,
            start_to_left=start_to_left,
            end_to_right=end_to_right,
            end_to_left=end_to_left,
        ))

        if self.config.debug_level >= 2:
            logger.debug(f"[LANE] track {obj.track_id} left_clear={left_clear} right_clear={right_clear}")
        return left_clear and right_clear

    def is_in_lane_image(self, obj: TrackedObject, egolane_image: EgoLane) -> bool:
        """Image-coordinate classification is not available."""
        raise ImageModeNotSupported(
            f"image-based lane containment requested for track {obj.track_id}")

    def is_in_lane(self, obj: TrackedObject, egolane_image: EgoLane, egolane_ground: EgoLane) -> bool:
        """Dispatch to the image or ground classifier according to the operating mode."""
        if self.config.image_based:
            return self.is_in_lane_image(obj, egolane_image)
        return self.is_in_lane_ground(obj, egolane_ground)
