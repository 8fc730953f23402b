"""
Closest-edge extraction for tracked objects.

The ego-facing edge of an object's footprint is what gets tested against the
ego lane boundaries. The ground-plane path is the one used for CIPV decisions;
the image-plane edge is kept for diagnostics of the image-based mode.
"""

import logging
import math
import numpy as np
from dataclasses import dataclass

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import TrackedObject
from cipv.perception.coordinate_mapper import CoordinateMapper
from cipv.perception.errors import ObjectTooSmall, ObjectBehindEgo, DegenerateSegment

logger = logging.getLogger(__name__)


@dataclass
class LineSegment2D:
    """Directed 2D segment."""
    start: np.ndarray
    end: np.ndarray

    def is_degenerate(self, epsilon: float = 1.0e-6) -> bool:
        delta = self.end - self.start
        return float(delta @ delta) <= epsilon


class ObjectEdgeExtractor:
    """Computes the edge of an object's footprint that faces the ego vehicle."""

    def __init__(self, config: CipvConfig, mapper: CoordinateMapper):
        self.config = config
        self.mapper = mapper

    def _check_size(self, obj: TrackedObject):
        min_size = self.config.min_object_size
        if np.all(obj.size[:3] < min_size):
            raise ObjectTooSmall(f"track {obj.track_id} size {obj.size.tolist()} below {min_size}")

    def footprint_corners(self, obj: TrackedObject) -> np.ndarray:
        """
        Ground-plane corners of the object's footprint rectangle.

        The rectangle is anchored at the ground projection of the image box
        bottom-center and rotated by alpha plus the viewing ray angle.

        Returns:
            (4, 2) corners ordered rear-left, rear-right, front-left, front-right
            in the object frame
        """
        box_x, box_y, box_width, box_height = obj.box
        footprint_x = box_x + box_width * 0.5
        footprint_y = box_y + box_height
        center_x, center_y = self.mapper.image_to_ground(footprint_x, footprint_y)

        theta_ray = math.atan2(obj.local_center[0], obj.local_center[2])
        theta = obj.alpha + theta_ray
        if theta > math.pi / 2:
            theta -= math.pi / 2

        x1 = obj.size[0] * 0.5
        x2 = -x1
        y1 = obj.size[1] * 0.5
        y2 = -y1
        cos_theta = math.cos(theta)
        sin_theta = math.sin(theta)

        corners = np.array([
            [x2 * cos_theta + y1 * sin_theta, y1 * cos_theta - x2 * sin_theta],
            [x2 * cos_theta + y2 * sin_theta, y2 * cos_theta - x2 * sin_theta],
            [x1 * cos_theta + y1 * sin_theta, y1 * cos_theta - x1 * sin_theta],
            [x1 * cos_theta + y2 * sin_theta, y2 * cos_theta - x1 * sin_theta],
        ])
        corners += np.array([center_x, center_y])

        if self.config.debug_level >= 3:
            logger.debug(f"[EDGE] track {obj.track_id} anchor=({center_x:.2f}, {center_y:.2f}) "
                         f"theta={theta:.3f} corners={corners.round(2).tolist()}")
        return corners

    def closest_edge_ground(self, obj: TrackedObject) -> LineSegment2D:
        """
        Find the footprint edge closest to ego in ground coordinates.

        Start is the endpoint with the larger y (further left), so the left
        lane test uses the end point and the right lane test the start point.

        Raises:
            ObjectTooSmall: If all size dimensions are below min_object_size
            ObjectBehindEgo: If the closest corner is behind the ego origin
            DegenerateProjection: If the footprint cannot be projected to ground
        """
        self._check_size(obj)
        corners = self.footprint_corners(obj)

        # Running minimum with <=, later corners win ties
        closest_x = float('inf')
        second_closest_x = float('inf')
        closest_index = -1
        second_closest_index = -1
        for i, corner in enumerate(corners):
            if corner[0] <= closest_x:
                second_closest_index = closest_index
                second_closest_x = closest_x
                closest_index = i
                closest_x = corner[0]
            elif corner[0] <= second_closest_x:
                second_closest_index = i
                second_closest_x = corner[0]

        closest = corners[closest_index]
        second = corners[second_closest_index]
        if closest[1] >= second[1]:
            edge = LineSegment2D(start=closest.copy(), end=second.copy())
        else:
            edge = LineSegment2D(start=second.copy(), end=closest.copy())

        if closest[0] < 0:
            raise ObjectBehindEgo(f"track {obj.track_id} closest corner x={closest[0]:.2f}")

        if self.config.debug_level >= 2:
            logger.debug(f"[EDGE] track {obj.track_id} start={edge.start.round(2).tolist()} "
                         f"end={edge.end.round(2).tolist()}")
        return edge

    def closest_edge_image(self, obj: TrackedObject) -> LineSegment2D:
        """
        Pick the visible edge of an object from its heading.

        Heading within +-45 degrees shows the rear, above +45 the left side,
        below -45 the right side.

        Raises:
            ObjectTooSmall: If all size dimensions are below min_object_size
            DegenerateSegment: If the heading vector has zero length
        """
        self._check_size(obj)

        center_x = float(obj.local_center[0])
        center_y = float(obj.local_center[1])
        direction_x = float(obj.direction[0])
        direction_y = float(obj.direction[1])
        length = math.hypot(direction_x, direction_y)
        if length < self.config.epsilon:
            raise DegenerateSegment(f"track {obj.track_id} has no heading")

        cos_theta = direction_x / length
        sin_theta = -direction_y / length
        x1 = obj.size[0] / 2
        x2 = -x1
        y1 = obj.size[1] / 2
        y2 = -y1

        def corner(dx, dy):
            return np.array([dx * cos_theta + dy * sin_theta + center_x,
                             dy * cos_theta - dx * sin_theta + center_y])

        heading = math.atan2(direction_y, direction_x)
        limit = self.config.forty_five_degree
        if abs(heading) <= limit:
            return LineSegment2D(start=corner(x2, y1), end=corner(x2, y2))  # rear
        if heading > limit:
            return LineSegment2D(start=corner(x2, y1), end=corner(x1, y1))  # left side
        return LineSegment2D(start=corner(x1, y2), end=corner(x2, y2))  # right side
