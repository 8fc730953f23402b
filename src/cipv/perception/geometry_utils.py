"""
Geometric utility functions for the CIPV stage.

Shared 2D computations used across lane containment and trajectory history:
point-to-segment distance, side-of-line test and homogeneous transforms.
"""

import numpy as np
from typing import Sequence, Tuple
from shapely.geometry import LineString, Point

from cipv.perception.errors import DegenerateSegment, DegenerateProjection, DegenerateTransform


def distance_point_to_segment(
    point: Sequence[float],
    seg_start: Sequence[float],
    seg_end: Sequence[float],
    epsilon: float = 1.0e-6
) -> float:
    """
    Compute the shortest distance from a point to a line segment.

    Args:
        point: (x, y) query point
        seg_start: (x, y) segment start
        seg_end: (x, y) segment end
        epsilon: Squared-length threshold below which the segment is degenerate

    Returns:
        Euclidean distance to the closest point on the segment

    Raises:
        DegenerateSegment: If the segment has (near) zero length
    """
    dx = seg_end[0] - seg_start[0]
    dy = seg_end[1] - seg_start[1]
    if dx * dx + dy * dy <= epsilon:
        raise DegenerateSegment(f"zero-length segment at ({seg_start[0]:.3f}, {seg_start[1]:.3f})")

    segment = LineString([(seg_start[0], seg_start[1]), (seg_end[0], seg_end[1])])
    return float(segment.distance(Point(point[0], point[1])))


def is_point_left_of_line(
    point: Sequence[float],
    seg_start: Sequence[float],
    seg_end: Sequence[float]
) -> bool:
    """
    Check whether a point lies strictly left of a directed segment.

    Points exactly on the line count as right.
    """
    cross_product = ((seg_end[0] - seg_start[0]) * (point[1] - seg_start[1]) -
                     (seg_end[1] - seg_start[1]) * (point[0] - seg_start[0]))
    return bool(cross_product > 0.0)


def apply_homography(homography: np.ndarray, x: float, y: float) -> Tuple[float, float]:
    """
    Map a 2D point through a 3x3 projective transform.

    Raises:
        DegenerateProjection: If the resulting w is not distinguishable from zero
    """
    p = homography @ np.array([x, y, 1.0])
    w = p[2]
    if abs(w) <= np.finfo(np.float64).eps:
        raise DegenerateProjection(f"w={w} for point ({x}, {y})")
    return float(p[0] / w), float(p[1] / w)


def transform_ground_point(
    x: float,
    y: float,
    motion_matrix: np.ndarray,
    epsilon: float = 1.0e-6
) -> np.ndarray:
    """
    Apply a 4x4 homogeneous ego-motion transform to a ground point.

    Args:
        x: Ground x in meters
        y: Ground y in meters
        motion_matrix: (4, 4) homogeneous transform
        epsilon: Threshold for the homogeneous component

    Returns:
        (3,) transformed point [x, y, z]

    Raises:
        DegenerateTransform: If the homogeneous component is near zero
    """
    motion_matrix = np.asarray(motion_matrix, dtype=np.float64)
    if motion_matrix.shape != (4, 4):
        raise ValueError(f"Motion matrix must be 4x4, got {motion_matrix.shape}")

    transformed = motion_matrix @ np.array([x, y, 0.0, 1.0])
    if abs(transformed[3]) < epsilon:
        raise DegenerateTransform(f"w={transformed[3]} for point ({x}, {y})")
    transformed = transformed / transformed[3]
    return transformed[:3]
