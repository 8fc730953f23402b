import math

import numpy as np
import pytest

from cipv.config.cipv_config import CipvConfig
from cipv.perception.coordinate_mapper import CoordinateMapper
from cipv.perception.object_edge import ObjectEdgeExtractor, LineSegment2D
from cipv.perception.errors import ObjectTooSmall, ObjectBehindEgo, DegenerateSegment

from conftest import make_object


@pytest.fixture
def extractor(config):
    return ObjectEdgeExtractor(config, CoordinateMapper(np.eye(3)))


def test_aligned_object_rear_edge(extractor):
    edge = extractor.closest_edge_ground(make_object(1, 20.0, 0.0, length=4.0, width=1.8))

    np.testing.assert_allclose(edge.start, [18.0, 0.9])
    np.testing.assert_allclose(edge.end, [18.0, -0.9])
    assert edge.start[1] >= edge.end[1]


def test_anchor_comes_from_image_box_footprint(config):
    # Image x scaled by 2 onto ground x
    mapper = CoordinateMapper(np.diag([2.0, 1.0, 1.0]))
    extractor = ObjectEdgeExtractor(config, mapper)
    obj = make_object(1, 10.0, 0.0)

    edge = extractor.closest_edge_ground(obj)

    # Box bottom-center is (10, 0) in the image, (20, 0) on the ground
    np.testing.assert_allclose((edge.start + edge.end) / 2, [18.0, 0.0])


def test_rotated_object_uses_two_closest_corners(extractor):
    obj = make_object(1, 20.0, 0.0, length=4.0, width=2.0, alpha=0.3)
    corners = extractor.footprint_corners(obj)
    edge = extractor.closest_edge_ground(obj)

    order = np.argsort(corners[:, 0], kind='stable')
    expected = {tuple(np.round(corners[i], 6)) for i in order[:2]}
    assert {tuple(np.round(edge.start, 6)), tuple(np.round(edge.end, 6))} == expected
    assert edge.start[1] >= edge.end[1]


def test_heading_beyond_quarter_turn_is_wrapped(extractor):
    wrapped = extractor.footprint_corners(make_object(1, 20.0, 1.0, alpha=math.pi / 2 + 0.2))
    direct = extractor.footprint_corners(make_object(1, 20.0, 1.0, alpha=0.2))
    np.testing.assert_allclose(wrapped, direct)


def test_viewing_ray_adds_to_alpha(extractor):
    off_axis = make_object(1, 20.0, 0.0)
    off_axis.local_center = np.array([20.0 * math.tan(0.1), 1.5, 20.0])
    rotated = make_object(1, 20.0, 0.0, alpha=0.1)
    np.testing.assert_allclose(extractor.footprint_corners(off_axis), extractor.footprint_corners(rotated))


def test_tiny_object_rejected(extractor):
    with pytest.raises(ObjectTooSmall):
        extractor.closest_edge_ground(make_object(1, 20.0, 0.0, length=0.001, width=0.001, height=0.001))


def test_one_real_dimension_is_enough(extractor):
    edge = extractor.closest_edge_ground(make_object(1, 20.0, 0.0, length=0.001, width=0.001, height=1.5))
    assert edge.start[0] == pytest.approx(20.0, abs=1e-3)


@pytest.mark.parametrize("y", [-10.0, 0.0, 10.0])
def test_object_behind_ego_rejected(extractor, y):
    with pytest.raises(ObjectBehindEgo):
        extractor.closest_edge_ground(make_object(1, -5.0, y))


def test_object_straddling_ego_origin_rejected(extractor):
    with pytest.raises(ObjectBehindEgo):
        extractor.closest_edge_ground(make_object(1, 1.0, 0.0, length=4.0))


def test_image_edge_rear_when_heading_forward(extractor):
    obj = make_object(1, 20.0, 0.0, length=4.0, width=2.0)
    obj.local_center = np.array([0.0, 0.0, 20.0])
    edge = extractor.closest_edge_image(obj)
    np.testing.assert_allclose(edge.start, [-2.0, 1.0])
    np.testing.assert_allclose(edge.end, [-2.0, -1.0])


def test_image_edge_side_when_heading_sideways(extractor):
    obj = make_object(1, 20.0, 0.0, length=4.0, width=2.0)
    obj.local_center = np.array([0.0, 0.0, 20.0])
    obj.direction = np.array([0.0, 1.0, 0.0])
    edge = extractor.closest_edge_image(obj)
    assert not edge.is_degenerate()
    assert np.linalg.norm(edge.end - edge.start) == pytest.approx(4.0)


def test_image_edge_requires_heading(extractor):
    obj = make_object(1, 20.0, 0.0)
    obj.direction = np.zeros(3)
    with pytest.raises(DegenerateSegment):
        extractor.closest_edge_image(obj)


def test_segment_degeneracy():
    assert LineSegment2D(np.array([1.0, 1.0]), np.array([1.0, 1.0])).is_degenerate()
    assert not LineSegment2D(np.array([1.0, 1.0]), np.array([2.0, 1.0])).is_degenerate()
