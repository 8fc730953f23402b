import numpy as np
import pytest

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import DetectedLaneLine, LaneLinePositionType, TrackedObject
from cipv.perception.cipv_core import Cipv


def make_object(track_id, x, y, length=4.0, width=1.8, height=1.5, alpha=0.0):
    """
    Object whose footprint is centered at ground (x, y), heading along ego x.

    Tests run with an identity homography, so the image box bottom-center maps
    straight to the ground anchor.
    """
    return TrackedObject(
        track_id=track_id,
        size=np.array([length, width, height]),
        center=np.array([x, y, 0.0]),
        direction=np.array([1.0, 0.0, 0.0]),
        local_center=np.array([0.0, 1.5, max(x, 1.0)]),
        alpha=alpha,
        box=(x - 0.5, y - 1.0, 1.0, 1.0),
    )


def make_lane(pos_type, y, x_start=0.0, x_end=60.0, step=5.0):
    """Straight lane line parallel to ego x at lateral offset y."""
    xs = np.arange(x_start, x_end + step, step)
    ground = [(float(x), float(y)) for x in xs]
    image = [(640.0 - 10.0 * y, 720.0 - 5.0 * x) for x, y in ground]
    return DetectedLaneLine(pos_type=pos_type, image_points=image, ground_points=ground)


def make_ego_lanes(left_y=1.75, right_y=-1.75):
    lanes = []
    if left_y is not None:
        lanes.append(make_lane(LaneLinePositionType.EGO_LEFT, left_y))
    if right_y is not None:
        lanes.append(make_lane(LaneLinePositionType.EGO_RIGHT, right_y))
    return lanes


@pytest.fixture
def config():
    return CipvConfig()


@pytest.fixture
def cipv(config):
    stage = Cipv(config)
    stage.init(np.eye(3))
    return stage
