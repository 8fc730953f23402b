"""
Gateway module for the CIPV stage.

Defines the data contracts shared with the upstream lane detector, object
tracker and ego-motion estimator.
"""

from .data_types import (
    LaneLinePositionType, DetectedLaneLine, TrackedObject,
    CipvOptions, MotionBuffer
)

__all__ = [
    'LaneLinePositionType', 'DetectedLaneLine', 'TrackedObject',
    'CipvOptions', 'MotionBuffer'
]
