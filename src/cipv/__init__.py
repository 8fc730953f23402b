"""
Closest-In-Path Vehicle selection for the camera perception pipeline.
"""

from cipv.config import CipvConfig
from cipv.gateway import LaneLinePositionType, DetectedLaneLine, TrackedObject, CipvOptions
from cipv.perception import Cipv

__all__ = ['CipvConfig', 'LaneLinePositionType', 'DetectedLaneLine', 'TrackedObject', 'CipvOptions', 'Cipv']
