"""
Perception module for CIPV determination and trajectory history.
"""

from .cipv_core import Cipv
from .coordinate_mapper import CoordinateMapper
from .ego_lane import EgoLane, EgoLanes, LaneLineSimple, EgoLaneBuilder, VirtualLaneSynthesizer
from .object_edge import LineSegment2D, ObjectEdgeExtractor
from .lane_containment import LaneContainmentClassifier
from .cipv_selector import CipvSelector, CipvDecision
from .trajectory_history import TrajectoryHistoryTracker, TrackHistory

__all__ = [
    'Cipv', 'CoordinateMapper', 'EgoLane', 'EgoLanes', 'LaneLineSimple', 'EgoLaneBuilder',
    'VirtualLaneSynthesizer', 'LineSegment2D', 'ObjectEdgeExtractor', 'LaneContainmentClassifier',
    'CipvSelector', 'CipvDecision', 'TrajectoryHistoryTracker', 'TrackHistory'
]
