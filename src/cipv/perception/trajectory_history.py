"""
Per-track ground position history ("drops").

Keeps a bounded ring buffer of ground positions for every track id and
re-expresses the history in the current ego frame using the ego-motion buffer.
Tracks missing for too many consecutive frames are evicted.
"""

import logging
import numpy as np
from collections import deque
from typing import Dict, List, Sequence, Set

from cipv.config.cipv_config import CipvConfig
from cipv.gateway.data_types import TrackedObject, MotionBuffer
from cipv.perception.errors import DegenerateTransform
from cipv.perception.geometry_utils import transform_ground_point

logger = logging.getLogger(__name__)


class TrackHistory:
    """Bounded ground position history of one track."""

    def __init__(self, capacity: int):
        self.positions = deque(maxlen=capacity)
        self.capacity = capacity
        self.miss_count = 0

    def add(self, x: float, y: float):
        """Append the newest position, dropping the oldest when full."""
        self.positions.append((float(x), float(y)))

    def __len__(self) -> int:
        return len(self.positions)


class TrajectoryHistoryTracker:
    """Maintains and motion-compensates trajectory history for tracked objects."""

    def __init__(self, config: CipvConfig):
        self.config = config
        self.histories: Dict[int, TrackHistory] = {}

    def collect(self, motion_buffer: MotionBuffer, objects: Sequence[TrackedObject]) -> bool:
        """
        Update history with the current frame and refresh each object's drops.

        Args:
            motion_buffer: Per-frame 4x4 ego-motion transforms, oldest first
            objects: Objects of the current frame; their drops are overwritten

        Returns:
            False if the motion buffer is empty (nothing is updated), True otherwise
        """
        motion_size = len(motion_buffer) if motion_buffer is not None else 0
        if motion_size <= 0:
            logger.debug(f"Motion buffer empty, skipping drop collection for {len(objects)} objects")
            return False

        if self.config.debug_level >= 2:
            logger.debug(f"motion_size: {motion_size}, tracked histories: {len(self.histories)}")

        for obj in objects:
            history = self.histories.get(obj.track_id)
            if history is None:
                history = TrackHistory(self.config.drops_history_size)
                self.histories[obj.track_id] = history
            history.miss_count = 0
            history.add(obj.center[0], obj.center[1])

            obj.drops = self.compensate(history, motion_buffer)

        self.sweep({obj.track_id for obj in objects})
        return True

    def compensate(self, history: TrackHistory, motion_buffer: MotionBuffer) -> List[np.ndarray]:
        """
        Express a track's history in the current ego frame.

        The newest sample is already current. The sample k frames older is
        moved with the k-th newest motion matrix.

        Returns:
            List of (3,) points, newest first
        """
        positions = history.positions
        newest_x, newest_y = positions[-1]
        drops = [np.array([newest_x, newest_y, 0.0])]

        count = min(len(positions) - 1, history.capacity - 1, len(motion_buffer))
        for k in range(1, count + 1):
            x, y = positions[-1 - k]
            try:
                drops.append(transform_ground_point(x, y, motion_buffer[-k], self.config.epsilon))
            except DegenerateTransform as e:
                logger.warning(f"Skipping history sample {k}: {e}")
        return drops

    def sweep(self, current_ids: Set[int]):
        """Count a miss for every absent track and evict tracks that reached the limit."""
        for track_id in list(self.histories):
            if track_id in current_ids:
                continue
            history = self.histories[track_id]
            history.miss_count += 1
            if self.config.debug_level >= 2:
                logger.debug(f"Track {track_id} missed {history.miss_count} frames")
            if history.miss_count >= self.config.max_allowed_skip_object:
                del self.histories[track_id]
                logger.debug(f"Removed obsolete track {track_id}")

    def reset(self):
        self.histories.clear()
