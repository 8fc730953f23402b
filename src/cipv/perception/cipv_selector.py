"""
CIPV selection with frame-to-frame hysteresis.

The selector decides which in-lane object is the closest in path and returns
an explicit decision. Applying that decision to the caller's object list is a
separate step so the selection logic never holds on to the collection.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from cipv.gateway.data_types import TrackedObject

logger = logging.getLogger(__name__)


@dataclass
class CipvDecision:
    """Outcome of one selection round."""
    winner_index: Optional[int] = None
    winner_track_id: Optional[int] = None
    previous_index: Optional[int] = None
    previous_track_id: Optional[int] = None

    @property
    def has_winner(self) -> bool:
        return self.winner_index is not None

    @property
    def changed(self) -> bool:
        return self.has_winner and self.winner_track_id != self.previous_track_id


class CipvSelector:
    """
    Picks the longitudinally nearest in-lane object.

    Keeps the previous frame's winner, identified by track id since the caller
    may reorder its object list between frames. A frame without any in-lane
    object leaves existing flags untouched, so a one-frame loss of containment
    does not clear the CIPV.
    """

    def __init__(self):
        self.previous_index: Optional[int] = None
        self.previous_track_id: Optional[int] = None

    def select(self, objects: Sequence[TrackedObject], in_lane: Sequence[bool]) -> CipvDecision:
        """
        Select the CIPV among classified objects.

        Args:
            objects: Objects of the current frame
            in_lane: Per-object containment result, parallel to objects

        Returns:
            CipvDecision for this frame
        """
        if len(objects) != len(in_lane):
            raise ValueError(f"Got {len(in_lane)} containment results for {len(objects)} objects")

        cipv_index = None
        for i, (obj, inside) in enumerate(zip(objects, in_lane)):
            if not inside:
                continue
            # Strictly closer only, first encountered wins ties
            if cipv_index is None or obj.center[0] < objects[cipv_index].center[0]:
                cipv_index = i

        decision = CipvDecision(
            winner_index=cipv_index,
            winner_track_id=objects[cipv_index].track_id if cipv_index is not None else None,
            previous_index=self.previous_index,
            previous_track_id=self.previous_track_id,
        )

        if decision.changed:
            logger.debug(f"CIPV changed: track {self.previous_track_id} -> {decision.winner_track_id} "
                         f"(index {cipv_index})")
        elif not decision.has_winner:
            logger.debug("No CIPV")

        self.previous_index = cipv_index
        self.previous_track_id = decision.winner_track_id
        return decision

    @staticmethod
    def apply(objects: Sequence[TrackedObject], decision: CipvDecision):
        """
        Write a decision back to the objects' CIPV flags.

        A winner clears every other flag before setting its own, which is a
        no-op when the winner is unchanged. No winner touches nothing.
        """
        if not decision.has_winner:
            return

        for i, obj in enumerate(objects):
            if i != decision.winner_index and obj.is_cipv:
                obj.is_cipv = False
        objects[decision.winner_index].is_cipv = True

    def reset(self):
        """Forget the previous winner."""
        self.previous_index = None
        self.previous_track_id = None
