"""
Exception hierarchy for the CIPV stage.

RejectionError subclasses describe input-quality problems with a single object,
lane or sample. They are caught at the per-object seam and only mean "skip".
The remaining CipvError subclasses are contract violations and propagate.
"""


class CipvError(Exception):
    """Base class for all CIPV stage errors."""


class RejectionError(CipvError):
    """Non-fatal rejection of one object, lane or sample for this frame."""


class DegenerateProjection(RejectionError):
    """Homogeneous w component too close to zero for a perspective divide."""


class DegenerateSegment(RejectionError):
    """Line segment with zero length."""


class ObjectTooSmall(RejectionError):
    """All object size dimensions are below the minimal plausible size."""


class ObjectBehindEgo(RejectionError):
    """Closest ground corner of the object lies behind the ego origin."""


class InsufficientLaneData(RejectionError):
    """Ego lane line has fewer than two points."""


class ImplausibleLaneDistance(RejectionError):
    """Lane-to-object distances fail the plausibility gate."""


class DegenerateTransform(RejectionError):
    """Ego-motion transform produced a near-zero homogeneous component."""


class CalibrationError(CipvError):
    """Homography is malformed or not invertible."""


class LaneLineMismatch(CipvError):
    """Image and ground point sets of a lane line differ in length."""


class ImageModeNotSupported(CipvError):
    """Image-coordinate CIPV determination is not implemented."""
