"""
Bidirectional image <-> ground plane mapping through a calibrated homography.
"""

import logging
import numpy as np
from typing import Tuple

from cipv.perception.errors import CalibrationError
from cipv.perception.geometry_utils import apply_homography

logger = logging.getLogger(__name__)


class CoordinateMapper:
    """
    Maps points between camera image pixels and the ego ground plane.

    Holds the image-to-ground homography and its inverse. Both are unset until
    the first set_homography() and are replaced together by it.
    """

    def __init__(self, homography_im2car: np.ndarray = None):
        self.homography_im2car = None
        self.homography_car2im = None
        if homography_im2car is not None:
            self.set_homography(homography_im2car)

    def set_homography(self, homography_im2car: np.ndarray):
        """
        Install a new image-to-ground homography.

        Args:
            homography_im2car: (3, 3) image-to-ground projective transform

        Raises:
            CalibrationError: If the matrix is not 3x3 or not invertible
        """
        homography = np.asarray(homography_im2car, dtype=np.float64)
        if homography.shape != (3, 3):
            raise CalibrationError(f"Homography must be 3x3, got {homography.shape}")
        if np.linalg.matrix_rank(homography) < 3:
            raise CalibrationError("Homography is singular")
        try:
            inverse = np.linalg.inv(homography)
        except np.linalg.LinAlgError as e:
            raise CalibrationError(f"Homography is not invertible: {e}") from e

        self.homography_im2car, self.homography_car2im = homography, inverse
        logger.debug(f"Homography installed (det={np.linalg.det(homography):.3e})")

    @property
    def calibrated(self) -> bool:
        return self.homography_im2car is not None

    def _require_calibration(self):
        if not self.calibrated:
            raise CalibrationError("No homography installed")

    def image_to_ground(self, image_x: float, image_y: float) -> Tuple[float, float]:
        """Project an image pixel onto the ground plane."""
        self._require_calibration()
        return apply_homography(self.homography_im2car, image_x, image_y)

    def ground_to_image(self, ground_x: float, ground_y: float) -> Tuple[float, float]:
        """Project a ground point into the image."""
        self._require_calibration()
        return apply_homography(self.homography_car2im, ground_x, ground_y)
