"""
Image reception and preprocessing for schematic segmentation.
"""
import os
from typing import Optional

import cv2
import numpy as np

from ..core.config import PreprocessingConfig
from ..core.logging import StructuredLogger
from ..vision.backend import VisionBackend


class ImageReceiver:
    """
    Loads the schematic image to be segmented.
    """

    def __init__(self, backend: VisionBackend):
        self.backend = backend
        self.logger = StructuredLogger(__name__)

    def receive_image(self, file_path: str) -> Optional[np.ndarray]:
        """
        Load a color image from disk.

        Args:
            file_path: Path to the image file

        Returns:
            BGR image, or None when the file is missing or unreadable
        """
        if not os.path.exists(file_path):
            self.logger.warning(f"Image file not found: {file_path}", file_path=file_path)
            return None

        image = self.backend.read_image(file_path)
        if image is None or image.size == 0:
            self.logger.warning(f"Image cannot be opened/read: {file_path}", file_path=file_path)
            return None

        self.logger.info("Image received", file_path=file_path,
                         width=image.shape[1], height=image.shape[0])
        return image


class ImagePreprocessor:
    """
    Filtering pipeline that turns a schematic photo or scan into a thin,
    binary line drawing (white ink on black background).
    """

    def __init__(self, config: Optional[PreprocessingConfig] = None):
        """
        Initialize image preprocessor.

        Args:
            config: Preprocessing settings (defaults when omitted)
        """
        self.config = config or PreprocessingConfig()
        self.logger = StructuredLogger(__name__)

    def resize_image(self, image: np.ndarray) -> np.ndarray:
        """
        Scale the image down so its largest dimension equals the maximum.

        The aspect ratio is preserved and images already within the limit
        are returned unchanged.
        """
        if not self.config.resize_enabled:
            return image

        height, width = image.shape[:2]
        max_dim = self.config.max_dimension

        scale = 1.0
        if width >= height and width > max_dim:
            scale = max_dim / float(width)
        elif height >= width and height > max_dim:
            scale = max_dim / float(height)

        if scale == 1.0:
            return image

        resized = cv2.resize(image, None, fx=scale, fy=scale, interpolation=cv2.INTER_LINEAR)
        self.logger.info("Image resized", scale=scale,
                         width=resized.shape[1], height=resized.shape[0])
        return resized

    def preprocess_image(self, image: np.ndarray) -> np.ndarray:
        """
        Apply the full preprocessing chain.

        The input is expected to be already resized (see ``resize_image``)
        so the binary output lines up pixel for pixel with it.

        Args:
            image: BGR or grayscale image

        Returns:
            Single-channel binary image
        """
        processed = self._convert_to_grayscale(image)
        processed = self._blur(processed)
        processed = self._threshold(processed)
        processed = self._dilate(processed)
        if self.config.thinning_enabled:
            processed = self._thin(processed)

        self.logger.debug("Image preprocessing completed")
        return processed

    def _convert_to_grayscale(self, image: np.ndarray) -> np.ndarray:
        """Convert image to grayscale."""
        if len(image.shape) == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image.copy()

    def _blur(self, image: np.ndarray) -> np.ndarray:
        size = self.config.blur_kernel_size
        return cv2.GaussianBlur(image, (size, size), 0)

    def _threshold(self, image: np.ndarray) -> np.ndarray:
        """
        Adaptive threshold, inverted so the ink becomes foreground.

        Local thresholds cope with uneven illumination of photographed
        drawings better than a global one.
        """
        return cv2.adaptiveThreshold(
            image,
            self.config.threshold_max_value,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY_INV,
            self.config.threshold_block_size,
            self.config.threshold_constant
        )

    def _dilate(self, image: np.ndarray) -> np.ndarray:
        """Join broken strokes."""
        size = self.config.dilate_kernel_size
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (size, size))
        return cv2.morphologyEx(
            image, cv2.MORPH_DILATE, kernel, iterations=self.config.dilate_iterations
        )

    def _thin(self, image: np.ndarray) -> np.ndarray:
        """Reduce every stroke to a one pixel wide skeleton (Zhang-Suen)."""
        return cv2.ximgproc.thinning(image, thinningType=cv2.ximgproc.THINNING_ZHANGSUEN)
