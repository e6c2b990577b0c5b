from __future__ import annotations

# Host camera adapter (kiosk / desktop use) for images.camera_session()

import cv2
from PIL import Image

from florista.images import CameraError


class OpenCVCamera:
    """
    CameraDevice backed by cv2.VideoCapture.
    OpenCV has no notion of front/rear; the device index picks the camera.
    """

    def __init__(self, index: int = 0):
        self.index = index
        self._cap = None

    def open(self, facing: str, width: int, height: int) -> None:
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Camera {self.index} is not available")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self._cap = cap

    def read_frame(self) -> Image.Image:
        if self._cap is None:
            raise CameraError("Camera is not open")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise CameraError("Camera returned no frame")
        return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
