"""
Tests for the OpenCV camera adapter (VideoCapture is replaced)
"""

import numpy as np
import pytest

from florista import opencv_camera
from florista.images import CameraError, capture_photo
from florista.opencv_camera import OpenCVCamera


class FakeCapture:
    instances = []

    def __init__(self, index, opened=True, frame_ok=True):
        self.index = index
        self.opened = opened
        self.frame_ok = frame_ok
        self.props = {}
        self.released = False
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        if not self.frame_ok:
            return False, None
        return True, np.zeros((720, 1280, 3), dtype=np.uint8)

    def release(self):
        self.released = True


@pytest.fixture
def capture_factory(monkeypatch):
    FakeCapture.instances = []

    def install(**kwargs):
        monkeypatch.setattr(opencv_camera.cv2, "VideoCapture", lambda index: FakeCapture(index, **kwargs))
        return FakeCapture.instances

    return install


class TestOpenCVCamera:
    """Test OpenCVCamera"""

    def test_capture_photo(self, capture_factory):
        instances = capture_factory()

        asset = capture_photo(OpenCVCamera(index=2))

        cap = instances[0]
        assert cap.index == 2
        assert cap.props[opencv_camera.cv2.CAP_PROP_FRAME_WIDTH] == 1280
        assert cap.props[opencv_camera.cv2.CAP_PROP_FRAME_HEIGHT] == 720
        assert cap.released
        assert asset.mime_type == "image/jpeg"

    def test_unavailable_device(self, capture_factory):
        instances = capture_factory(opened=False)

        with pytest.raises(CameraError, match="not available"):
            capture_photo(OpenCVCamera())
        assert instances[0].released

    def test_no_frame(self, capture_factory):
        instances = capture_factory(frame_ok=False)

        with pytest.raises(CameraError, match="no frame"):
            capture_photo(OpenCVCamera())
        assert instances[0].released

    def test_read_before_open(self):
        with pytest.raises(CameraError):
            OpenCVCamera().read_frame()

    def test_release_is_idempotent(self):
        cam = OpenCVCamera()
        cam.release()
        cam.release()
