from __future__ import annotations

# =========================================
# images.py
# Florista - product photo acquisition
# =========================================
# Two sources produce the same ImageAsset:
#  - camera: any CameraDevice (see opencv_camera.py), or the browser's
#    getUserMedia snapshot posted as a data URI
#  - file: a single uploaded image, kept as-is
# =========================================

import base64
import binascii
import mimetypes
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, Optional, Protocol

from PIL import Image

CAMERA_FACING = "environment"
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720
CAMERA_QUALITY = 0.8

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<payload>.*)$", re.S)


class CameraError(RuntimeError):
    """Camera permission refused, device missing, or no frame available."""


class CameraBusyError(CameraError):
    pass


@dataclass(frozen=True)
class ImageAsset:
    mime_type: str
    data: bytes

    def __bool__(self) -> bool:
        return bool(self.data)

    @property
    def data_uri(self) -> str:
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImageAsset":
        m = _DATA_URI_RE.match((uri or "").strip())
        if not m:
            raise ValueError("Not a base64 data URI")
        try:
            data = base64.b64decode(m.group("payload"), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Bad base64 payload: {e}") from e
        if not data:
            raise ValueError("Empty image data")
        return cls(mime_type=m.group("mime") or "application/octet-stream", data=data)


def decode_upload(file_storage) -> Optional[ImageAsset]:
    """
    Reads a single uploaded file (werkzeug FileStorage or anything with
    .read()/.filename/.mimetype). Returns None when nothing was picked.
    """
    if not file_storage or not getattr(file_storage, "filename", ""):
        return None
    data = file_storage.read()
    if not data:
        return None
    mime = getattr(file_storage, "mimetype", "") or ""
    if not mime or mime == "application/octet-stream":
        mime = mimetypes.guess_type(file_storage.filename)[0] or "application/octet-stream"
    return ImageAsset(mime_type=mime, data=data)


def encode_jpeg(frame: Image.Image, quality: float = CAMERA_QUALITY) -> ImageAsset:
    buf = BytesIO()
    frame.convert("RGB").save(buf, format="JPEG", quality=int(round(quality * 100)))
    return ImageAsset(mime_type="image/jpeg", data=buf.getvalue())


# ---- Camera port ------------------------------------------------------------

class CameraDevice(Protocol):
    def open(self, facing: str, width: int, height: int) -> None: ...

    def read_frame(self) -> Image.Image: ...

    def release(self) -> None: ...


class CaptureSurface:
    """What a caller can do while a camera session is live."""

    def __init__(self, device: CameraDevice):
        self._device = device

    def preview(self) -> Image.Image:
        return self._device.read_frame()

    def snapshot(self, quality: float = CAMERA_QUALITY) -> ImageAsset:
        return encode_jpeg(self._device.read_frame(), quality=quality)


_camera_lock = threading.Lock()


@contextmanager
def camera_session(
    device: CameraDevice,
    facing: str = CAMERA_FACING,
    width: int = CAMERA_WIDTH,
    height: int = CAMERA_HEIGHT,
) -> Iterator[CaptureSurface]:
    if not _camera_lock.acquire(blocking=False):
        raise CameraBusyError("Another camera session is already active")
    try:
        try:
            device.open(facing, width, height)
            yield CaptureSurface(device)
        finally:
            device.release()
    finally:
        _camera_lock.release()


def capture_photo(device: CameraDevice, quality: float = CAMERA_QUALITY) -> ImageAsset:
    with camera_session(device) as surface:
        return surface.snapshot(quality=quality)
