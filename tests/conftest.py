"""
Pytest configuration and fixtures for florista tests
"""

import base64
from io import BytesIO

import pytest
from PIL import Image

from florista.app import _RECORDS, app as flask_app
from florista.images import CameraError, ImageAsset
from florista.workflow import FlowerData, ProductData


def _png(size=(64, 48), color=(220, 40, 120)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeCamera:
    """CameraDevice test double that records every call"""

    def __init__(self, index=0, fail_on=None):
        self.index = index
        self.fail_on = fail_on
        self.calls = []
        self.is_open = False

    def open(self, facing, width, height):
        self.calls.append(("open", facing, width, height))
        if self.fail_on == "open":
            raise CameraError("Permission denied")
        self.is_open = True

    def read_frame(self):
        self.calls.append(("read_frame",))
        if self.fail_on == "read":
            raise CameraError("No frame")
        return Image.new("RGB", (1280, 720), (10, 200, 30))

    def release(self):
        self.calls.append(("release",))
        self.is_open = False

    @property
    def released(self):
        return ("release",) in self.calls


@pytest.fixture
def png_bytes() -> bytes:
    return _png()


@pytest.fixture
def png_asset(png_bytes) -> ImageAsset:
    return ImageAsset(mime_type="image/png", data=png_bytes)


@pytest.fixture
def png_data_uri(png_bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def fake_camera():
    return FakeCamera


@pytest.fixture
def rose() -> FlowerData:
    return FlowerData(name="Red rose", price_per_dozen=12.0)


@pytest.fixture
def bouquet(png_asset) -> ProductData:
    return ProductData(
        name="Red Rose Bouquet",
        image=png_asset,
        description="Twelve red roses wrapped in kraft paper.",
        sale_price=50.0,
        flower_quantity=12,
    )


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    _RECORDS.clear()
    yield flask_app
    _RECORDS.clear()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
