"""
Tests for the preview card renderer and cost sheet
"""

from dataclasses import replace
from io import BytesIO

import pytest
from PIL import Image

from florista.images import ImageAsset
from florista.pdf_utils import build_cost_sheet_pdf_bytes, cost_sheet_rows
from florista.preview_utils import (
    CARD_MIN_HEIGHT,
    CARD_WIDTH,
    Branding,
    PreviewRenderError,
    card_png_bytes,
    export_filename,
    render_card,
    share_filename,
)


class TestFilenames:
    """Test download / share names"""

    def test_export_filename_is_slugified(self):
        assert export_filename("Red Rose  Bouquet") == "red-rose-bouquet.png"

    def test_share_filename_keeps_name(self):
        assert share_filename(" Red Rose Bouquet ") == "Red Rose Bouquet.png"


class TestRenderCard:
    """Test render_card"""

    def test_double_scale_and_white_background(self, bouquet):
        card = render_card(bouquet)

        assert card.mode == "RGB"
        assert card.width == CARD_WIDTH * 2
        assert card.height >= CARD_MIN_HEIGHT * 2
        assert card.getpixel((0, 0)) == (255, 255, 255)

    def test_scale_one(self, bouquet):
        card = render_card(bouquet, scale=1)
        assert card.size[0] == CARD_WIDTH

    def test_long_description_grows_card(self, bouquet):
        short = render_card(bouquet, scale=1)
        long = render_card(replace(bouquet, description="Fresh roses and eucalyptus. " * 40), scale=1)

        assert long.height > short.height

    def test_undecodable_photo(self, bouquet):
        broken = replace(bouquet, image=ImageAsset(mime_type="image/png", data=b"not an image"))

        with pytest.raises(PreviewRenderError):
            render_card(broken)

    def test_custom_branding(self, bouquet):
        card = render_card(bouquet, branding=Branding(business_name="Flores Luna", phone="555 0100"))
        assert card.width == CARD_WIDTH * 2

    def test_png_bytes(self, bouquet):
        png = card_png_bytes(bouquet)

        assert png.startswith(b"\x89PNG")
        assert Image.open(BytesIO(png)).size[0] == CARD_WIDTH * 2


class TestCostSheet:
    """Test the PDF cost sheet"""

    def test_rows(self, rose, bouquet):
        rows = dict(cost_sheet_rows(rose, bouquet))

        assert rows["Unit price"] == "$1.00"
        assert rows["Flowers used"] == "12"
        assert rows["Total flower cost"] == "$12.00"
        assert rows["Profit"] == "$38.00"
        assert rows["Margin"] == "76.0%"

    def test_pdf_bytes(self, rose, bouquet):
        pdf = build_cost_sheet_pdf_bytes(rose, bouquet)
        assert pdf.startswith(b"%PDF")
