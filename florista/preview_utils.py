from __future__ import annotations

# =========================================
# preview_utils.py
# Florista - social media preview card
# =========================================
# Draws the fixed-layout product card with Pillow and serializes it to PNG.
# Layout is defined at 1x (400 px wide) and multiplied by `scale`.
# =========================================

import re
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont, ImageOps

from florista.pricing import format_money
from florista.workflow import ProductData

CARD_WIDTH = 400
CARD_MIN_HEIGHT = 500
PADDING = 32
PHOTO_HEIGHT = 192
EXPORT_SCALE = 2

WHITE = (255, 255, 255)
CARD_BG = (253, 242, 248)
PRIMARY = (236, 72, 153)
PRIMARY_LIGHT = (249, 168, 212)
PRIMARY_DARK = (131, 24, 67)
TEXT = (17, 24, 39)
TEXT_MUTED = (75, 85, 99)


class PreviewRenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class Branding:
    business_name: str = "Claudia Segura"
    phone: str = "55 4917 1408"


def export_filename(product_name: str) -> str:
    return re.sub(r"\s+", "-", product_name.strip()).lower() + ".png"


def share_filename(product_name: str) -> str:
    return f"{product_name.strip()}.png"


def _font(size: int, bold: bool = False):
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default(size=size)


def _wrap(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> list[str]:
    lines = []
    for para in text.splitlines() or [""]:
        cur = ""
        for w in para.split():
            candidate = (cur + " " + w).strip()
            if not cur or draw.textlength(candidate, font=font) <= max_width:
                cur = candidate
            else:
                lines.append(cur)
                cur = w
        lines.append(cur)
    return lines


def _line_height(font) -> int:
    left, top, right, bottom = font.getbbox("Hg")
    return bottom - top


def _load_photo(product: ProductData, size: tuple[int, int]) -> Image.Image:
    try:
        with Image.open(BytesIO(product.image.data)) as src:
            src = ImageOps.exif_transpose(src)
            return ImageOps.fit(src.convert("RGB"), size, method=Image.Resampling.LANCZOS)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise PreviewRenderError(f"Could not decode product photo: {e}") from e


def render_card(product: ProductData, branding: Branding | None = None,
                scale: int = EXPORT_SCALE) -> Image.Image:
    """Returns an opaque RGB image of the preview card."""
    branding = branding or Branding()

    def px(v: float) -> int:
        return int(round(v * scale))

    title_font = _font(px(24), bold=True)
    body_font = _font(px(16))
    label_font = _font(px(14))
    price_font = _font(px(30), bold=True)
    small_font = _font(px(12))
    small_bold = _font(px(12), bold=True)

    inner_w = CARD_WIDTH - 2 * PADDING
    measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    title_lines = _wrap(measure, product.name, title_font, px(inner_w))
    desc_lines = _wrap(measure, product.description, body_font, px(inner_w))

    title_lh = _line_height(title_font) + px(6)
    body_lh = _line_height(body_font) + px(8)

    content_h = (
        PADDING
        + (len(title_lines) * title_lh) / scale + 10 + 4 + 24
        + PHOTO_HEIGHT + 24
        + (len(desc_lines) * body_lh) / scale + 24
        + 96 + 24
        + 60
        + PADDING
    )
    height = max(CARD_MIN_HEIGHT, int(content_h + 0.5))

    card = Image.new("RGB", (px(CARD_WIDTH), px(height)), WHITE)
    draw = ImageDraw.Draw(card)
    draw.rounded_rectangle([0, 0, px(CARD_WIDTH) - 1, px(height) - 1], radius=px(16), fill=CARD_BG)

    cx = px(CARD_WIDTH) / 2
    y = px(PADDING)

    # ---- Header
    for line in title_lines:
        draw.text((cx, y), line, font=title_font, fill=TEXT, anchor="ma")
        y += title_lh
    y += px(10)
    draw.rounded_rectangle([cx - px(32), y, cx + px(32), y + px(4)], radius=px(2), fill=PRIMARY)
    y += px(4 + 24)

    # ---- Photo
    photo_size = (px(inner_w), px(PHOTO_HEIGHT))
    photo = _load_photo(product, photo_size)
    mask = Image.new("L", photo_size, 0)
    ImageDraw.Draw(mask).rounded_rectangle([0, 0, photo_size[0] - 1, photo_size[1] - 1], radius=px(12), fill=255)
    card.paste(photo, (px(PADDING), int(y)), mask)
    y += px(PHOTO_HEIGHT + 24)

    # ---- Description
    for line in desc_lines:
        draw.text((cx, y), line, font=body_font, fill=TEXT_MUTED, anchor="ma")
        y += body_lh
    y += px(24)

    # ---- Price box
    box_top = y
    draw.rounded_rectangle(
        [px(PADDING), box_top, px(CARD_WIDTH - PADDING), box_top + px(96)],
        radius=px(12), fill=WHITE, outline=PRIMARY_LIGHT, width=px(2),
    )
    draw.text((cx, box_top + px(16)), "Sale price", font=label_font, fill=PRIMARY, anchor="ma")
    draw.text((cx, box_top + px(40)), f"${format_money(product.sale_price)}",
              font=price_font, fill=PRIMARY_DARK, anchor="ma")
    y = box_top + px(96 + 24)

    # ---- Footer (branding)
    draw.rounded_rectangle([cx - px(48), y + px(9), cx - px(16), y + px(11)], radius=px(1), fill=PRIMARY_LIGHT)
    draw.rounded_rectangle([cx + px(16), y + px(9), cx + px(48), y + px(11)], radius=px(1), fill=PRIMARY_LIGHT)
    for dx, dy in ((0, -5), (5, 0), (0, 5), (-5, 0)):
        ox, oy = cx + px(dx), y + px(10 + dy)
        draw.ellipse([ox - px(4), oy - px(4), ox + px(4), oy + px(4)], fill=PRIMARY_LIGHT)
    draw.ellipse([cx - px(3), y + px(7), cx + px(3), y + px(13)], fill=PRIMARY)
    y += px(28)
    draw.text((cx, y), branding.business_name, font=small_bold, fill=TEXT_MUTED, anchor="ma")
    y += px(18)
    draw.text((cx, y), f"Tel. {branding.phone}", font=small_font, fill=TEXT_MUTED, anchor="ma")

    return card


def card_png_bytes(product: ProductData, branding: Branding | None = None,
                   scale: int = EXPORT_SCALE) -> bytes:
    card = render_card(product, branding=branding, scale=scale)
    buf = BytesIO()
    card.save(buf, format="PNG", optimize=True)
    return buf.getvalue()
