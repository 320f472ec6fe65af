"""
Product barcode labels rendered locally with python-barcode and Pillow.
"""
import io
import base64
import logging
from typing import Optional

from PIL import Image, ImageDraw, ImageFont
import barcode
from barcode.writer import ImageWriter

logger = logging.getLogger('backoffice.catalog')


def _load_fonts():
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 14),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', 12),
        )
    except (OSError, IOError):
        return ImageFont.load_default(), ImageFont.load_default()


def _draw_centered(draw, y, text, font, width):
    bbox = draw.textbbox((0, 0), text, font=font)
    draw.text(((width - (bbox[2] - bbox[0])) // 2, y), text, fill='black', font=font)


def generate_label_image(
    product_name: str,
    upc: str,
    price_line: Optional[str] = None,
    width: int = 400,  # 4 inches at 100 DPI
    height: int = 200,  # 2 inches at 100 DPI
) -> str:
    """
    Render an EAN-13 label for a product.

    Args:
        product_name: Printed above the bars (truncated to 30 characters)
        upc: 13-digit EAN; python-barcode recomputes the check digit from the first 12
        price_line: Optional text under the digits, e.g. "1 kg - Rs 650.00"

    Returns:
        Base64-encoded PNG image as data URL string
    """
    if len(product_name) > 30:
        product_name = product_name[:30] + '...'

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_medium, font_small = _load_fonts()

    margin = 10
    top_y = 8
    barcode_y = top_y + 18
    bottom_reserved = 40 if price_line else 24

    _draw_centered(draw, top_y, product_name, font_medium, width)

    ean13 = barcode.get_barcode_class('ean13')
    barcode_img = ean13(upc[:12], writer=ImageWriter()).render({
        'write_text': False,
        'module_width': 0.3,
        'module_height': 20.0,
        'quiet_zone': 2.0,
        'background': 'white',
        'foreground': 'black',
    })

    # Fit barcode to the label width, then clamp to the remaining height
    barcode_img_width, barcode_img_height = barcode_img.size
    available_height = height - barcode_y - bottom_reserved
    barcode_width = width - (2 * margin)
    scale_factor = barcode_width / barcode_img_width
    scaled_height = int(barcode_img_height * scale_factor)
    if scaled_height > available_height:
        scale_factor = available_height / barcode_img_height
        scaled_height = available_height
        barcode_width = int(barcode_img_width * scale_factor)

    barcode_img = barcode_img.resize((barcode_width, scaled_height), Image.Resampling.BILINEAR)
    img.paste(barcode_img, ((width - barcode_width) // 2, barcode_y))

    text_y = barcode_y + scaled_height + 5
    _draw_centered(draw, text_y, upc, font_small, width)
    if price_line:
        _draw_centered(draw, text_y + 16, price_line, font_medium, width)

    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    image_base64 = base64.b64encode(buffer.getvalue()).decode('utf-8')
    buffer.close()
    img.close()
    logger.debug(f"Rendered label for UPC {upc}")

    return f'data:image/png;base64,{image_base64}'
