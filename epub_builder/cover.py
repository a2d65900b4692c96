from PIL import Image, ImageDraw, ImageFont
from attrs import define, asdict
from io import BytesIO
import textwrap
import requests
import logging

logger = logging.getLogger(__name__)

FALLBACK_FONTS = ("Helvetica", "FreeSans", "DejaVuSans", "Arial")
OUTLINE_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


@define
class CoverOptions:
    fontname: str = None
    fontsize: int = None
    width: int = None
    height: int = None
    wrapat: int = None
    bgcolor: tuple = None
    textcolor: tuple = None
    cover_url: str = None

    @classmethod
    def from_options(cls, options=None):
        valid = cls.__attrs_attrs__
        options = options or {}
        return cls(**{a.name: options[a.name] for a in valid if a.name in options})

    def drawing_options(self):
        """The options make_cover understands, minus anything left unset."""
        return asdict(self, filter=lambda a, v: v is not None and a.name != 'cover_url')


def make_cover(title, author, width=600, height=800, fontname="Helvetica", fontsize=40,
               bgcolor=(120, 20, 20), textcolor=(255, 255, 255), wrapat=30):
    """Draw a plain PNG cover: the title an eighth of the way down, the author under it."""
    img = Image.new("RGBA", (width, height), tuple(bgcolor))
    draw = ImageDraw.Draw(img)

    top = height // 8
    blocks = ((title, fontsize), (author, fontsize - 2))
    for text, size in blocks:
        text = textwrap.fill(text, wrapat)
        font = _load_font(fontname, size)
        block_width, block_height = _block_size(draw, text, font)
        _draw_outlined(draw, ((width - block_width) / 2, top), text, tuple(textcolor), font)
        top += block_height + 70

    output = BytesIO()
    img.save(output, "PNG")
    output.name = 'cover.png'
    output.seek(0)
    return output


def make_cover_from_url(url, title, author, session=None):
    """Download a cover as PNG, or draw one if that doesn't work out."""
    try:
        logger.info("Downloading cover from " + url)
        response = (session or requests.Session()).get(url)
        response.raise_for_status()
        cover = BytesIO(response.content)

        imgformat = Image.open(cover).format
        # The `Image.open` read a few bytes from the stream to work out the
        # format, so reset it:
        cover.seek(0)

        if imgformat != "PNG":
            cover = _convert_to_png(cover)
    except (requests.RequestException, OSError) as e:
        logger.info("Encountered an error downloading cover: " + str(e))
        cover = make_cover(title, author)

    return cover


def _convert_to_png(image_bytestream):
    png_image = BytesIO()
    Image.open(image_bytestream).save(png_image, format="PNG")
    png_image.seek(0)
    return png_image


def _load_font(preferred, size):
    for name in (preferred, *FALLBACK_FONTS):
        try:
            return ImageFont.truetype(font=name, size=size)
        except OSError:
            continue
    logger.debug("No truetype font found, drawing the cover with the default bitmap font")
    return ImageFont.load_default()


def _block_size(draw, text, font):
    left, top, right, bottom = draw.multiline_textbbox((0, 0), text, font=font)
    return right - left, bottom - top


def _draw_outlined(draw, xy, text, fill, font):
    x, y = xy
    for dx, dy in OUTLINE_OFFSETS:
        draw.multiline_text((x + dx, y + dy), text, fill=(0, 0, 0), font=font)
    draw.multiline_text(xy, text, fill=fill, font=font)
