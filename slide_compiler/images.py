"""
Image blocks and the size/position grammar written in image alt text.

``![w:50% x:10% Team photo](team.png)`` sizes the image to half the canvas
width, places it 10% from the left and keeps ``Team photo`` as the alt
label. Values are ``N``, ``Npx`` or ``N%``; width and x percentages are of
the canvas width, height and y of the canvas height.
"""
import logging
import re
from typing import NamedTuple, Optional

from . import diagnostics
from .links import is_remote_url, url_extension
from .models import ImageBlock, ImagePosition, ImageSize
from .options import SlideContext, round_px

logger = logging.getLogger(__name__)

_SIZE_TOKEN_RE = re.compile(r"^([whxy]):(.*)$")
_SIZE_VALUE_RE = re.compile(r"^(\d+(?:\.\d+)?)(px|%)?$")


class ImageAlt(NamedTuple):
    label: Optional[str]
    size: Optional[ImageSize]
    position: Optional[ImagePosition]


def parse_image_alt(alt: str, context: SlideContext) -> ImageAlt:
    """Split the sizing tokens off ``alt``; malformed tokens stay in the label."""
    options = context.options
    bases = {
        "w": options.slide_width,
        "x": options.slide_width,
        "h": options.slide_height,
        "y": options.slide_height,
    }
    values = {}
    words = []
    for word in (alt or "").split():
        match = _SIZE_TOKEN_RE.match(word)
        if not match:
            words.append(word)
            continue
        key, raw = match.groups()
        value = _SIZE_VALUE_RE.match(raw)
        if not value:
            context.warn(diagnostics.IMAGE, f"invalid image size token {word!r}")
            words.append(word)
            continue
        number = float(value.group(1))
        if value.group(2) == "%":
            number = bases[key] * number / 100
        values[key] = round_px(number)

    size = None
    if "w" in values or "h" in values:
        size = ImageSize(width=values.get("w"), height=values.get("h"))
    position = None
    if "x" in values or "y" in values:
        position = ImagePosition(x=values.get("x"), y=values.get("y"))
    return ImageAlt(" ".join(words) or None, size, position)


def compile_image(url: str, alt: str, context: SlideContext) -> ImageBlock:
    """
    Build an image block, falling back to a placeholder for formats the
    renderer cannot draw.
    """
    parsed = parse_image_alt(alt, context)
    remote = is_remote_url(url)
    extension = url_extension(url)

    if extension in context.options.image_extensions or (remote and not extension):
        return ImageBlock(
            url=url,
            alt=parsed.label,
            source="remote" if remote else "local",
            size=parsed.size,
            position=parsed.position,
        )

    context.warn(diagnostics.IMAGE, f"unsupported image format {extension or '(none)'}: {url}")
    filename = re.split(r"[?#]", url, maxsplit=1)[0].rstrip("/").rsplit("/", 1)[-1]
    return ImageBlock(
        url=url,
        alt=parsed.label or filename or url,
        size=parsed.size,
        position=parsed.position,
    )
