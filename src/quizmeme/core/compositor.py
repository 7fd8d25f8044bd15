"""Image composition for the Quizmeme service.

The compositor turns a :class:`~quizmeme.core.registry.Description` and the
request text into a finished image:

1. :func:`load_base` opens and decodes the template's base image into a
   fresh RGBA image of the same size.
2. :func:`load_font` loads the font face used for every block.
3. :func:`draw_text` draws the question, then each answer, in white with the
   left end of the baseline at the block's ``(x, y)``.

Answers are paired with answer blocks by position.  Extra answers are
dropped; blocks with no matching answer stay untouched.

Every request builds its own image and font, so nothing here is shared
between threads.

Usage
-----
::

    from quizmeme.core.compositor import compose, encode_png

    image = compose(description, "Who?", ["A", "B", "C", "D"])
    png = encode_png(image)
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from quizmeme.core.errors import FontError, ImageError
from quizmeme.core.registry import Block, Description

logger = logging.getLogger(__name__)

TEXT_COLOR = (255, 255, 255, 255)

# Left end of the baseline, the same origin a pen "dot" uses.
TEXT_ANCHOR = "ls"

# Size used to check that a font can be rasterized at all.
_PROBE_SIZE = 12

# Text is always drawn on one line; line breaks become spaces.
_LINE_BREAKS = str.maketrans({"\r": " ", "\n": " "})


class FontFace:
    """A single font face that can be rasterized at any size.

    Args:
        data: Raw TrueType/OpenType bytes.  ``None`` selects the font
            embedded in Pillow.
        name: Human-readable name for logs.
    """

    def __init__(self, data: bytes | None = None, name: str = "pillow-default"):
        self._data = data
        self.name = name

    def sized(self, size: float) -> ImageFont.FreeTypeFont:
        """Return this face at *size* points."""
        if self._data is None:
            return ImageFont.load_default(size=size)
        return ImageFont.truetype(io.BytesIO(self._data), size=size)


def load_base(path: Path | str) -> Image.Image:
    """Open and decode a base image as a mutable RGBA image.

    The file handle is closed on every exit path, including decode failures.

    Args:
        path: Location of the base image.  PNG, JPEG and any other format
            Pillow can identify from the file content are accepted.

    Returns:
        A new RGBA image with the same dimensions as the source.

    Raises:
        ImageError: If the file cannot be opened or decoded.
    """
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise ImageError(f"opening base image: {exc}") from exc

    with handle:
        try:
            with Image.open(handle) as src:
                return src.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageError(f"decoding base image: {exc}") from exc


def load_font(path: Path | str | None = None) -> FontFace:
    """Load the font face used to draw text.

    Args:
        path: Font file to use.  ``None`` uses the font embedded in Pillow,
            which requires Pillow to be built with FreeType.

    Returns:
        A validated :class:`FontFace`.

    Raises:
        FontError: If the font cannot be read or rasterized.
    """
    if path is None:
        face = FontFace()
        if not isinstance(face.sized(_PROBE_SIZE), ImageFont.FreeTypeFont):
            raise FontError("loading font: Pillow was built without FreeType support")
        return face

    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise FontError(f"loading font: {exc}") from exc

    face = FontFace(data, name=Path(path).name)
    try:
        face.sized(_PROBE_SIZE)
    except OSError as exc:
        raise FontError(f"loading font: {exc}") from exc
    return face


def draw_text(image: Image.Image, font: FontFace, text: str, block: Block) -> None:
    """Draw a single line of text onto *image* in place.

    The text is drawn in white at ``block.size`` points, left to right, with
    the left end of its baseline at ``(block.x, block.y)``.  Text running
    past the image edge is silently cut off.  Line breaks are drawn as
    spaces.
    """
    if not text:
        return
    text = text.translate(_LINE_BREAKS)
    draw = ImageDraw.Draw(image)
    draw.text(
        (block.x, block.y),
        text,
        fill=TEXT_COLOR,
        font=font.sized(block.size),
        anchor=TEXT_ANCHOR,
    )


def compose(
    desc: Description,
    question: str,
    answers: Sequence[str],
    *,
    font_path: Path | str | None = None,
) -> Image.Image:
    """Render the final image for a template.

    Args:
        desc: The resolved template.
        question: Text drawn in the question block.
        answers: Texts drawn in the answer blocks, paired by position.
        font_path: Optional font file, see :func:`load_font`.

    Returns:
        The composed RGBA image.

    Raises:
        ImageError: If the base image cannot be loaded.
        FontError: If the font cannot be loaded.
    """
    image = load_base(desc.base)
    font = load_font(font_path)

    draw_text(image, font, question, desc.question)

    drawn = min(len(answers), len(desc.answers))
    for text, block in zip(answers[:drawn], desc.answers[:drawn]):
        draw_text(image, font, text, block)

    if len(answers) > drawn:
        logger.debug(f"Dropped {len(answers) - drawn} answer(s) with no block")
    return image


def encode_png(image: Image.Image) -> bytes:
    """Encode *image* as PNG bytes."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
