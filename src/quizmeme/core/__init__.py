"""Core functionality for quiz image generation.

- **QuizmemeConfig**: Configuration management using Pydantic Settings
- **TemplateRegistry**: Read-only mapping of template names to descriptions
- **compose / encode_png**: Base image loading, text drawing and PNG encoding
- **QuizmemeError** and subclasses: Errors surfaced to API clients

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration, ``QUIZMEME_`` prefix
   - Built explicitly and passed to the application factory

2. **Template Layer** (registry.py):
   - Descriptions file parsing and validation
   - Immutable lookup by template name

3. **Rendering Layer** (compositor.py):
   - Base image decoding through Pillow
   - Text drawing at configured baseline anchors
   - PNG encoding

Usage Example
-------------
    from quizmeme.core import TemplateRegistry, compose, encode_png

    registry = TemplateRegistry.from_file("descriptions.json")
    image = compose(registry.lookup("qvgdm"), "Who?", ["A", "B", "C", "D"])
    png = encode_png(image)
"""

from quizmeme.core.compositor import FontFace, compose, draw_text, encode_png, load_base, load_font
from quizmeme.core.config import QuizmemeConfig
from quizmeme.core.errors import (
    ConfigError,
    FontError,
    ImageError,
    PayloadError,
    QuizmemeError,
    UnknownBaseError,
)
from quizmeme.core.registry import Block, Description, TemplateRegistry, load_descriptions

__all__ = [
    "Block",
    "ConfigError",
    "Description",
    "FontError",
    "FontFace",
    "ImageError",
    "PayloadError",
    "QuizmemeConfig",
    "QuizmemeError",
    "TemplateRegistry",
    "UnknownBaseError",
    "compose",
    "draw_text",
    "encode_png",
    "load_base",
    "load_descriptions",
    "load_font",
]
