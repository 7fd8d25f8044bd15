"""Template registry for the Quizmeme service.

A template is a base image plus the positions at which the question and the
answers are drawn.  Templates are declared in a JSON descriptions file::

    {
        "qvgdm": {
            "base": "assets/qvgdm.png",
            "question": {"size": 32, "x": 120, "y": 540},
            "answers": [
                {"size": 24, "x": 140, "y": 620},
                {"size": 24, "x": 560, "y": 620}
            ]
        }
    }

The file is read once when the application is built.  The resulting
:class:`TemplateRegistry` is read-only, so concurrent requests share it
without locking.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from quizmeme.core.errors import ConfigError, UnknownBaseError

logger = logging.getLogger(__name__)


class Block(BaseModel):
    """Placement of a single line of text.

    Attributes:
        size: Font size in points.
        x: Horizontal position of the left end of the baseline, in pixels.
        y: Vertical position of the baseline, in pixels.
    """

    model_config = ConfigDict(frozen=True)

    size: float = Field(..., gt=0, description="Font size in points.")
    x: int = Field(..., description="Baseline anchor x, in base image pixels.")
    y: int = Field(..., description="Baseline anchor y, in base image pixels.")


class Description(BaseModel):
    """A template: base image and text blocks.

    Attributes:
        base: Path of the base image.  Relative paths resolve against the
            working directory of the process.
        question: Where the question is drawn.
        answers: Where each answer is drawn, in order.  Input answers are
            paired with these blocks by position.
    """

    model_config = ConfigDict(frozen=True)

    base: str = Field(..., description="Path of the base image file.")
    question: Block
    answers: tuple[Block, ...] = Field(default=())


_DESCRIPTIONS = TypeAdapter(dict[str, Description])


def load_descriptions(path: Path | str) -> dict[str, Description]:
    """Read and validate a descriptions file.

    Args:
        path: Location of the JSON descriptions file.

    Returns:
        Mapping of template name to :class:`Description`.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, or does
            not have the expected structure.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"reading descriptions file: {exc}") from exc

    try:
        data = json.loads(raw)
        return _DESCRIPTIONS.validate_python(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"parsing descriptions file: {exc}") from exc


class TemplateRegistry(Mapping[str, Description]):
    """Read-only mapping of template names to descriptions."""

    def __init__(self, descriptions: Mapping[str, Description]):
        self._descriptions = MappingProxyType(dict(descriptions))

    @classmethod
    def from_file(cls, path: Path | str) -> TemplateRegistry:
        """Build a registry from a descriptions file.

        Raises:
            ConfigError: See :func:`load_descriptions`.
        """
        registry = cls(load_descriptions(path))
        logger.info(f"Loaded {len(registry)} template(s) from {path}")
        return registry

    def lookup(self, name: str) -> Description:
        """Return the description registered under *name*.

        Raises:
            UnknownBaseError: If no template has that name.
        """
        try:
            return self._descriptions[name]
        except KeyError:
            raise UnknownBaseError(name) from None

    def names(self) -> list[str]:
        """Registered template names, sorted."""
        return sorted(self._descriptions)

    def __getitem__(self, name: str) -> Description:
        return self._descriptions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptions)

    def __len__(self) -> int:
        return len(self._descriptions)
