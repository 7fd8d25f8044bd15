"""Shared pytest fixtures for Quizmeme tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from quizmeme.api.main import create_app
from quizmeme.core.config import QuizmemeConfig
from quizmeme.core.registry import Block, Description, TemplateRegistry

BASE_SIZE = (320, 160)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep QUIZMEME_* variables from the host out of the tests."""
    for name in ("BIND", "DESCRIPTIONS_PATH", "DEFAULT_BASE", "FONT_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(f"QUIZMEME_{name}", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def base_image(temp_dir: Path) -> Path:
    """A solid black PNG base image.

    Returns:
        Path to the image file
    """
    path = temp_dir / "base.png"
    Image.new("RGB", BASE_SIZE, (0, 0, 0)).save(path, format="PNG")
    return path


@pytest.fixture
def jpeg_base_image(temp_dir: Path) -> Path:
    """A solid black JPEG base image."""
    path = temp_dir / "base.jpg"
    Image.new("RGB", BASE_SIZE, (0, 0, 0)).save(path, format="JPEG")
    return path


@pytest.fixture
def description(base_image: Path) -> Description:
    """A template with one question block and two answer blocks.

    The three blocks sit on separate horizontal bands so each one can be
    inspected on its own:

    - question: baseline y=40
    - answer 0: baseline y=90
    - answer 1: baseline y=140
    """
    return Description(
        base=str(base_image),
        question=Block(size=20, x=10, y=40),
        answers=(Block(size=20, x=10, y=90), Block(size=20, x=10, y=140)),
    )


@pytest.fixture
def descriptions_file(temp_dir: Path, description: Description) -> Path:
    """A descriptions file registering the ``t1`` template and a broken one.

    ``missing`` points at a base image that does not exist.
    """
    path = temp_dir / "descriptions.json"
    payload = {
        "t1": description.model_dump(mode="json"),
        "missing": {
            "base": str(temp_dir / "does-not-exist.png"),
            "question": {"size": 20, "x": 10, "y": 40},
            "answers": [],
        },
    }
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture
def registry(descriptions_file: Path) -> TemplateRegistry:
    """Registry loaded from :func:`descriptions_file`."""
    return TemplateRegistry.from_file(descriptions_file)


@pytest.fixture
def test_config(descriptions_file: Path) -> QuizmemeConfig:
    """Create a test configuration pointing at the temporary descriptions.

    Returns:
        QuizmemeConfig instance for testing
    """
    return QuizmemeConfig(
        _env_file=None,
        descriptions_path=descriptions_file,
        default_base="qvgdm",
    )


@pytest.fixture
def test_client(test_config: QuizmemeConfig) -> Generator[TestClient, None, None]:
    """TestClient around a freshly built application."""
    app = create_app(test_config)
    with TestClient(app) as client:
        yield client
