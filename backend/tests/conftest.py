"""
Shared pytest fixtures and configuration for all tests
"""
import base64
import pytest
import sys
from dataclasses import replace
from io import BytesIO
from pathlib import Path

from PIL import Image

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from config.settings import HandlerConfig, Settings  # noqa: E402
from core.errors import LoggingError  # noqa: E402
from core.metrics import UsageMetrics  # noqa: E402


def make_handler_config(**overrides):
    """Handler configuration built from the default Settings, with overrides"""
    return replace(HandlerConfig.from_settings(Settings()), **overrides)


def make_image_bytes(width=512, height=512, color=(120, 160, 200), fmt="PNG", mode="RGB"):
    img = Image.new(mode, (width, height), color)
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def to_data_url(img_bytes, mime="image/png"):
    return f"data:{mime};base64,{base64.b64encode(img_bytes).decode('ascii')}"


def make_data_url(width=512, height=512, color=(120, 160, 200), fmt="PNG", mode="RGB"):
    mime = "image/jpeg" if fmt == "JPEG" else "image/png"
    return to_data_url(make_image_bytes(width, height, color, fmt, mode), mime)


def make_mask_data_url(width=512, height=512):
    """Black mask with a white square in the middle"""
    img = Image.new("RGB", (width, height), (0, 0, 0))
    img.paste((255, 255, 255), (width // 4, height // 4, 3 * width // 4, 3 * height // 4))
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return to_data_url(buffer.getvalue())


GENERATED_IMAGE = base64.b64encode(make_image_bytes(512, 512, (10, 20, 30))).decode("ascii")


class FakeGenerationBackend:
    """In-memory stand-in for the hosted generation model"""

    def __init__(self, images=None, error=None):
        self.images = images if images is not None else [GENERATED_IMAGE, GENERATED_IMAGE]
        self.error = error
        self.calls = []

    async def generate(self, image, mask, prompt, params):
        self.calls.append({"image": image, "mask": mask, "prompt": prompt, "params": params})
        if self.error is not None:
            raise self.error
        return list(self.images)


class FakeUsageSink:
    """Append-only in-memory usage log"""

    def __init__(self, fail=False):
        self.fail = fail
        self.records = []

    async def append(self, record):
        if self.fail:
            raise LoggingError(message="usage table unreachable")
        self.records.append(record)


@pytest.fixture
def handler_config():
    """Handler configuration matching the production defaults"""
    return make_handler_config()


@pytest.fixture
def fake_backend():
    return FakeGenerationBackend()


@pytest.fixture
def fake_sink():
    return FakeUsageSink()


@pytest.fixture
def metrics():
    return UsageMetrics()


@pytest.fixture
def image_edit_handler(handler_config, fake_backend, fake_sink, metrics):
    """Provide an ImageEditHandler wired to in-memory fakes"""
    from services.image_edit_service import ImageEditHandler
    return ImageEditHandler(handler_config, fake_backend, fake_sink, metrics)


@pytest.fixture
def sample_request_body():
    """Provide a valid POST /generate body"""
    return {
        "prompt": {"text": "a mountain landscape", "mode": "OUTPAINTING"},
        "base_image": make_data_url(),
        "mask": make_mask_data_url(),
        "model": "titan",
    }
