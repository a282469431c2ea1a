import io
from datetime import datetime, timezone

import cv2
import pytest
from PIL import Image
from fastapi.testclient import TestClient

from qrshield.api.server import app
from qrshield.services.lists_service import ReferenceLists
from qrshield.services.url_analyzer import UrlAnalyzer


@pytest.fixture
def client():
    """FastAPI test client fixture."""
    return TestClient(app)


@pytest.fixture
def lists():
    """A trimmed-down copy of the default reference lists."""
    return ReferenceLists(
        trusted_domains=("google.com", "apple.com", "microsoft.com", "amazon.com", "github.com"),
        shorteners=("bit.ly", "tinyurl.com", "t.co", "cutt.ly"),
        brand_tokens=("paypa1", "amaz0n", "g00gle", "apple-id"),
        keyword_patterns=("login", "signin", "verify", "account", "password"),
    )


@pytest.fixture
def fixed_time():
    """A fixed evaluation timestamp."""
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def analyzer(lists, fixed_time):
    """Analyzer with fixture lists and a frozen clock."""
    return UrlAnalyzer(lists=lists, clock=lambda: fixed_time)


@pytest.fixture
def sample_phishing_url():
    """Sample phishing URL for testing."""
    return "https://amaz0n.phishing-site.com/login?account=verify"


@pytest.fixture
def sample_safe_url():
    """Sample safe URL for testing."""
    return "https://google.com"


@pytest.fixture
def sample_ip_url():
    """Sample URL pointing at a raw IP address."""
    return "http://192.168.1.1/admin.php?id=123456789"


@pytest.fixture
def make_qr_png():
    """Factory rendering a QR code PNG, upscaled and padded so it decodes reliably."""
    def _make(text: str) -> bytes:
        code = cv2.QRCodeEncoder.create().encode(text)
        code = cv2.copyMakeBorder(code, 4, 4, 4, 4, cv2.BORDER_CONSTANT, value=255)
        code = cv2.resize(code, None, fx=10, fy=10, interpolation=cv2.INTER_NEAREST)
        ok, buf = cv2.imencode(".png", code)
        assert ok
        return buf.tobytes()
    return _make


@pytest.fixture
def make_blank_png():
    """Factory for a plain white PNG with no QR code in it."""
    def _make(mode: str = "RGB") -> bytes:
        out = io.BytesIO()
        Image.new(mode, (200, 200), "white").save(out, format="PNG")
        return out.getvalue()
    return _make
