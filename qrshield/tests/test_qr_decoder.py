"""Tests for QR capture helpers and the scan pipeline."""

import random

import numpy as np
import pytest

from qrshield.config import settings
from qrshield.pipelines.scan_pipeline import analyze_url, scan_qr_image
from qrshield.schemas.analysis_schemas import RiskLevel
from qrshield.services.qr_decoder import (
    InvalidImageError,
    NoQRCodeFoundError,
    OpenCVDecoder,
    SimulatedDecoder,
    is_image_content_type,
    load_image_bytes,
    pil_to_cv2,
)
from qrshield.utils.logging_config import metrics


class TestImageHelpers:
    """Tests for image loading and conversion."""

    @pytest.mark.parametrize("content_type", ["image/png", "IMAGE/JPEG", "image/gif"])
    def test_image_content_types(self, content_type):
        assert is_image_content_type(content_type) is True

    @pytest.mark.parametrize("content_type", [None, "", "text/plain", "application/pdf"])
    def test_non_image_content_types(self, content_type):
        assert is_image_content_type(content_type) is False

    def test_load_rejects_garbage(self):
        with pytest.raises(InvalidImageError):
            load_image_bytes(b"definitely not an image")

    def test_load_rejects_empty(self):
        with pytest.raises(InvalidImageError):
            load_image_bytes(b"")

    @pytest.mark.parametrize("mode", ["RGB", "RGBA", "L", "1"])
    def test_pil_to_cv2_is_bgr(self, make_blank_png, mode):
        arr = pil_to_cv2(load_image_bytes(make_blank_png(mode)))
        assert isinstance(arr, np.ndarray)
        assert arr.shape == (200, 200, 3)


class TestOpenCVDecoder:
    """Tests for real QR decoding."""

    def test_decodes_qr_code(self, make_qr_png):
        url = "https://bit.ly/3xR4n2Z"
        assert OpenCVDecoder().decode(make_qr_png(url)) == url

    def test_blank_image_has_no_qr(self, make_blank_png):
        with pytest.raises(NoQRCodeFoundError):
            OpenCVDecoder().decode(make_blank_png())


class TestSimulatedDecoder:
    """Tests for the demo decoder."""

    def test_returns_sample_url(self):
        decoder = SimulatedDecoder(rng=random.Random(7))
        for _ in range(10):
            assert decoder.decode() in settings.demo_urls_list

    def test_custom_urls(self):
        decoder = SimulatedDecoder(urls=["https://only.example"])
        assert decoder.decode(b"ignored") == "https://only.example"

    def test_empty_urls_rejected(self):
        with pytest.raises(ValueError):
            SimulatedDecoder(urls=[])


class TestScanPipeline:
    """Tests for the scan and analyze pipelines."""

    def test_scan_rejects_non_image(self):
        with pytest.raises(InvalidImageError):
            scan_qr_image(b"hello", "text/plain")

    def test_scan_rejects_oversized(self, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 10)
        with pytest.raises(InvalidImageError):
            scan_qr_image(b"x" * 11, "image/png")

    def test_scan_with_decoder(self, analyzer):
        decoder = SimulatedDecoder(urls=["http://192.168.1.1/admin.php?id=123456789"])
        payload, result = scan_qr_image(b"img", "image/png", decoder=decoder, analyzer=analyzer)
        assert payload == "http://192.168.1.1/admin.php?id=123456789"
        assert result.risk_level == RiskLevel.DANGEROUS

    def test_capture_failure_never_reaches_analyzer(self, make_blank_png):
        class ExplodingAnalyzer:
            def evaluate(self, url):
                raise AssertionError("analyzer should not run")

        with pytest.raises(NoQRCodeFoundError):
            scan_qr_image(make_blank_png(), "image/png", analyzer=ExplodingAnalyzer())

    def test_analyze_url_tracked_in_metrics(self, analyzer):
        metrics.reset()
        analyze_url("https://google.com", analyzer=analyzer)
        counters = metrics.get_stats()["counters"]
        assert counters["analysis.url.total"] == 1
        assert counters["analysis.url.risk.safe"] == 1

    def test_failed_scan_counted_as_error(self):
        metrics.reset()
        with pytest.raises(InvalidImageError):
            scan_qr_image(b"hello", "text/plain")
        assert metrics.get_stats()["counters"]["analysis.qr.errors"] == 1
