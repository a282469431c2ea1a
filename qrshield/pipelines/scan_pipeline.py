from typing import Optional, Tuple

from qrshield.config import settings
from qrshield.schemas.analysis_schemas import AnalysisResult
from qrshield.services.qr_decoder import (
    InvalidImageError,
    OpenCVDecoder,
    is_image_content_type,
)
from qrshield.services.url_analyzer import UrlAnalyzer, default_analyzer
from qrshield.utils.logging_config import StructuredLogger, track_analysis

logger = StructuredLogger(__name__)


@track_analysis("url")
def analyze_url(url: str, analyzer: Optional[UrlAnalyzer] = None) -> AnalysisResult:
    """Pipeline for /analyze: score an already-decoded URL."""
    return (analyzer or default_analyzer).evaluate(url)


@track_analysis("qr")
def scan_qr_image(
    image_bytes: bytes,
    content_type: Optional[str],
    decoder=None,
    analyzer: Optional[UrlAnalyzer] = None,
) -> Tuple[str, AnalysisResult]:
    """
    Pipeline for /scan: validate the image, decode its QR code, score the URL.

    Capture failures raise QRDecodeError subclasses before the analyzer runs.
    """
    if not is_image_content_type(content_type):
        raise InvalidImageError("Please upload an image file containing a QR code.")
    if len(image_bytes) > settings.max_upload_bytes:
        raise InvalidImageError(
            f"Image is too large (max {settings.max_upload_bytes} bytes)."
        )

    decoder = decoder or OpenCVDecoder()
    payload = decoder.decode(image_bytes)
    logger.info("QR code decoded", decoder=decoder.name, payload_preview=payload[:140])

    return payload, (analyzer or default_analyzer).evaluate(payload)
