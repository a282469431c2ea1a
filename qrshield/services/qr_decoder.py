"""
QR capture helpers.

Turns an uploaded, pasted or camera image into the text its QR code encodes.
The URL analyzer never sees images: it only receives the decoded string.
"""

import io
import random
from typing import List, Optional, Sequence

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from qrshield.config import settings
from qrshield.utils.logging_config import StructuredLogger

logger = StructuredLogger(__name__)


class QRDecodeError(Exception):
    """Base class for capture failures. The analyzer is not run for these."""


class InvalidImageError(QRDecodeError):
    """The upload is not an image we can read."""


class NoQRCodeFoundError(QRDecodeError):
    """The image was read but contains no decodable QR code."""


def is_image_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")


def load_image_bytes(image_bytes: bytes) -> Image.Image:
    """Load raw bytes into a PIL image, raising InvalidImageError if unreadable."""
    if not image_bytes:
        raise InvalidImageError("Empty image upload.")
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Could not read image: {e}") from e
    return img


def pil_to_cv2(img: Image.Image) -> np.ndarray:
    """Convert a PIL image to an OpenCV BGR ndarray."""
    if img.mode not in ("RGB", "RGBA", "L"):
        img = img.convert("RGB")

    arr = np.array(img)

    if img.mode == "RGBA":
        arr = cv2.cvtColor(arr, cv2.COLOR_RGBA2BGR)
    elif img.mode == "RGB":
        arr = cv2.cvtColor(arr, cv2.COLOR_RGB2BGR)
    elif img.mode == "L":
        arr = cv2.cvtColor(arr, cv2.COLOR_GRAY2BGR)

    return arr


def decode_qr_payloads(img: np.ndarray) -> List[str]:
    """Return every non-empty QR payload found, multi-code detection first."""
    detector = cv2.QRCodeDetector()

    try:
        ret, data, _, _ = detector.detectAndDecodeMulti(img)
    except cv2.error:
        ret, data = False, None

    if ret and data:
        payloads = [txt.strip() for txt in data if txt and txt.strip()]
        if payloads:
            return payloads

    # Single-code fallback
    try:
        txt, _, _ = detector.detectAndDecode(img)
    except cv2.error:
        txt = ""
    return [txt.strip()] if txt and txt.strip() else []


class OpenCVDecoder:
    """Decodes QR codes from real images with OpenCV."""

    name = "opencv"

    def decode(self, image_bytes: bytes) -> str:
        img = pil_to_cv2(load_image_bytes(image_bytes))
        payloads = decode_qr_payloads(img)
        if not payloads:
            raise NoQRCodeFoundError(
                "We couldn't detect a valid QR code in your image. "
                "Please try again with a clearer image."
            )
        if len(payloads) > 1:
            logger.info("Multiple QR codes found, using the first", count=len(payloads))
        return payloads[0]


class SimulatedDecoder:
    """
    Stand-in decoder for demos: ignores the image and returns one of a fixed
    set of sample URLs covering every risk level.
    """

    name = "simulated"

    def __init__(
        self,
        urls: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.urls = list(urls) if urls is not None else settings.demo_urls_list
        if not self.urls:
            raise ValueError("SimulatedDecoder needs at least one sample URL")
        self._rng = rng or random.Random()

    def decode(self, image_bytes: bytes = b"") -> str:
        return self._rng.choice(self.urls)
