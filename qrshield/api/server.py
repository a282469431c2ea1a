import asyncio
import uuid
from typing import Optional

from fastapi import FastAPI, Depends, Form, File, UploadFile, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from qrshield.config import settings
from qrshield.schemas.analysis_schemas import AnalysisResult, ScanResponse, StatusResponse
from qrshield.pipelines.scan_pipeline import analyze_url, scan_qr_image
from qrshield.services.lists_service import default_lists
from qrshield.services.qr_decoder import (
    InvalidImageError,
    NoQRCodeFoundError,
    OpenCVDecoder,
    SimulatedDecoder,
)
from qrshield.api.security import verify_api_token
from qrshield.api.admin import router as admin_router
from qrshield.utils.logging_config import StructuredLogger, init_logging, request_id_var

init_logging()

logger = StructuredLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="QRShield API",
    version=VERSION,
    description="Heuristic risk assessment for URLs encoded in QR codes",
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


# Request id middleware, feeds the JSON log formatter
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


SCAN_SOURCES = {"upload", "paste", "camera"}

opencv_decoder = OpenCVDecoder()
simulated_decoder = SimulatedDecoder()

app.include_router(admin_router)


@app.get("/health")
def health():
    """Health check endpoint - no auth required."""
    return {"status": "ok"}


@app.get("/status", response_model=StatusResponse)
def status_info():
    """API status and configuration info."""
    return StatusResponse(
        status="ok",
        version=VERSION,
        environment=settings.environment,
        auth_enabled=bool(settings.api_token),
        decoders=[opencv_decoder.name, simulated_decoder.name],
        reference_lists=default_lists.get_stats(),
    )


@app.post(
    "/analyze",
    response_model=AnalysisResult,
    dependencies=[Depends(verify_api_token)],
)
def analyze(url: Optional[str] = Form(None)):
    """Score a URL that has already been decoded from a QR code."""
    if not url or not url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Field 'url' is required.",
        )
    result = analyze_url(url)
    logger.info(
        "URL analyzed",
        risk_level=result.risk_level.value,
        risk_score=result.risk_score,
    )
    return result


@app.post(
    "/scan",
    response_model=ScanResponse,
    dependencies=[Depends(verify_api_token)],
)
async def scan(
    file: Optional[UploadFile] = File(None),
    source: str = Form("upload", description="One of: upload, paste, camera"),
    simulate: bool = Form(False, description="Skip decoding and pick a sample URL"),
):
    """Decode a QR code image and score the URL it contains."""
    if simulate:
        # Mimics the scanning animation of the demo UI
        if settings.scan_delay_seconds > 0:
            await asyncio.sleep(settings.scan_delay_seconds)
        payload = simulated_decoder.decode()
        result = analyze_url(payload)
        return ScanResponse(source="demo", decoded=payload, simulated=True, result=result)

    s = source.lower()
    if s not in SCAN_SOURCES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported source '{source}'. Must be one of {sorted(SCAN_SOURCES)}.",
        )
    if not file:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An image file is required unless simulate=true.",
        )

    # One byte past the limit is enough for the size check to reject it
    image_bytes = await file.read(settings.max_upload_bytes + 1)
    try:
        payload, result = await run_in_threadpool(
            scan_qr_image, image_bytes, file.content_type, opencv_decoder
        )
    except InvalidImageError as e:
        logger.warning("Rejected scan upload", source=s, error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NoQRCodeFoundError as e:
        logger.info("No QR code in upload", source=s)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return ScanResponse(source=s, decoded=payload, result=result)
