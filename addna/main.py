import mimetypes
import structlog
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, UploadFile, File, HTTPException, Depends, Request, status, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

# Load environment variables before config is read
from dotenv import load_dotenv
load_dotenv()

from addna import __version__, config
from addna.core.errors import (
    DNAError, ValidationError, UnsupportedMediaTypeError, PayloadTooLargeError, RegistryUnavailableError
)
from addna.core.registry import InMemoryRegistry
from addna.core.utils import sanitize_filename
from addna.models.certificate import Certificate
from addna.models.verification import (
    VerificationResult, StatsResponse, RevokeResponse, PhishingCheckRequest, PhishingCheckResponse,
    ErrorResponse, HealthResponse
)
from addna.services.features import FeatureExtractor
from addna.services.phishing import extract_domain, is_whitelisted
from addna.services.text_regions import tesseract_available
from addna.services.verification import DNAService

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the registry and extractor for the lifetime of the process."""
    logger.info("Starting Ad Creative DNA API")
    registry = InMemoryRegistry()
    extractor = FeatureExtractor()
    app.state.registry = registry
    app.state.extractor = extractor
    app.state.dna_service = DNAService(registry, extractor)

    if not tesseract_available():
        logger.warning("Tesseract not found - text detection will fail", enabled=config.ENABLE_TEXT_DETECTION)

    yield

    logger.info("Shutting down Ad Creative DNA API")
    extractor.shutdown()
    registry.close()


app = FastAPI(
    title="Ad Creative DNA API",
    description="Tamper-evident DNA certificates for advertising creatives",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse, "description": "Validation Error"},
        503: {"model": ErrorResponse, "description": "Registry Unavailable"},
    }
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Creatives are verified from arbitrary publisher pages
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_dna_service(request: Request) -> DNAService:
    return request.app.state.dna_service


async def read_upload(file: UploadFile) -> tuple[bytes, str]:
    """Read an uploaded image and resolve its declared content type."""
    content_type = file.content_type or (mimetypes.guess_type(file.filename)[0] if file.filename else None)
    if not content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not determine file type"
        )

    data = await file.read()
    return data, content_type


def error_status(exc: DNAError) -> int:
    if isinstance(exc, PayloadTooLargeError):
        return status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    if isinstance(exc, UnsupportedMediaTypeError):
        return status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, RegistryUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(DNAError)
async def dna_error_handler(request: Request, exc: DNAError):
    code = error_status(exc)
    if isinstance(exc, RegistryUnavailableError):
        logger.error("Registry unavailable", url=str(request.url), error=str(exc))
    return JSONResponse(
        status_code=code,
        content=ErrorResponse(
            error="registry_unavailable" if isinstance(exc, RegistryUnavailableError) else "validation_error",
            message=str(exc),
        ).model_dump()
    )


@app.get("/", response_model=dict)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Ad Creative DNA API",
        "version": __version__,
        "description": "Tamper-evident DNA certificates for advertising creatives",
        "docs_url": "/docs",
        "health_url": "/health",
        "brand_rule_version": config.BRAND_RULE_VERSION
    }


@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint with component status."""
    registry = request.app.state.registry
    components = {
        "registry": "healthy" if registry.is_available() else "unhealthy",
        "text_detection": "healthy" if tesseract_available() else "unavailable",
    }
    overall_status = "healthy" if all(s == "healthy" for s in components.values()) else "degraded"
    return HealthResponse(status=overall_status, version=__version__, components=components)


@app.post("/generate-dna", response_model=Certificate)
async def generate_dna(
    file: UploadFile = File(..., description="Original creative (JPEG or PNG)"),
    service: DNAService = Depends(get_dna_service)
):
    """Fingerprint an original creative and issue its DNA certificate."""
    start_time = time.time()
    data, content_type = await read_upload(file)

    certificate = await run_in_threadpool(
        service.issue, sanitize_filename(file.filename), data, content_type
    )

    logger.info("Generated DNA",
                dna=certificate.dna,
                filename=certificate.filename,
                processing_time_ms=(time.time() - start_time) * 1000)
    return certificate


@app.post("/verify", response_model=VerificationResult)
async def verify_creative(
    file: UploadFile = File(..., description="Displayed creative to verify"),
    service: DNAService = Depends(get_dna_service)
):
    """
    Classify a displayed creative as valid, tampered, unregistered or revoked.

    Tampered and unregistered are successful outcomes, not errors.
    """
    data, content_type = await read_upload(file)
    return await run_in_threadpool(service.verify, data, content_type)


@app.get("/verify-dna", response_model=VerificationResult)
async def verify_dna(
    dna: str = Query(..., min_length=1, description="DNA token, e.g. from a scanned QR code"),
    service: DNAService = Depends(get_dna_service)
):
    """Look up a certificate by DNA token without re-fingerprinting."""
    return await run_in_threadpool(service.verify_dna, dna)


@app.delete("/remove-dna/{dna}", response_model=RevokeResponse)
async def remove_dna(dna: str, service: DNAService = Depends(get_dna_service)):
    """Revoke a certificate. Repeated revocations succeed and keep the first revocation time."""
    revoked = await run_in_threadpool(service.revoke, dna)
    if not revoked:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="DNA not found in registry")
    return RevokeResponse(success=True, message="DNA revoked from registry", dna=dna)


@app.get("/stats", response_model=StatsResponse)
async def get_stats(service: DNAService = Depends(get_dna_service)):
    """Registry counts plus the process-wide verification and tamper counters."""
    return await run_in_threadpool(service.stats)


@app.post("/phishing-check", response_model=PhishingCheckResponse)
async def phishing_check(payload: PhishingCheckRequest):
    """Check that a creative's landing page URL is on a brand-owned domain."""
    if not payload.url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="URL is required")

    domain = extract_domain(payload.url)
    if not domain:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid URL")

    return PhishingCheckResponse(authentic=is_whitelisted(domain), domain=domain)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error("Unhandled exception",
                 url=str(request.url), method=request.method, error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_server_error", "message": "An unexpected error occurred"}
    )


if __name__ == "__main__":
    uvicorn.run(
        "addna.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=config.DEBUG,
        log_config=None,  # We handle logging with structlog
    )
