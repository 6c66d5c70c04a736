"""
Nano Banana Proxy - FastAPI Main Module
API endpoints forwarding image generation, editing and uploads to fal.ai
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from . import __version__
from .config import Settings, load_settings
from .errors import BadRequestError, GatewayError
from .gateway import FalGateway, UpstreamResult
from .middleware import BodySizeLimitMiddleware
from .schemas import ErrorResponse, HealthResponse, RequestVariant, ServiceInfo, UploadResponse
from .utils import read_json_body

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle management."""
    settings: Settings = app.state.settings
    gateway = FalGateway(settings)
    gateway.open()
    app.state.gateway = gateway

    if not settings.has_api_key:
        logger.warning("FAL_API_KEY is not set - upstream routes will answer 500")

    base = f"http://localhost:{settings.port}"
    logger.info(f"Proxy server running on port {settings.port}")
    logger.info(f"Health check: {base}/health")
    logger.info(f"API endpoint: {base}/api/nanobana")
    logger.info(f"Edit endpoint: {base}/api/nanobana/edit")
    logger.info(f"Upload endpoint: {base}/api/storage/upload")

    yield

    logger.info("Shutting down - closing gateway...")
    await gateway.close()


def get_gateway(request: Request) -> FalGateway:
    return request.app.state.gateway


def relay(result: UpstreamResult) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code)
    return JSONResponse(content=result.body, status_code=result.status_code)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error})


router = APIRouter()


@router.get("/", response_model=ServiceInfo)
async def root():
    """Root endpoint with API info."""
    return ServiceInfo(name="Nano Banana Proxy", version=__version__)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.
    Never calls the upstream, so it answers even without a configured key.
    """
    return HealthResponse()


@router.post("/api/nanobana", responses=ERROR_RESPONSES)
async def submit_generation(request: Request, gateway: FalGateway = Depends(get_gateway)):
    """
    Submit a generation request to the fal.ai queue.

    The JSON body is forwarded unchanged; the upstream response (normally a
    ``request_id`` plus status/result URLs) is relayed as-is.
    """
    gateway.require_api_key()
    payload = await read_json_body(request)
    return relay(await gateway.submit_generation(payload))


@router.post("/api/nanobana/edit", responses=ERROR_RESPONSES)
async def submit_edit(request: Request, gateway: FalGateway = Depends(get_gateway)):
    """Submit an edit request to the fal.ai edit queue."""
    gateway.require_api_key()
    payload = await read_json_body(request)
    return relay(await gateway.submit_edit(payload))


# ":path" ids may contain encoded slashes. Status routes stay above the result
# routes, which also match "<id>/status".
@router.get("/api/nanobana/requests/{request_id:path}/status", responses=ERROR_RESPONSES)
async def generation_status(request_id: str, gateway: FalGateway = Depends(get_gateway)):
    """Queue status of a generation request."""
    return relay(await gateway.get_status(request_id, RequestVariant.GENERATION))


@router.get("/api/nanobana/requests/{request_id:path}", responses=ERROR_RESPONSES)
async def generation_result(request_id: str, gateway: FalGateway = Depends(get_gateway)):
    """Result of a generation request; callers poll the status route first."""
    return relay(await gateway.get_result(request_id, RequestVariant.GENERATION))


@router.get("/api/nanobana/edit/requests/{request_id:path}/status", responses=ERROR_RESPONSES)
async def edit_status(request_id: str, gateway: FalGateway = Depends(get_gateway)):
    """Queue status of an edit request."""
    return relay(await gateway.get_status(request_id, RequestVariant.EDIT))


@router.get("/api/nanobana/edit/requests/{request_id:path}", responses=ERROR_RESPONSES)
async def edit_result(request_id: str, gateway: FalGateway = Depends(get_gateway)):
    """Result of an edit request."""
    return relay(await gateway.get_result(request_id, RequestVariant.EDIT))


@router.post(
    "/api/storage/upload",
    responses={200: {"model": UploadResponse}, **ERROR_RESPONSES},
)
async def upload_file(request: Request, gateway: FalGateway = Depends(get_gateway)):
    """
    Upload a file to fal.ai storage.

    Expects multipart form data with the file under the ``file`` field.
    Returns the upstream body, which carries the stored object's ``url``.
    """
    gateway.require_api_key()

    try:
        async with request.form() as form:
            upload = form.get(UPLOAD_FIELD)
            if not isinstance(upload, UploadFile):
                raise BadRequestError("No file provided")
            content = await upload.read()
            filename = upload.filename
            content_type = upload.content_type
    except (MultiPartException, StarletteHTTPException) as e:
        # Starlette reports unparsable multipart bodies as a 400 HTTPException
        logger.error(f"Malformed multipart upload: {e}")
        raise BadRequestError("No file provided")

    return relay(await gateway.upload_file(content, filename, content_type))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit configuration; read from the environment when None

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Nano Banana Proxy",
        description="Forwards image generation, editing and uploads to fal.ai with a server-held key",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    # CORS middleware for frontend access; added last so it wraps 413 responses too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )
