"""Entry point for the upload server."""

import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from chunkstore.exceptions import (
    UploadException,
    StorageError,
    MergeError,
    NotFoundError,
    InvalidIdentifierError,
    InvalidChunkSizeError
)
from uploadserver import config
from uploadserver.routes.upload_routes import router as upload_router
from uploadserver.schemas.common import ErrorData, ErrorResponse, StatusResponse
from uploadserver.services.upload_service import create_upload_service

logger = setup_logging('uploadserver')
setup_logging('chunkstore')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the upload service and its storage root on startup.
    """
    logger.info("Upload server starting up...")

    upload_service = create_upload_service()
    await upload_service.ensure_storage()
    app.state.upload_service = upload_service

    yield

    logger.info("Upload server shutting down...")


app = FastAPI(
    title="Resumable Upload Server",
    description="Chunked, resumable file upload with server-side reassembly",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    body = ErrorResponse(msg=message, data=ErrorData(code=code))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Not found error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(status.HTTP_404_NOT_FOUND, str(exc), "NOT_FOUND")


@app.exception_handler(InvalidIdentifierError)
async def invalid_identifier_handler(request: Request, exc: InvalidIdentifierError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid identifier error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc), "INVALID_IDENTIFIER")


@app.exception_handler(InvalidChunkSizeError)
async def invalid_chunk_size_handler(request: Request, exc: InvalidChunkSizeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid chunk size error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc), "INVALID_CHUNK_SIZE")


@app.exception_handler(MergeError)
async def merge_error_handler(request: Request, exc: MergeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Merge error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=exc
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "MERGE_FAILED")


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=exc
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "STORAGE_ERROR")


@app.exception_handler(UploadException)
async def upload_exception_handler(request: Request, exc: UploadException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Upload exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=exc
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "INTERNAL_ERROR")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Request validation error: {exc.errors()} [request_id={request_id}] path={request.url.path}"
    )
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()})
    return error_response(
        422,
        f"Invalid request, check fields: {', '.join(fields)}",
        "VALIDATION_ERROR"
    )


app.include_router(upload_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Resumable Upload Server API", "status": "running"}


@app.get("/health", response_model=StatusResponse)
async def health_check():
    """
    Health check endpoint for container healthchecks.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "uploadserver"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "uploadserver.main:app",
        host=config.UPLOAD_SERVER_HOST,
        port=config.UPLOAD_SERVER_PORT
    )


if __name__ == "__main__":
    main()
