import logging
import os
from typing import AsyncIterator

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.errors import InvalidFormInput, UploadError
from backend.app.pipeline import MAX_VIDEO_BYTES, UploadPipeline, UploadResult
from backend.app.youtube import YouTubePublisher


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class HealthResponse(BaseModel):
    service: str
    status: str


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    timeout = float(os.getenv("SOURCE_FETCH_TIMEOUT", "300"))
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client


def get_publisher(client: httpx.AsyncClient = Depends(get_http_client)) -> YouTubePublisher:
    return YouTubePublisher(
        client=client,
        client_id=os.getenv("YOUTUBE_CLIENT_ID"),
        client_secret=os.getenv("YOUTUBE_CLIENT_SECRET"),
        refresh_token=os.getenv("YOUTUBE_REFRESH_TOKEN"),
    )


def get_upload_pipeline(
    publisher: YouTubePublisher = Depends(get_publisher),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> UploadPipeline:
    max_video_bytes = int(os.getenv("MAX_VIDEO_BYTES", str(MAX_VIDEO_BYTES)))
    return UploadPipeline(publisher=publisher, http_client=client, max_video_bytes=max_video_bytes)


async def render_upload_error(request: Request, exc: UploadError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="Video Upload API", version="0.1.0")
    application.add_exception_handler(UploadError, render_upload_error)

    @application.get("/health", response_model=HealthResponse, tags=["health"])
    def health() -> HealthResponse:
        return HealthResponse(service="api", status="ok")

    @application.post("/api/upload", response_model=UploadResult, tags=["upload"])
    async def upload_video(
        request: Request,
        pipeline: UploadPipeline = Depends(get_upload_pipeline),
    ) -> UploadResult:
        try:
            async with request.form() as form:
                return await pipeline.run(form)
        except StarletteHTTPException as exc:
            raise InvalidFormInput([], f"Invalid form input: {exc.detail}") from exc

    return application


app = create_app()


def run() -> None:
    uvicorn.run(
        "backend.app.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
    )


if __name__ == "__main__":
    run()
