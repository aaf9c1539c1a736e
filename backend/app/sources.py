import logging
import re
from typing import Any, Tuple
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel

from backend.app.errors import SourceFetchFailed, SourceMissing


logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_NAME = "upload.mp4"
REMOTE_FALLBACK_BASE = "remote-upload"
REMOTE_FALLBACK_NAME = f"{REMOTE_FALLBACK_BASE}.mp4"

EXTENSION_PATTERN = re.compile(r"\.[a-z0-9]+$", re.IGNORECASE)

# First match wins; order matters when several markers could match.
CONTENT_TYPE_EXTENSIONS: Tuple[Tuple[str, str], ...] = (
    ("quicktime", "mov"),
    ("webm", "webm"),
    ("matroska", "mkv"),
    ("x-msvideo", "avi"),
    ("avi", "avi"),
)
DEFAULT_EXTENSION = "mp4"


class ResolvedVideo(BaseModel):
    payload: bytes
    file_name: str
    content_type: str = "video/mp4"

    @property
    def size(self) -> int:
        return len(self.payload)


def content_type_to_extension(content_type: str) -> str:
    lowered = (content_type or "").lower()
    for marker, extension in CONTENT_TYPE_EXTENSIONS:
        if marker in lowered:
            return extension
    return DEFAULT_EXTENSION


def infer_file_name(url: str, content_type: str) -> str:
    """Derive a file name with an extension for a remote video link.

    Never raises: links that cannot be parsed fall back to a constant name.
    """

    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return REMOTE_FALLBACK_NAME
        segments = [segment for segment in parts.path.split("/") if segment]
    except ValueError:
        return REMOTE_FALLBACK_NAME

    base = segments[-1] if segments else REMOTE_FALLBACK_BASE
    if EXTENSION_PATTERN.search(base):
        return base
    return f"{base}.{content_type_to_extension(content_type)}"


async def read_uploaded_file(video_file: Any) -> ResolvedVideo:
    if video_file is None or isinstance(video_file, str):
        raise SourceMissing("Video file is required.")

    payload = await video_file.read()
    if not payload:
        raise SourceMissing("Video file is required.")

    return ResolvedVideo(
        payload=payload,
        file_name=getattr(video_file, "filename", None) or DEFAULT_UPLOAD_NAME,
        content_type=getattr(video_file, "content_type", None) or "video/mp4",
    )


async def download_video_link(video_link: str | None, client: httpx.AsyncClient) -> ResolvedVideo:
    if not video_link:
        raise SourceMissing("Video link is required when no file upload is provided.")

    try:
        response = await client.get(video_link, follow_redirects=True)
    except httpx.HTTPError as exc:
        logger.warning("Fetching %s failed: %s", video_link, exc)
        raise SourceFetchFailed(f"Failed to download video from link: {exc}") from exc

    if not response.is_success:
        logger.warning("Fetching %s returned %s", video_link, response.status_code)
        raise SourceFetchFailed(f"Failed to download video from link: {response.reason_phrase}")

    content_type = response.headers.get("content-type", "")
    return ResolvedVideo(
        payload=response.content,
        file_name=infer_file_name(video_link, content_type),
        content_type=content_type.split(";")[0].strip() or "video/mp4",
    )


async def resolve_video_source(
    source_type: str,
    video_file: Any,
    video_link: str | None,
    client: httpx.AsyncClient,
) -> ResolvedVideo:
    """Materialize the selected video source; the other field is ignored."""

    if source_type == "file":
        video = await read_uploaded_file(video_file)
    else:
        video = await download_video_link(video_link, client)

    logger.info("Resolved %s source %s (%d bytes)", source_type, video.file_name, video.size)
    return video
