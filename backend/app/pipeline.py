import logging
from typing import Any, Dict, List, Mapping, Protocol

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backend.app.errors import (
    RemotePublishFailed,
    SizeLimitExceeded,
    UnexpectedFailure,
    UploadError,
)
from backend.app.forms import validate_form
from backend.app.metadata import MetadataBundle, pick_title_seed, synthesize_metadata
from backend.app.policy import PublishPolicy, compute_publish_policy
from backend.app.sources import ResolvedVideo, resolve_video_source
from backend.app.youtube import PublishRequest, YouTubeUploadError


logger = logging.getLogger(__name__)

MAX_VIDEO_BYTES = 1024 * 1024 * 512


class Publisher(Protocol):
    async def upload(self, request: PublishRequest) -> Dict[str, Any]: ...


class UploadResult(BaseModel):
    title: str
    description: str
    tags: List[str]
    hashtags: List[str]
    thumbnail_prompt: str
    keyword_phrases: List[str]
    scheduled_at: str | None = None
    monetization: str
    category: str
    status: str
    video_id: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def enforce_size_limit(video: ResolvedVideo, max_bytes: int = MAX_VIDEO_BYTES) -> None:
    if video.size > max_bytes:
        if max_bytes >= 1024 * 1024:
            limit = f"{max_bytes // (1024 * 1024)} MB"
        else:
            limit = f"{max_bytes} byte"
        raise SizeLimitExceeded(f"Video exceeds {limit} upload limit.")


def assemble_result(
    metadata: MetadataBundle,
    policy: PublishPolicy,
    category: str,
    monetization: str,
    remote: Mapping[str, Any] | None,
) -> UploadResult:
    remote = remote or {}
    remote_status = (remote.get("status") or {}).get("privacyStatus")
    video_id = remote.get("id")
    return UploadResult(
        title=metadata.title,
        description=metadata.description,
        tags=list(metadata.tags),
        hashtags=list(metadata.hashtags),
        thumbnail_prompt=metadata.thumbnail_prompt,
        keyword_phrases=list(metadata.keyword_phrases),
        scheduled_at=policy.publish_at,
        monetization=monetization,
        category=category,
        status=remote_status or policy.privacy_status.value,
        video_id=str(video_id) if video_id else None,
    )


class UploadPipeline:
    """Runs one submission from raw form fields to a published video.

    Every stage gates the next. Failures leave as exactly one ``UploadError``
    subclass; there are no retries and no partial results.
    """

    def __init__(self, publisher: Publisher, http_client: httpx.AsyncClient, max_video_bytes: int = MAX_VIDEO_BYTES):
        self.publisher = publisher
        self.http_client = http_client
        self.max_video_bytes = max_video_bytes

    async def run(self, form: Mapping[str, Any]) -> UploadResult:
        try:
            return await self._run(form)
        except UploadError as exc:
            logger.warning("Upload rejected (%s): %s", type(exc).__name__, exc.message)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Upload failed unexpectedly")
            raise UnexpectedFailure() from exc

    async def _run(self, form: Mapping[str, Any]) -> UploadResult:
        fields = validate_form(form)
        category = fields.category.value
        link = fields.link

        video = await resolve_video_source(
            fields.video_source_type.value, form.get("videoFile"), link, self.http_client
        )
        enforce_size_limit(video, self.max_video_bytes)

        policy = compute_publish_policy(fields.schedule)
        metadata = synthesize_metadata(
            title_seed=pick_title_seed(video.file_name, link),
            category=category,
            language=fields.language,
            monetization=fields.monetization,
            scheduled_at=policy.publish_at,
        )
        logger.debug("Synthesized metadata %r for %s", metadata.title, video.file_name)

        request = PublishRequest(
            metadata=metadata,
            payload=video.payload,
            file_name=video.file_name,
            content_type=video.content_type,
            category=category,
            language=fields.language,
            monetization=fields.monetization,
            privacy_status=policy.privacy_status.value,
            publish_at=policy.publish_at,
        )
        try:
            remote = await self.publisher.upload(request)
        except httpx.HTTPStatusError as exc:
            raise RemotePublishFailed(
                f"YouTube rejected the upload: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except (httpx.HTTPError, YouTubeUploadError) as exc:
            raise RemotePublishFailed(f"Failed to publish video to YouTube: {exc}") from exc

        return assemble_result(metadata, policy, category, fields.monetization, remote)
