import logging
from typing import Any, Dict

import httpx
from pydantic import BaseModel, ConfigDict

from backend.app.metadata import MetadataBundle, monetization_label


logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
UPLOAD_ENDPOINT = "https://www.googleapis.com/upload/youtube/v3/videos?uploadType=resumable&part=snippet,status"

# https://developers.google.com/youtube/v3/docs/videoCategories
CATEGORY_IDS = {
    "tech": "28",
    "vlog": "22",
    "shorts": "24",
    "gaming": "20",
    "tutorial": "27",
}

LANGUAGE_CODES = {
    "english": "en",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "italian": "it",
    "portuguese": "pt",
    "hindi": "hi",
    "japanese": "ja",
    "korean": "ko",
    "chinese": "zh",
    "arabic": "ar",
    "russian": "ru",
    "indonesian": "id",
    "turkish": "tr",
    "dutch": "nl",
}


class YouTubeUploadError(RuntimeError):
    pass


class YouTubeConfigurationError(YouTubeUploadError):
    pass


class PublishRequest(BaseModel):
    metadata: MetadataBundle
    payload: bytes
    file_name: str
    content_type: str = "video/mp4"
    category: str
    language: str
    monetization: str
    privacy_status: str
    publish_at: str | None = None

    model_config = ConfigDict(frozen=True)


def language_code(language: str) -> str | None:
    normalized = language.strip().lower()
    if normalized in LANGUAGE_CODES.values():
        return normalized
    return LANGUAGE_CODES.get(normalized)


def build_video_resource(request: PublishRequest) -> Dict[str, Any]:
    metadata = request.metadata
    snippet: Dict[str, Any] = {
        "title": metadata.title,
        "description": metadata.description,
        "tags": list(metadata.tags),
        "categoryId": CATEGORY_IDS.get(request.category, CATEGORY_IDS["vlog"]),
    }
    code = language_code(request.language)
    if code:
        snippet["defaultLanguage"] = code
        snippet["defaultAudioLanguage"] = code

    video_status: Dict[str, Any] = {
        "privacyStatus": request.privacy_status,
        "selfDeclaredMadeForKids": request.monetization.strip().lower() == "kids",
    }
    if request.publish_at:
        video_status["publishAt"] = request.publish_at

    return {"snippet": snippet, "status": video_status}


class YouTubePublisher:
    """Publishes a video with the YouTube Data API using a stored refresh token."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        client_id: str | None,
        client_secret: str | None,
        refresh_token: str | None,
    ):
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token

    async def _access_token(self) -> str:
        if not self.client_id or not self.client_secret or not self.refresh_token:
            raise YouTubeConfigurationError("YouTube OAuth credentials are not configured")

        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "grant_type": "refresh_token",
        }
        response = await self.client.post(TOKEN_ENDPOINT, data=payload, timeout=10)
        response.raise_for_status()
        access_token = response.json().get("access_token")
        if not access_token:
            raise YouTubeUploadError("Token endpoint did not return an access token")
        return access_token

    async def _initiate_upload(self, access_token: str, request: PublishRequest) -> str:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "X-Upload-Content-Type": request.content_type,
            "X-Upload-Content-Length": str(len(request.payload)),
        }
        response = await self.client.post(
            UPLOAD_ENDPOINT, headers=headers, json=build_video_resource(request), timeout=10
        )
        response.raise_for_status()
        upload_url = response.headers.get("Location")
        if not upload_url:
            raise YouTubeUploadError("YouTube API did not return an upload URL")
        return upload_url

    async def _send_payload(self, upload_url: str, access_token: str, request: PublishRequest) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token}", "Content-Type": request.content_type}
        response = await self.client.put(upload_url, headers=headers, content=request.payload, timeout=None)
        response.raise_for_status()
        return response.json() if response.content else {}

    async def upload(self, request: PublishRequest) -> Dict[str, Any]:
        logger.info(
            "Uploading %s to YouTube (%s, %s, %s)",
            request.file_name,
            request.privacy_status,
            request.category,
            monetization_label(request.monetization),
        )
        access_token = await self._access_token()
        upload_url = await self._initiate_upload(access_token, request)
        resource = await self._send_payload(upload_url, access_token, request)
        logger.info("YouTube accepted %s as video %s", request.file_name, resource.get("id"))
        return resource
