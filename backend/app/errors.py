from typing import Any, Dict, List

from fastapi import status


class UploadError(Exception):
    """Base class for failures that cross the upload endpoint boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Video upload failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidFormInput(UploadError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid form input."

    def __init__(self, issues: List[Dict[str, Any]], message: str | None = None):
        super().__init__(message)
        self.issues = issues

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message, "issues": self.issues}


class SourceMissing(UploadError):
    default_message = "Video source is required."


class SourceFetchFailed(UploadError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to download video from link."


class SizeLimitExceeded(UploadError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    default_message = "Video exceeds 512 MB upload limit."


class RemotePublishFailed(UploadError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to publish video to YouTube."


class UnexpectedFailure(UploadError):
    default_message = "Video upload failed."
