from enum import Enum
from typing import Annotated, Any, Dict, List, Mapping

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    UrlConstraints,
    ValidationError,
    field_validator,
)

from backend.app.errors import InvalidFormInput
from backend.app.policy import parse_schedule


class UploadCategory(str, Enum):
    TECH = "tech"
    VLOG = "vlog"
    SHORTS = "shorts"
    GAMING = "gaming"
    TUTORIAL = "tutorial"


class VideoSourceType(str, Enum):
    FILE = "file"
    LINK = "link"


# Absolute http(s) URL with no length cap; presigned links often exceed 2083 characters.
VideoLinkUrl = Annotated[
    AnyUrl, UrlConstraints(max_length=None, allowed_schemes=["http", "https"], host_required=True)
]
VIDEO_LINK_ADAPTER = TypeAdapter(VideoLinkUrl)

# Field defaults applied when the web form omits a value.
FORM_DEFAULTS = {
    "category": "",
    "language": "English",
    "monetization": "enabled",
    "videoSourceType": "file",
}


class UploadForm(BaseModel):
    category: UploadCategory
    language: str = Field(min_length=2, max_length=60)
    monetization: str = Field(min_length=2, max_length=80)
    schedule: str | None = None
    video_source_type: VideoSourceType = Field(alias="videoSourceType")
    video_link: str | None = Field(default=None, alias="videoLink")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("schedule", "video_link", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("schedule")
    @classmethod
    def validate_schedule(cls, value: str | None) -> str | None:
        if value is not None and parse_schedule(value) is None:
            raise ValueError("Invalid schedule timestamp.")
        return value

    @field_validator("video_link")
    @classmethod
    def validate_video_link(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        try:
            VIDEO_LINK_ADAPTER.validate_python(value)
        except ValidationError as exc:
            raise ValueError(exc.errors()[0]["msg"]) from exc
        return value

    @property
    def link(self) -> str | None:
        return self.video_link


def collect_form_fields(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the text fields the validator consumes out of a submitted form."""

    raw: Dict[str, Any] = {}
    for name, default in FORM_DEFAULTS.items():
        value = form.get(name)
        raw[name] = default if value is None else str(value)
    for name in ("schedule", "videoLink"):
        value = form.get(name)
        if value:
            raw[name] = str(value)
    return raw


def _issues_from(exc: ValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "path": [str(part) for part in error["loc"]],
            "message": error["msg"].removeprefix("Value error, "),
            "code": error["type"],
        }
        for error in exc.errors(include_url=False, include_context=False, include_input=False)
    ]


def validate_form(form: Mapping[str, Any]) -> UploadForm:
    try:
        return UploadForm.model_validate(collect_form_fields(form))
    except ValidationError as exc:
        raise InvalidFormInput(_issues_from(exc)) from exc
