from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class PrivacyStatus(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class PublishPolicy(BaseModel):
    privacy_status: PrivacyStatus
    publish_at: str | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_schedule_pairing(self) -> "PublishPolicy":
        scheduled = self.publish_at is not None
        if scheduled != (self.privacy_status == PrivacyStatus.PRIVATE):
            raise ValueError("publish_at must be set exactly when privacy_status is private")
        return self


IMMEDIATE = PublishPolicy(privacy_status=PrivacyStatus.PUBLIC)


def parse_schedule(value: str | None) -> datetime | None:
    """Parse a schedule field into an aware UTC datetime.

    Empty values and strings that are not ISO-8601 date-times yield None.
    Naive values, as sent by a ``datetime-local`` input, are read as UTC.
    """

    if not value or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compute_publish_policy(schedule: str | None) -> PublishPolicy:
    publish_at = parse_schedule(schedule)
    if publish_at is None:
        return IMMEDIATE
    return PublishPolicy(privacy_status=PrivacyStatus.PRIVATE, publish_at=format_timestamp(publish_at))
