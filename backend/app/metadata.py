import re
from datetime import datetime
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict

from backend.app.policy import parse_schedule


TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 5000
TAGS_MAX_TOTAL_LENGTH = 500
HASHTAG_LIMIT = 5
DEFAULT_TITLE_SEED = "youtube upload"

STOP_WORDS = {
    "a", "an", "and", "at", "by", "for", "from", "in", "of", "on", "or",
    "the", "to", "with", "final", "copy", "edit", "export", "mp4", "mov",
    "mkv", "webm", "avi", "video", "clip", "upload", "www", "http", "https", "com",
}

MONETIZATION_LABELS = {
    "enabled": "Enable ads",
    "disabled": "Disable ads",
    "limited": "Limited ads",
    "kids": "Made for kids",
}


class CategoryProfile(BaseModel):
    title_template: str
    hook: str
    call_to_action: str
    tags: Tuple[str, ...]
    thumbnail_style: str

    model_config = ConfigDict(frozen=True)


CATEGORY_PROFILES: Dict[str, CategoryProfile] = {
    "tech": CategoryProfile(
        title_template="{subject} | Tech Breakdown",
        hook="A clear, no-fluff look at {subject}.",
        call_to_action="Subscribe for more tech breakdowns and drop your questions in the comments.",
        tags=("tech", "technology", "tech review", "gadgets"),
        thumbnail_style="clean studio lighting, product close-up, bold sans-serif headline, blue accent glow",
    ),
    "vlog": CategoryProfile(
        title_template="{subject} | Vlog",
        hook="Come along for {subject}.",
        call_to_action="Like and subscribe to follow the journey.",
        tags=("vlog", "daily vlog", "lifestyle", "behind the scenes"),
        thumbnail_style="candid expressive face, warm natural light, handwritten caption, vibrant background",
    ),
    "shorts": CategoryProfile(
        title_template="{subject} #Shorts",
        hook="{subject} in under a minute.",
        call_to_action="Follow for more quick hits.",
        tags=("shorts", "youtube shorts", "short video", "viral"),
        thumbnail_style="vertical 9:16 frame, single striking subject, high contrast, minimal text",
    ),
    "gaming": CategoryProfile(
        title_template="{subject} | Gameplay",
        hook="Full gameplay: {subject}.",
        call_to_action="Subscribe and turn on notifications for the next session.",
        tags=("gaming", "gameplay", "let's play", "gamer"),
        thumbnail_style="in-game action shot, neon rim light, reaction face cutout, oversized bold title",
    ),
    "tutorial": CategoryProfile(
        title_template="How To: {subject} (Step by Step)",
        hook="Step-by-step guide to {subject}.",
        call_to_action="Save this video for later and subscribe for more tutorials.",
        tags=("tutorial", "how to", "step by step", "guide"),
        thumbnail_style="before/after split layout, numbered steps, arrow callouts, bright flat background",
    ),
}


class MetadataBundle(BaseModel):
    title: str
    description: str
    tags: List[str] = []
    hashtags: List[str] = []
    thumbnail_prompt: str
    keyword_phrases: List[str] = []

    model_config = ConfigDict(frozen=True)


def monetization_label(monetization: str) -> str:
    return MONETIZATION_LABELS.get(monetization.strip().lower(), monetization.strip())


def pick_title_seed(file_name: str | None, video_link: str | None) -> str:
    for candidate in (file_name, video_link):
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_TITLE_SEED


def _seed_words(seed: str) -> List[str]:
    stripped = seed.rsplit("/", 1)[-1] if "://" in seed else seed
    stripped = re.sub(r"\.[a-z0-9]{2,5}$", "", stripped, flags=re.IGNORECASE)
    stripped = re.sub(r"([a-z])([A-Z])", r"\1 \2", stripped)
    return [word for word in re.split(r"[^0-9A-Za-z']+", stripped) if word]


def humanize_seed(seed: str) -> str:
    words = _seed_words(seed) or _seed_words(DEFAULT_TITLE_SEED)
    return " ".join(word if word.isupper() else word.capitalize() for word in words)


def extract_keywords(seed: str) -> List[str]:
    keywords: List[str] = []
    for word in _seed_words(seed):
        lowered = word.lower()
        if len(lowered) < 3 or lowered.isdigit() or lowered in STOP_WORDS:
            continue
        if lowered not in keywords:
            keywords.append(lowered)
    return keywords


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def _limit_tags(tags: List[str]) -> List[str]:
    selected: List[str] = []
    total = 0
    for tag in tags:
        tag = tag.strip()
        if not tag or tag in selected:
            continue
        # The platform counts quoted multi-word tags with their quotes.
        cost = len(tag) + (2 if " " in tag else 0) + (1 if selected else 0)
        if total + cost > TAGS_MAX_TOTAL_LENGTH:
            break
        selected.append(tag)
        total += cost
    return selected


def _hashtag(text: str) -> str:
    return "#" + "".join(part.capitalize() for part in re.split(r"[^0-9A-Za-z]+", text) if part)


def _describe_schedule(scheduled_at: str | None) -> str | None:
    moment: datetime | None = parse_schedule(scheduled_at)
    if moment is None:
        return None
    return f"Premieres {moment.strftime('%B %d, %Y at %H:%M UTC')}."


def synthesize_metadata(
    title_seed: str,
    category: str,
    language: str,
    monetization: str,
    scheduled_at: str | None = None,
) -> MetadataBundle:
    """Build the SEO metadata bundle for an upload.

    The output depends only on the arguments, so identical submissions get
    identical metadata.
    """

    profile = CATEGORY_PROFILES.get(category, CATEGORY_PROFILES["vlog"])
    subject = humanize_seed(title_seed or DEFAULT_TITLE_SEED)
    keywords = extract_keywords(title_seed or "")
    language = language.strip() or "English"

    title = _truncate(profile.title_template.format(subject=subject), TITLE_MAX_LENGTH)

    keyword_phrases = [f"{subject.lower()} {category}"]
    keyword_phrases.extend(f"{keyword} {tag}" for keyword in keywords[:3] for tag in profile.tags[:1])
    if language.lower() != "english":
        keyword_phrases.append(f"{subject.lower()} {language.lower()}")
    keyword_phrases = list(dict.fromkeys(keyword_phrases))

    tags = _limit_tags([*keywords, subject.lower(), *profile.tags, language.lower(), *keyword_phrases])

    hashtags = list(dict.fromkeys(
        [_hashtag(profile.tags[0]), *(_hashtag(keyword) for keyword in keywords), _hashtag(language)]
    ))
    hashtags = [tag for tag in hashtags if len(tag) > 1][:HASHTAG_LIMIT]

    lines = [profile.hook.format(subject=subject), ""]
    if keywords:
        lines.append("In this video: " + ", ".join(keywords) + ".")
    lines.append(f"Language: {language}.")
    schedule_line = _describe_schedule(scheduled_at)
    if schedule_line:
        lines.append(schedule_line)
    if monetization.strip().lower() == "kids":
        lines.append("This video is made for kids.")
    lines.extend(["", profile.call_to_action])
    if hashtags:
        lines.extend(["", " ".join(hashtags)])
    description = _truncate("\n".join(lines), DESCRIPTION_MAX_LENGTH)

    thumbnail_prompt = (
        f"YouTube thumbnail for \"{subject}\": {profile.thumbnail_style}, "
        f"1280x720, text in {language}"
    )

    return MetadataBundle(
        title=title,
        description=description,
        tags=tags,
        hashtags=hashtags,
        thumbnail_prompt=thumbnail_prompt,
        keyword_phrases=keyword_phrases,
    )
