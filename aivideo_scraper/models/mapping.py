"""Mapping functions to convert Reddit API objects to our data models."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from aivideo_scraper.exceptions import MalformedPostError
from aivideo_scraper.models.post import NativeVideo, RawPost

logger = logging.getLogger(__name__)


def decode_reddit_url(url: Any) -> str:
    """Undo the HTML escaping Reddit applies to URLs in listing payloads."""
    if not url or not isinstance(url, str):
        return ""
    return url.replace("&amp;", "&").strip()


def _get(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from either a dict payload or an asyncpraw object."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _reddit_video(payload: Any) -> Optional[Dict[str, Any]]:
    for media_field in ("media", "secure_media"):
        media = _get(payload, media_field)
        if isinstance(media, dict) and isinstance(media.get("reddit_video"), dict):
            return media["reddit_video"]
    return None


def extract_native_video(submission: Any) -> Optional[NativeVideo]:
    """
    Find the Reddit-hosted video for a submission.

    Falls back to the first crosspost parent when the submission itself
    carries no video.
    """
    video = _reddit_video(submission)
    if video is None:
        crossposts = _get(submission, "crosspost_parent_list") or []
        if crossposts:
            video = _reddit_video(crossposts[0])
    if video is None:
        return None

    fallback_url = decode_reddit_url(video.get("fallback_url"))
    dash_url = decode_reddit_url(video.get("dash_url")) or None
    hls_url = decode_reddit_url(video.get("hls_url")) or None
    if not (fallback_url or dash_url or hls_url):
        return None

    try:
        height = int(video.get("height") or 0)
    except (TypeError, ValueError):
        height = 0

    return NativeVideo(fallback_url=fallback_url, dash_url=dash_url, hls_url=hls_url, height_px=height)


def extract_preview_image(submission: Any) -> Optional[str]:
    """Return the best upstream preview image URL for a submission, if any."""
    candidates = [submission]
    crossposts = _get(submission, "crosspost_parent_list") or []
    if crossposts:
        candidates.append(crossposts[0])

    for candidate in candidates:
        preview = _get(candidate, "preview")
        if isinstance(preview, dict):
            images = preview.get("images") or []
            image = images[0] if isinstance(images, list) and images else None
            source = image.get("source") if isinstance(image, dict) else None
            if isinstance(source, dict):
                url = decode_reddit_url(source.get("url"))
                if url.startswith("http"):
                    return url

    for candidate in candidates:
        thumb = decode_reddit_url(_get(candidate, "thumbnail"))
        if thumb.startswith("http"):
            return thumb

    return None


def author_name(submission: Any) -> Optional[str]:
    """Name of the post's author; asyncpraw gives a Redditor, JSON payloads a string."""
    author = _get(submission, "author")
    if author is None or isinstance(author, str):
        return author or None
    name = _get(author, "name")
    return name if isinstance(name, str) and name else None


def submission_to_post(submission: Any) -> RawPost:
    """
    Convert an asyncpraw Submission object to a RawPost.

    Args:
        submission: The Reddit submission object from asyncpraw (or its JSON dict)

    Returns:
        A validated RawPost

    Raises:
        MalformedPostError: If required fields are missing or of the wrong type
    """
    post_id = _get(submission, "id")
    title = _get(submission, "title")
    if not post_id or not isinstance(post_id, str):
        raise MalformedPostError("Submission has no id")
    if not isinstance(title, str):
        raise MalformedPostError(f"Submission {post_id} has no title")

    subreddit = _get(submission, "subreddit")
    source_name = _get(subreddit, "display_name") if not isinstance(subreddit, str) else subreddit
    if not source_name:
        source_name = (_get(submission, "subreddit_name_prefixed") or "")[2:]
    if not source_name:
        raise MalformedPostError(f"Submission {post_id} has no subreddit")

    try:
        score = int(_get(submission, "score", 0) or 0)
        created = float(_get(submission, "created_utc", 0) or 0)
    except (TypeError, ValueError) as e:
        raise MalformedPostError(f"Submission {post_id} has invalid numeric fields: {e}") from e

    native_video = extract_native_video(submission)
    media = _get(submission, "media")
    media_type = media.get("type") if isinstance(media, dict) else None

    return RawPost(
        id=post_id,
        score=score,
        title=title,
        source_name=str(source_name),
        body_text=_get(submission, "selftext") or "",
        flair_text=_get(submission, "link_flair_text") or "",
        is_native_video=bool(_get(submission, "is_video", False)) or native_video is not None,
        native_video=native_video,
        direct_url=decode_reddit_url(_get(submission, "url")) or None,
        media_type=media_type,
        is_adult_flagged=bool(_get(submission, "over_18", False)),
        permalink=_get(submission, "permalink") or "",
        created_at_epoch=created,
        preview_image_url=extract_preview_image(submission),
        author=author_name(submission),
    )


def submissions_to_posts(submissions: Iterable[Any]) -> List[RawPost]:
    """
    Convert asyncpraw Submission objects to RawPosts, skipping malformed ones.

    Args:
        submissions: Reddit submission objects from asyncpraw

    Returns:
        List of RawPosts
    """
    posts = []

    for submission in submissions:
        try:
            posts.append(submission_to_post(submission))
        except MalformedPostError as e:
            logger.warning(f"Skipping malformed submission: {e}")
        except (AttributeError, TypeError, KeyError, IndexError) as e:
            # Unexpected payload shape in an optional field
            post_id = _get(submission, "id", "?")
            logger.warning(f"Skipping malformed submission {post_id}: {type(e).__name__}: {e}")

    return posts
