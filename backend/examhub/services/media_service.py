"""URL rules for announcement media.

Announcement rows only ever hold public URLs. Before a URL is stored it is
unwrapped from Google's `/url?q=` redirect wrapper and checked against an
extension whitelist (images) or an extension/host whitelist (videos).
"""
import os
from urllib.parse import urlparse, parse_qs
from typing import Optional


IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}
VIDEO_EXTENSIONS = {".mp4", ".webm", ".ogg"}
VIDEO_HOSTS = ("youtube.com", "youtu.be", "vimeo.com")

MEDIA_URL_ERROR = "media_url must be a direct image URL (png/jpg/gif/webp/svg)."
VIDEO_URL_ERROR = "video_url must be a direct video file or a supported host (YouTube/Vimeo)."


def normalize_google_redirect(url: str) -> str:
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    host = parsed.hostname or ""
    if "google." in host and parsed.path == "/url":
        params = parse_qs(parsed.query)
        inner = (params.get("q") or params.get("url") or [None])[0]
        if inner:
            return inner
    return url


def is_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _extension(url: str) -> str:
    return os.path.splitext(urlparse(url).path)[1].lower()


def is_likely_image(url: str) -> bool:
    return _extension(url) in IMAGE_EXTENSIONS


def is_likely_video(url: str) -> bool:
    if _extension(url) in VIDEO_EXTENSIONS:
        return True
    host = (urlparse(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in VIDEO_HOSTS)


def _clean(url: Optional[str]) -> Optional[str]:
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None
    return normalize_google_redirect(url)


def clean_media_url(url: Optional[str]) -> Optional[str]:
    url = _clean(url)
    if url and (not is_http_url(url) or not is_likely_image(url)):
        raise ValueError(MEDIA_URL_ERROR)
    return url


def clean_video_url(url: Optional[str]) -> Optional[str]:
    url = _clean(url)
    if url and (not is_http_url(url) or not is_likely_video(url)):
        raise ValueError(VIDEO_URL_ERROR)
    return url
