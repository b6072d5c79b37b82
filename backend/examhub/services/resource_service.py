import os
import re
from typing import Callable, List
from urllib.parse import urlparse, unquote, quote, urlencode

import httpx

from ..config import PROXY_TIMEOUT


IMAGE_EXTS = {"png", "jpg", "jpeg", "gif", "webp", "bmp", "svg"}
DOC_EXTS = {"doc", "docx", "ppt", "pptx", "xls", "xlsx", "txt", "rtf", "odt", "ods", "odp"}

DOC_VIEWER_URL = "https://docs.google.com/gview?embedded=1&url={url}"

_CD_FILENAME = re.compile(r"filename\*?=(?:UTF-8''|\")?([^\";]+)", re.IGNORECASE)


def normalize_subjects(subject_mode: str, names: List[str]) -> List[str]:
    """Drop blank subject names and check the count against the mode.

    `single` needs exactly one name, `multiple` at least two.
    """
    trimmed = [str(n or "").strip() for n in names]
    trimmed = [n for n in trimmed if n]
    if not trimmed:
        raise ValueError("Missing required fields.")
    if subject_mode == "single" and len(trimmed) != 1:
        raise ValueError("Single subject mode requires exactly one subject name.")
    if subject_mode == "multiple" and len(trimmed) < 2:
        raise ValueError("Multiple subject mode requires at least two subject names.")
    return trimmed


def url_extension(url: str) -> str:
    try:
        last = urlparse(url).path.rsplit("/", 1)[-1]
    except ValueError:
        last = url.split("?")[0]
    last = last.lower()
    return last.rsplit(".", 1)[-1] if "." in last else ""


def classify_resource(url: str) -> str:
    ext = url_extension(url)
    if ext in IMAGE_EXTS:
        return "image"
    if ext == "pdf":
        return "pdf"
    if ext in DOC_EXTS:
        return "doc"
    return "unknown"


def proxy_path(url: str, download: bool = False) -> str:
    query = urlencode({"url": url, "download": "1" if download else "0"})
    return f"/api/previous-questions/proxy?{query}"


def preview_source(url: str) -> dict:
    # office documents render better in the embedded viewer, everything else goes through the proxy
    mode = classify_resource(url)
    if mode == "doc":
        src = DOC_VIEWER_URL.format(url=quote(url, safe=""))
    else:
        src = proxy_path(url)
    return {"mode": mode, "src": src}


def download_filename(url: str, content_disposition: str | None) -> str:
    match = _CD_FILENAME.search(content_disposition or "")
    if match and match.group(1).strip():
        return unquote(match.group(1).strip())
    try:
        last = os.path.basename(urlparse(url).path)
    except ValueError:
        last = ""
    return unquote(last) if last else "file"


def content_disposition(filename: str, download: bool) -> str:
    kind = "attachment" if download else "inline"
    return f"{kind}; filename*=UTF-8''{quote(filename, safe='')}"


def new_http_client() -> httpx.AsyncClient:
    # closed by the proxy route once the response body has been sent
    return httpx.AsyncClient(follow_redirects=True, timeout=PROXY_TIMEOUT)


def get_http_client_factory() -> Callable[[], httpx.AsyncClient]:
    """Hands routes a factory so a client exists only once a request is valid."""
    return new_http_client
