import logging
import os
import secrets
import time

from fastapi import HTTPException, Request, UploadFile, status

from ..config import MEDIA_DIR, MEDIA_BASE_URL

logger = logging.getLogger(__name__)

KEY_ATTEMPTS = 5


class MediaStorage:
    """Object storage on the local media directory.

    Objects are keyed `{epoch_ms}-{random hex}-{original name}` and served by
    the static mount at MEDIA_BASE_URL. `base_url` must be absolute so the
    returned URL can be stored on announcements and fetched by the proxy.
    """

    def __init__(self, base_url: str, root: str = MEDIA_DIR):
        self.root = root
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def object_key(filename: str) -> str:
        name = os.path.basename((filename or "").replace("\\", "/")).strip() or "file"
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{name}"

    def save(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        os.makedirs(self.root, exist_ok=True)
        for _ in range(KEY_ATTEMPTS):
            key = self.object_key(filename)
            try:
                # "xb" never overwrites an existing object
                with open(os.path.join(self.root, key), "xb") as f:
                    f.write(data)
                break
            except FileExistsError:
                logger.warning("Object key %s already taken, retrying", key)
        else:
            raise FileExistsError(f"No free object key for {filename}")
        logger.info("Stored %s (%s, %d bytes)", key, content_type or "unknown type", len(data))
        return f"{self.base_url}/{key}"


def public_media_url(request: Request) -> str:
    if MEDIA_BASE_URL.startswith("/"):
        return str(request.base_url).rstrip("/") + MEDIA_BASE_URL
    return MEDIA_BASE_URL


def get_storage(request: Request) -> MediaStorage:
    return MediaStorage(base_url=public_media_url(request))


async def store_upload(file: UploadFile, storage: MediaStorage) -> dict:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    try:
        url = storage.save(data, file.filename, file.content_type)
    except OSError:
        logger.exception("Upload of %s failed", file.filename)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed")
    return {"url": url}
