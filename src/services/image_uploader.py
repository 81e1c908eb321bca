# src/services/image_uploader.py

"""Hands hi-res product images to a remote image-upload function."""

import logging

from curl_cffi import requests as curl_requests

from src.config.settings import Settings

logger = logging.getLogger("warehouse_scraper.images")

_UPLOADED_MARKER = "S3 Upload of Full-Size and Thumbnail WebPs"
_EXISTS_MARKER = "already exists"


class ImageUploader:
    """GETs ``<func_url><product id>&source=<image url>`` per product.

    The function URL is expected to end with a query parameter awaiting
    the destination key, e.g.
    ``https://<app>.azurewebsites.net/api/ImageToS3?code=<key>&destination=s3://<bucket>/``.
    """

    def __init__(self, func_url: str = Settings.IMAGE_UPLOAD_FUNC_URL) -> None:
        if not func_url.startswith("http"):
            msg = f"Invalid image upload function URL: {func_url!r}"
            raise ValueError(msg)
        self.func_url = func_url
        self.session = curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )

    def close(self) -> None:
        """Release the HTTP session."""
        self.session.close()

    def upload(self, product_id: str, image_url: str) -> bool:
        """Request an upload; returns True when a new image was stored."""
        if not image_url:
            return False

        rest_url = f"{self.func_url}{product_id}&source={image_url}"
        try:
            resp = self.session.get(
                rest_url, timeout=Settings.IMAGE_UPLOAD_TIMEOUT
            )
        except Exception as exc:
            logger.warning(
                "Image upload request failed for %s: %s",
                product_id,
                exc,
                exc_info=True,
            )
            return False

        text = resp.text
        if _UPLOADED_MARKER in text:
            logger.info("  New Image  : %8s", product_id)
            return True
        if _EXISTS_MARKER in text:
            return False

        logger.warning(
            "Unexpected image upload response for %s (HTTP %d): %s",
            product_id,
            resp.status_code,
            text[:200],
        )
        return False
