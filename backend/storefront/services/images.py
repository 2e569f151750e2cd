"""
Image hosting for product photos.

Two hosts are available: a local directory (development and tests) and
Cloudinary's signed upload API.
"""

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

import requests

from ..errors import ImageHostError
from ..models.product import Photo
from ..utils.config import StorefrontConfig

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    """An uploaded file as received from the client."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


class ImageHost(ABC):
    """Stores photos and hands back their public URL and id."""

    @abstractmethod
    def upload(self, files: List[ImageUpload]) -> List[Photo]:
        """Upload every file, all or nothing."""

    @abstractmethod
    def delete(self, public_ids: List[str]) -> None:
        """Delete images by public id."""


class LocalImageHost(ImageHost):
    """Writes photos under a directory and serves them as ``file://`` URLs."""

    def __init__(self, base_dir):
        self.base_dir = Path(base_dir)

    def upload(self, files: List[ImageUpload]) -> List[Photo]:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        photos: List[Photo] = []
        try:
            for upload in files:
                public_id = f"{uuid4().hex}{Path(upload.filename).suffix.lower()}"
                path = (self.base_dir / public_id).resolve()
                path.write_bytes(upload.content)
                photos.append(Photo(url=path.as_uri(), public_id=public_id))
        except OSError as e:
            self.delete([photo.public_id for photo in photos])
            raise ImageHostError(f"Failed to store image: {e}") from e

        logger.debug(f"Stored {len(photos)} image(s) in {self.base_dir}")
        return photos

    def delete(self, public_ids: List[str]) -> None:
        for public_id in public_ids:
            path = self.base_dir / Path(public_id).name
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug(f"Image already gone: {public_id}")
            except OSError as e:
                raise ImageHostError(f"Failed to delete image {public_id}: {e}") from e


class CloudinaryImageHost(ImageHost):
    """
    Cloudinary upload API client.

    Requests are signed with the API secret: the SHA-1 of the sorted
    ``key=value`` parameters joined by ``&`` with the secret appended.
    """

    API_URL = "https://api.cloudinary.com/v1_1"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "storefront",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return f"{self.API_URL}/{self.cloud_name}/image"

    def sign(self, params: Dict[str, str]) -> str:
        payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{payload}{self.api_secret}".encode("utf-8")).hexdigest()

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        params = {**params, "timestamp": str(int(time.time()))}
        return {**params, "api_key": self.api_key, "signature": self.sign(params)}

    def _post(self, action: str, data: Dict[str, str], files=None) -> dict:
        try:
            response = self.session.post(
                f"{self.base_url}/{action}", data=data, files=files, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise ImageHostError(f"Image host request failed ({action}): {e}") from e
        except ValueError as e:
            raise ImageHostError(f"Image host returned an invalid response ({action})") from e

    def upload(self, files: List[ImageUpload]) -> List[Photo]:
        photos: List[Photo] = []
        try:
            for upload in files:
                result = self._post(
                    "upload",
                    data=self._signed({"folder": self.folder}),
                    files={"file": (upload.filename, upload.content, upload.content_type)},
                )
                photos.append(Photo(url=result["secure_url"], public_id=result["public_id"]))
        except (ImageHostError, KeyError) as e:
            if photos:
                logger.warning(f"Upload failed, removing {len(photos)} uploaded image(s)")
                self.delete([photo.public_id for photo in photos])
            if isinstance(e, KeyError):
                raise ImageHostError(f"Image host response is missing {e}") from e
            raise

        logger.info(f"Uploaded {len(photos)} image(s) to Cloudinary")
        return photos

    def delete(self, public_ids: List[str]) -> None:
        for public_id in public_ids:
            self._post("destroy", data=self._signed({"public_id": public_id}))
        if public_ids:
            logger.info(f"Deleted {len(public_ids)} image(s) from Cloudinary")


def create_image_host(settings: StorefrontConfig) -> ImageHost:
    """Image host selected by ``IMAGE_HOST``."""
    if settings.image_host == "cloudinary":
        return CloudinaryImageHost(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
        )
    return LocalImageHost(settings.image_upload_dir)
