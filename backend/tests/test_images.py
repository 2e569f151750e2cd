"""
Tests for the image hosts.
"""

import hashlib
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from storefront.errors import ImageHostError
from storefront.services.images import (
    CloudinaryImageHost,
    ImageUpload,
    LocalImageHost,
    create_image_host,
)
from storefront.utils.config import StorefrontConfig


def make_upload(name="photo.JPG"):
    return ImageUpload(filename=name, content=b"\xff\xd8image", content_type="image/jpeg")


class TestLocalImageHost:

    def test_upload_writes_files(self, tmp_path):
        host = LocalImageHost(tmp_path / "uploads")
        photos = host.upload([make_upload(), make_upload("second.png")])

        assert len(photos) == 2
        assert photos[0].public_id.endswith(".jpg")
        assert photos[0].url.startswith("file://")
        assert (tmp_path / "uploads" / photos[0].public_id).read_bytes() == b"\xff\xd8image"

    def test_delete_removes_files(self, tmp_path):
        host = LocalImageHost(tmp_path)
        photo = host.upload([make_upload()])[0]

        host.delete([photo.public_id, "already-gone.jpg"])

        assert not (tmp_path / photo.public_id).exists()

    def test_delete_stays_inside_base_dir(self, tmp_path):
        outside = tmp_path / "outside.jpg"
        outside.write_bytes(b"keep")
        host = LocalImageHost(tmp_path / "uploads")

        host.delete(["../outside.jpg"])

        assert outside.exists()


class TestCloudinaryImageHost:

    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.host = CloudinaryImageHost("demo", "key", "secret", session=self.session)

    def test_signature(self):
        expected = hashlib.sha1(b"folder=storefront&timestamp=1700000000secret").hexdigest()
        assert self.host.sign({"timestamp": "1700000000", "folder": "storefront"}) == expected

    def test_upload_posts_signed_request(self):
        response = Mock()
        response.json.return_value = {
            "secure_url": "https://res.cloudinary.com/demo/a.jpg",
            "public_id": "storefront/a",
        }
        self.session.post.return_value = response

        photos = self.host.upload([make_upload()])

        assert photos[0].public_id == "storefront/a"
        url = self.session.post.call_args[0][0]
        data = self.session.post.call_args[1]["data"]
        assert url == "https://api.cloudinary.com/v1_1/demo/image/upload"
        assert data["api_key"] == "key"
        assert data["signature"] == self.host.sign(
            {"folder": "storefront", "timestamp": data["timestamp"]}
        )

    def test_http_failure_raises_and_removes_partial_uploads(self):
        ok = Mock()
        ok.json.return_value = {"secure_url": "https://x/a.jpg", "public_id": "storefront/a"}
        failed = Mock()
        failed.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        destroyed = Mock()
        destroyed.json.return_value = {"result": "ok"}
        self.session.post.side_effect = [ok, failed, destroyed]

        with pytest.raises(ImageHostError) as exc_info:
            self.host.upload([make_upload("a.jpg"), make_upload("b.jpg")])

        assert exc_info.value.status_code == 502
        destroy_call = self.session.post.call_args_list[-1]
        assert destroy_call[0][0].endswith("/image/destroy")
        assert destroy_call[1]["data"]["public_id"] == "storefront/a"

    def test_delete_failure_raises(self):
        self.session.post.side_effect = requests.exceptions.ConnectionError("offline")
        with pytest.raises(ImageHostError):
            self.host.delete(["storefront/a"])


class TestCreateImageHost:

    def test_local_by_default(self, tmp_path):
        host = create_image_host(StorefrontConfig(image_upload_dir=str(tmp_path)))
        assert isinstance(host, LocalImageHost)
        assert host.base_dir == Path(tmp_path)

    def test_cloudinary(self):
        host = create_image_host(StorefrontConfig(
            image_host="cloudinary",
            cloudinary_cloud_name="demo",
            cloudinary_api_key="key",
            cloudinary_api_secret="secret",
        ))
        assert isinstance(host, CloudinaryImageHost)
        assert host.base_url == "https://api.cloudinary.com/v1_1/demo/image"
