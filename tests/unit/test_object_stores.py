"""Unit tests for the Cloudinary and local filesystem object stores."""
from unittest.mock import patch

import cloudinary.exceptions
import pytest

from housing.domain.entities.housing_share import MediaFile
from housing.domain.errors import ObjectStoreError
from housing.infrastructure.object_store.cloudinary_store import CloudinaryObjectStore
from housing.infrastructure.object_store.local_store import LocalFileObjectStore

JPEG = MediaFile(filename="room.jpg", content=b"\xff\xd8\xffdata", content_type="image/jpeg")

UPLOAD = "housing.infrastructure.object_store.cloudinary_store.cloudinary.uploader.upload"
DESTROY = "housing.infrastructure.object_store.cloudinary_store.cloudinary.uploader.destroy"


def _cloudinary() -> CloudinaryObjectStore:
    return CloudinaryObjectStore(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        folder="housing-shares",
        timeout=5,
    )


class TestCloudinaryObjectStore:
    def test_requires_credentials(self) -> None:
        with pytest.raises(ObjectStoreError):
            CloudinaryObjectStore(cloud_name="", api_key="", api_secret="")

    @pytest.mark.asyncio
    async def test_upload_returns_ref(self) -> None:
        with patch(
            UPLOAD,
            return_value={
                "secure_url": "https://res.cloudinary.test/demo/abc.jpg",
                "public_id": "housing-shares/abc",
            },
        ) as upload:
            ref = await _cloudinary().upload(JPEG)

        assert ref.url == "https://res.cloudinary.test/demo/abc.jpg"
        assert ref.deletable_id == "housing-shares/abc"
        args, kwargs = upload.call_args
        assert args[0].read() == JPEG.content
        assert kwargs["folder"] == "housing-shares"
        assert kwargs["cloud_name"] == "demo"
        assert kwargs["api_key"] == "key"
        assert kwargs["timeout"] == 5

    @pytest.mark.asyncio
    async def test_upload_sdk_error(self) -> None:
        with patch(UPLOAD, side_effect=cloudinary.exceptions.Error("Socket error: unreachable")):
            with pytest.raises(ObjectStoreError):
                await _cloudinary().upload(JPEG)

    @pytest.mark.asyncio
    async def test_upload_incomplete_response(self) -> None:
        with patch(UPLOAD, return_value={"secure_url": "x"}):
            with pytest.raises(ObjectStoreError):
                await _cloudinary().upload(JPEG)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", ["ok", "not found"])
    async def test_delete_accepts_ok_and_not_found(self, result: str) -> None:
        with patch(DESTROY, return_value={"result": result}) as destroy:
            await _cloudinary().delete("housing-shares/abc")
        assert destroy.call_args.args == ("housing-shares/abc",)

    @pytest.mark.asyncio
    async def test_delete_unexpected_result(self) -> None:
        with patch(DESTROY, return_value={"result": "error"}):
            with pytest.raises(ObjectStoreError):
                await _cloudinary().delete("housing-shares/abc")

    @pytest.mark.asyncio
    async def test_delete_sdk_error(self) -> None:
        with patch(DESTROY, side_effect=cloudinary.exceptions.Error("Server returned 500")):
            with pytest.raises(ObjectStoreError):
                await _cloudinary().delete("housing-shares/abc")


class TestLocalFileObjectStore:
    @pytest.mark.asyncio
    async def test_upload_then_delete(self, tmp_path) -> None:
        store = LocalFileObjectStore(str(tmp_path), "http://localhost:8000/media/")

        ref = await store.upload(JPEG)

        assert ref.url == f"http://localhost:8000/media/{ref.deletable_id}"
        assert ref.deletable_id.endswith(".jpg")
        assert (tmp_path / ref.deletable_id).read_bytes() == JPEG.content

        await store.delete(ref.deletable_id)
        assert not (tmp_path / ref.deletable_id).exists()

    @pytest.mark.asyncio
    async def test_delete_unknown_is_not_an_error(self, tmp_path) -> None:
        store = LocalFileObjectStore(str(tmp_path), "http://localhost:8000/media")
        await store.delete("missing.jpg")

    @pytest.mark.asyncio
    async def test_rejects_path_traversal(self, tmp_path) -> None:
        store = LocalFileObjectStore(str(tmp_path / "media"), "http://localhost:8000/media")
        with pytest.raises(ObjectStoreError):
            await store.delete("../secret.txt")
