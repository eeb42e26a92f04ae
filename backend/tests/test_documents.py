"""LocalDocumentStore and signed document link tests."""

from datetime import timedelta

import pytest

from conftest import pdf
from rentflow.auth.jwt import create_access_token, create_document_token
from rentflow.config import settings
from rentflow.services.documents import UploadedDocument, Visibility, is_upload


class TestLocalDocumentStore:
    def test_store_and_delete(self, store):
        path = store.store(pdf("contract.pdf"), "tenant-profiles/employment_contract", Visibility.PRIVATE)

        assert path.startswith("tenant-profiles/employment_contract/")
        assert path.endswith("_contract.pdf")
        assert store.exists(path, Visibility.PRIVATE)
        assert not store.exists(path, Visibility.PUBLIC)
        assert store.resolve(path, Visibility.PRIVATE).read_bytes() == pdf().content

        assert store.delete(path, Visibility.PRIVATE)
        assert not store.delete(path, Visibility.PRIVATE)

    def test_uploads_never_collide(self, store):
        first = store.store(pdf("same.pdf"), "applications", Visibility.PRIVATE)
        second = store.store(pdf("same.pdf"), "applications", Visibility.PRIVATE)
        assert first != second

    def test_filename_is_sanitised(self, store):
        path = store.store(pdf("../../secret.pdf"), "applications", Visibility.PRIVATE)

        assert path.startswith("applications/")
        assert path.count("/") == 1
        assert store.exists(path, Visibility.PRIVATE)

    def test_paths_cannot_escape_root(self, store):
        with pytest.raises(ValueError):
            store.resolve("../public/x.pdf", Visibility.PRIVATE)
        assert not store.exists("../../etc/passwd", Visibility.PRIVATE)

    def test_private_url_is_signed_link(self, store):
        path = store.store(pdf(), "applications", Visibility.PRIVATE)

        url = store.url(path, Visibility.PRIVATE)

        assert url.startswith(f"{settings.public_base_url.rstrip('/')}/api/documents/")

    def test_public_url_is_direct(self, store):
        path = store.store(pdf(), "listings", Visibility.PUBLIC)
        assert store.url(path, Visibility.PUBLIC).endswith(f"/storage/{path}")

    def test_missing_document_has_no_url(self, store):
        assert store.url("applications/missing.pdf", Visibility.PRIVATE) is None

    def test_is_upload(self):
        assert is_upload(UploadedDocument("a.pdf", b"x"))
        assert not is_upload(UploadedDocument("", b"x"))
        assert not is_upload({"path": "a.pdf"})
        assert not is_upload(None)


@pytest.mark.api
@pytest.mark.asyncio
class TestDocumentLinks:
    async def test_signed_link_downloads_file(self, client, store):
        path = store.store(pdf("payslip.pdf"), "tenant-profiles/payslip_1", Visibility.PRIVATE)
        token = store.url(path, Visibility.PRIVATE).rsplit("/", 1)[-1]

        response = await client.get(f"/api/documents/{token}")

        assert response.status_code == 200
        assert response.content == pdf().content
        assert "payslip.pdf" in response.headers["content-disposition"]

    async def test_access_token_is_not_a_document_link(self, client, tenant):
        token = create_access_token(user_id=tenant.id, role=tenant.role.value)
        response = await client.get(f"/api/documents/{token}")
        assert response.status_code == 403

    async def test_garbage_token(self, client):
        response = await client.get("/api/documents/not-a-token")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "HTTP_403"

    async def test_expired_link(self, client, store):
        path = store.store(pdf(), "applications", Visibility.PRIVATE)
        token = create_document_token(path, "private", ttl_seconds=-60)

        response = await client.get(f"/api/documents/{token}")

        assert response.status_code == 403

    async def test_deleted_document(self, client, store):
        path = store.store(pdf(), "applications", Visibility.PRIVATE)
        token = create_document_token(path, "private", ttl_seconds=int(timedelta(minutes=5).total_seconds()))
        store.delete(path, Visibility.PRIVATE)

        response = await client.get(f"/api/documents/{token}")

        assert response.status_code == 404

    async def test_link_outside_storage_root(self, client):
        token = create_document_token("../../config.py", "private", ttl_seconds=60)
        response = await client.get(f"/api/documents/{token}")
        assert response.status_code == 403
