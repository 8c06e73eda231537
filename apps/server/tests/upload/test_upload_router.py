"""Tests for the /api/upload endpoints: save, download, remove."""

import threading

from httpx import AsyncClient

from signserver.storage.archives import ArchiveStorage


class TestSave:
    async def test_saves_uploaded_file(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.post(
            "/api/upload/save",
            files={"file": ("request.zip", b"zip-bytes", "application/zip")},
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "saved": ["request.zip"]}
        assert (storage_dir / "request.zip").read_bytes() == b"zip-bytes"

    async def test_overwrites_existing_file(self, client: AsyncClient, storage_dir) -> None:
        (storage_dir / "request.zip").write_bytes(b"old")

        resp = await client.post(
            "/api/upload/save",
            files={"file": ("request.zip", b"new", "application/zip")},
        )
        assert resp.status_code == 200
        assert (storage_dir / "request.zip").read_bytes() == b"new"

    async def test_saves_multiple_files(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.post(
            "/api/upload/save",
            files=[
                ("file", ("a.zip", b"aaa", "application/zip")),
                ("other", ("b.zip", b"bbb", "application/zip")),
            ],
        )
        assert resp.status_code == 200
        assert sorted(resp.json()["saved"]) == ["a.zip", "b.zip"]
        assert (storage_dir / "a.zip").exists()
        assert (storage_dir / "b.zip").exists()

    async def test_strips_directory_from_file_name(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.post(
            "/api/upload/save",
            files={"file": ("..\\..\\evil\\request.zip", b"x", "application/zip")},
        )
        assert resp.status_code == 200
        assert resp.json()["saved"] == ["request.zip"]
        assert (storage_dir / "request.zip").exists()

    async def test_skips_empty_parts(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.post(
            "/api/upload/save",
            files=[
                ("file", ("empty.zip", b"", "application/zip")),
                ("file", ("full.zip", b"data", "application/zip")),
            ],
        )
        assert resp.status_code == 200
        assert resp.json()["saved"] == ["full.zip"]
        assert not (storage_dir / "empty.zip").exists()

    async def test_file_is_written_off_the_event_loop(
        self, client: AsyncClient, storage_dir, monkeypatch
    ) -> None:
        writer_threads = []
        original_save = ArchiveStorage.save

        def recording_save(self, name, stream):
            writer_threads.append(threading.get_ident())
            return original_save(self, name, stream)

        monkeypatch.setattr(ArchiveStorage, "save", recording_save)

        resp = await client.post(
            "/api/upload/save",
            files={"file": ("request.zip", b"zip-bytes", "application/zip")},
        )
        assert resp.status_code == 200
        assert len(writer_threads) == 1
        assert writer_threads[0] != threading.get_ident()

    async def test_rejects_request_without_files(self, client: AsyncClient) -> None:
        resp = await client.post("/api/upload/save", data={"field": "value"})
        assert resp.status_code == 400

    async def test_rejects_empty_body(self, client: AsyncClient) -> None:
        resp = await client.post("/api/upload/save")
        assert resp.status_code == 400


class TestDownload:
    async def test_streams_stored_file(self, client: AsyncClient, storage_dir) -> None:
        (storage_dir / "result_signed.zip").write_bytes(b"signed-bytes")

        resp = await client.get("/api/upload/download/result_signed.zip")
        assert resp.status_code == 200
        assert resp.content == b"signed-bytes"
        assert resp.headers["content-type"] == "application/octet-stream"
        assert "result_signed.zip" in resp.headers["content-disposition"]

    async def test_missing_file_is_404(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.get("/api/upload/download/missing.zip")
        assert resp.status_code == 404

    async def test_traversal_name_is_404(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.get("/api/upload/download/..%5Csecret.txt")
        assert resp.status_code == 404


class TestRemove:
    async def test_removes_named_files(self, client: AsyncClient, storage_dir) -> None:
        (storage_dir / "a.zip").write_bytes(b"a")
        (storage_dir / "a_signed.zip").write_bytes(b"b")

        resp = await client.post("/api/upload/remove", json=["a.zip", "a_signed.zip"])
        assert resp.status_code == 200
        assert sorted(resp.json()["removed"]) == ["a.zip", "a_signed.zip"]
        assert list(storage_dir.iterdir()) == []

    async def test_missing_names_are_not_an_error(self, client: AsyncClient, storage_dir) -> None:
        resp = await client.post("/api/upload/remove", json=["never-uploaded.zip"])
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "removed": []}

    async def test_remove_is_idempotent(self, client: AsyncClient, storage_dir) -> None:
        (storage_dir / "a.zip").write_bytes(b"a")

        first = await client.post("/api/upload/remove", json=["a.zip"])
        second = await client.post("/api/upload/remove", json=["a.zip"])

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["removed"] == ["a.zip"]
        assert second.json()["removed"] == []

    async def test_unsafe_names_are_ignored(self, client: AsyncClient, storage_dir, tmp_path) -> None:
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")

        resp = await client.post("/api/upload/remove", json=["../keep.txt"])
        assert resp.status_code == 200
        assert outside.exists()
