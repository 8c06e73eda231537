"""Protocol driver for one remote sign round trip.

Steps run strictly in sequence; each starts only after the previous one
fully succeeded:

  1. package       zip the resolved files into a private transient area
  2. upload        POST /api/upload/save (multipart)
  3. invoke-sign   POST /api/signtool/sign, JSON in and out
  4. download      GET the result archive named by downloadUrl
  5. redistribute  unpack and copy every signed file over its original
  6. remote clean  POST /api/upload/remove (best effort, never fails the run)
  7. local clean   delete the transient area, on every exit path

Once the upload succeeded, remote cleanup is always attempted, even when a
later step fails. Transport failures are never retried.
"""

import logging
import shutil
import tempfile
import uuid
import zipfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional
from urllib.parse import unquote, urlparse

import httpx
from pydantic import ValidationError

from signclient.errors import FileTransferError, ServerCommunicationError, SignToolExitError
from signclient.files.types import ResolvedFileSet
from signclient.options.types import ClassifiedRequest
from signclient.transfer.types import TransferReport
from signcommon.archive import ArchiveError, pack, unpack
from signcommon.schemas import SignRequest, SignResult

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload/save"
SIGN_PATH = "/api/signtool/sign"
REMOVE_PATH = "/api/upload/remove"

ARCHIVE_CONTENT_TYPE = "application/zip"

# Default timeout for every HTTP step; sign blocks while the tool runs
DEFAULT_TIMEOUT = 600.0

_DOWNLOAD_CHUNK_SIZE = 64 * 1024


class _ProgressLog:
    """Log transfer progress each time another quarter completes."""

    def __init__(self, prefix: str, total: int):
        self.prefix = prefix
        self.total = total
        self.transferred = 0
        self._last_quarter = 0

    def advance(self, size: int) -> None:
        self.transferred += size
        if not self.total:
            return
        quarter = min(4, self.transferred * 4 // self.total)
        if quarter > self._last_quarter:
            self._last_quarter = quarter
            logger.info(
                "%s (%d%%) Transferred: %d, Total: %d",
                self.prefix, quarter * 25, self.transferred, self.total,
            )


class _ProgressReader:
    """Binary file wrapper that reports each chunk httpx reads from it."""

    def __init__(self, fh: BinaryIO, progress: _ProgressLog):
        self._fh = fh
        self._progress = progress

    def read(self, size: int = -1) -> bytes:
        chunk = self._fh.read(size)
        self._progress.advance(len(chunk))
        return chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._fh.seek(offset, whence)

    def tell(self) -> int:
        return self._fh.tell()

    def fileno(self) -> int:
        return self._fh.fileno()


async def _ensure_success(step: str, response: httpx.Response) -> None:
    """Log and raise for any non-2xx response."""
    if response.is_success:
        return
    await response.aread()
    logger.error("Status code: %d", response.status_code)
    logger.error(response.text)
    raise ServerCommunicationError(
        step,
        f"Server responded with HTTP {response.status_code}",
        status_code=response.status_code,
    )


def _archive_name_from_url(url: str) -> str:
    """Return the archive file name at the end of a download URL."""
    name = unquote(PurePosixPath(urlparse(url).path).name)
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ServerCommunicationError("sign", f"Invalid download URL: {url}")
    return name


class TransferClient:
    """Drives the upload -> sign -> download exchange with one server.

    `transport` is handed to httpx unchanged; tests pass an ASGITransport
    wired to the server app.
    """

    def __init__(
        self,
        server_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        temp_dir: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.server_url = server_url
        self.timeout = timeout
        self.temp_dir = temp_dir
        self.transport = transport

    async def sign(
        self,
        request: ClassifiedRequest,
        files: ResolvedFileSet,
    ) -> TransferReport:
        """Sign `files` remotely with the forwarded options of `request`.

        Raises:
            ServerCommunicationError: On any transport or protocol failure.
            SignToolExitError: If the signing tool exits nonzero.
            FileTransferError: On local packing, unpacking or copy failure.
        """
        workspace = Path(tempfile.mkdtemp(prefix="remotesign-", dir=self.temp_dir))
        archive_name = f"{uuid.uuid4().hex}.zip"
        archive_path = workspace / archive_name

        try:
            self._package(files, archive_path)

            async with httpx.AsyncClient(
                base_url=self.server_url,
                timeout=self.timeout,
                transport=self.transport,
                headers={"Accept": "application/json"},
            ) as client:
                await self._upload(client, archive_path)

                remote_names = [archive_name]
                try:
                    result = await self._invoke_sign(client, archive_name, request.subcommands)
                    signed_name = _archive_name_from_url(result.download_url)
                    remote_names.append(signed_name)

                    signed_path = workspace / signed_name
                    await self._download(client, result.download_url, signed_path)
                    updated = self._redistribute(signed_path, workspace / "signed", files)
                finally:
                    await self._remove_remote(client, remote_names)
        finally:
            shutil.rmtree(workspace, ignore_errors=True)

        return TransferReport(archive_name=archive_name, result=result, updated_files=updated)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _package(self, files: ResolvedFileSet, archive_path: Path) -> None:
        try:
            pack(files.files, archive_path)
        except (OSError, ValueError) as exc:
            raise FileTransferError(f"Failed to create archive {archive_path.name}: {exc}") from exc

    async def _upload(self, client: httpx.AsyncClient, archive_path: Path) -> None:
        size = archive_path.stat().st_size
        logger.info("Uploading zip file: %s (%d bytes)", archive_path.name, size)

        try:
            with open(archive_path, "rb") as fh:
                body = _ProgressReader(fh, _ProgressLog("Send:", size))
                response = await client.post(
                    UPLOAD_PATH,
                    files={"file": (archive_path.name, body, ARCHIVE_CONTENT_TYPE)},
                )
        except httpx.HTTPError as exc:
            raise ServerCommunicationError("upload", str(exc)) from exc

        await _ensure_success("upload", response)

    async def _invoke_sign(
        self,
        client: httpx.AsyncClient,
        archive_name: str,
        subcommands: str,
    ) -> SignResult:
        logger.info("Perform sign for: %s, using commands: %s", archive_name, subcommands)
        payload = SignRequest(archive_name=archive_name, subcommands=subcommands)

        try:
            response = await client.post(SIGN_PATH, json=payload.model_dump(by_alias=True))
        except httpx.HTTPError as exc:
            raise ServerCommunicationError("sign", str(exc)) from exc

        await _ensure_success("sign", response)

        try:
            result = SignResult.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ServerCommunicationError("sign", f"Malformed sign response: {exc}") from exc

        if not result.is_success:
            logger.error("signtool exited with code: %d", result.exit_code)
            logger.error("signtool stdout:\n%s", result.standard_output)
            logger.error("signtool stderr:\n%s", result.standard_error)
            raise SignToolExitError(result)

        if not result.download_url:
            raise ServerCommunicationError("sign", "Successful sign response carries no downloadUrl")

        return result

    async def _download(self, client: httpx.AsyncClient, url: str, destination: Path) -> None:
        logger.info("Begin to download signed archive: %s", destination.name)

        try:
            async with client.stream("GET", url) as response:
                await _ensure_success("download", response)
                total = int(response.headers.get("Content-Length") or 0)
                progress = _ProgressLog("Receive:", total)
                with open(destination, "wb") as fh:
                    async for chunk in response.aiter_bytes(_DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
                        progress.advance(len(chunk))
        except httpx.HTTPError as exc:
            raise ServerCommunicationError("download", str(exc)) from exc
        except OSError as exc:
            raise FileTransferError(f"Failed to write {destination.name}: {exc}") from exc

    def _redistribute(
        self,
        signed_archive: Path,
        unpack_dir: Path,
        files: ResolvedFileSet,
    ) -> list[Path]:
        """Copy every signed file over the original it came from."""
        try:
            produced = unpack(signed_archive, unpack_dir)
        except (OSError, ArchiveError, zipfile.BadZipFile) as exc:
            raise FileTransferError(f"Failed to unpack {signed_archive.name}: {exc}") from exc

        updated: list[Path] = []
        for name in sorted(produced):
            base_name = PurePosixPath(name).name
            if base_name not in files:
                logger.warning("Ignoring unexpected file in signed archive: %s", name)
                continue

            destination = files.source_path(base_name)
            try:
                shutil.copy2(unpack_dir.joinpath(*PurePosixPath(name).parts), destination)
            except OSError as exc:
                raise FileTransferError(f"Failed to overwrite {destination}: {exc}") from exc
            logger.info("Updated signed file: %s", destination)
            updated.append(destination)

        return updated

    async def _remove_remote(self, client: httpx.AsyncClient, names: list[str]) -> None:
        logger.info("Delete archives %s from server", ", ".join(names))
        try:
            response = await client.post(REMOVE_PATH, json=names)
        except httpx.HTTPError as exc:
            logger.warning("Failed to remove archives from server: %s", exc)
            return

        if not response.is_success:
            logger.warning(
                "Failed to remove archives from server: HTTP %d %s",
                response.status_code, response.text,
            )
