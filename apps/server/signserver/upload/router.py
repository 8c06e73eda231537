"""Archive transfer endpoints.

  POST /api/upload/save              store one or more multipart files
  GET  /api/upload/download/{name}   stream a stored archive back
  POST /api/upload/remove            delete stored archives by name

Every stored file is addressed by its plain file name; any directory
component in an uploaded file name is discarded.
"""

import logging
from pathlib import PureWindowsPath
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from signserver.storage.archives import ArchiveStorage, InvalidArchiveName, get_storage
from signserver.upload.schemas import RemoveResponse, SaveResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


def _base_name(file_name: str) -> str:
    # PureWindowsPath splits on both `/` and `\`
    return PureWindowsPath(file_name).name


@router.post("/save", response_model=SaveResponse)
async def save(
    request: Request,
    storage: ArchiveStorage = Depends(get_storage),
) -> SaveResponse:
    """Store every file part of a multipart upload under its declared name.

    Existing files with the same name are overwritten. Empty parts are
    skipped. A request with no file part at all is rejected.
    """
    form = await request.form()
    uploads = [value for _, value in form.multi_items() if isinstance(value, UploadFile)]

    if not uploads:
        logger.warning("No file sent in the request.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file sent in the request.",
        )

    saved: list[str] = []
    for upload in uploads:
        name = _base_name(upload.filename or "")
        if not upload.size:
            logger.warning("Skipping empty upload: %s", name or "<unnamed>")
            continue
        try:
            await run_in_threadpool(storage.save, name, upload.file)
        except InvalidArchiveName as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        saved.append(name)

    return SaveResponse(saved=saved)


@router.get("/download/{name}", name="download_archive")
async def download(
    name: str,
    storage: ArchiveStorage = Depends(get_storage),
) -> FileResponse:
    """Stream a stored archive as application/octet-stream."""
    try:
        path = storage.path_for(name)
    except InvalidArchiveName:
        path = None

    if path is None or not path.is_file():
        logger.warning("File not found for download: %s", name)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    logger.info("Downloading file: %s", name)
    return FileResponse(path, media_type="application/octet-stream", filename=name)


@router.post("/remove", response_model=RemoveResponse)
async def remove(
    names: Optional[list[str]] = Body(default=None),
    storage: ArchiveStorage = Depends(get_storage),
) -> RemoveResponse:
    """Delete each named archive if present. Missing names are not an error."""
    removed: list[str] = []
    for name in names or []:
        try:
            if storage.remove(name):
                removed.append(name)
        except InvalidArchiveName as exc:
            logger.warning("Refusing to remove %r: %s", name, exc)

    return RemoveResponse(removed=removed)
