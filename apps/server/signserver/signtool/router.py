"""Signing endpoints.

  GET  /api/signtool/ping  liveness probe
  POST /api/signtool/sign  sign the files of an uploaded archive

The sign call blocks until the tool exits (bounded by the configured
timeout). The tool runs in the threadpool so other requests keep being
served meanwhile.
"""

import logging
import zipfile

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from signcommon.archive import ArchiveError
from signcommon.schemas import SignRequest, SignResult
from signserver.core.config import Settings, get_settings
from signserver.signtool.invoker import SignToolInvoker, get_sign_tool
from signserver.signtool.service import (
    ArchiveNotFoundError,
    SignToolNotFoundError,
    sign_archive,
)
from signserver.storage.archives import ArchiveStorage, InvalidArchiveName, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/signtool", tags=["signtool"])


@router.get("/ping")
async def ping() -> dict[str, str]:
    logger.info("Ping received")
    return {"status": "ok"}


@router.post("/sign", response_model=SignResult, response_model_exclude_none=True)
async def sign(
    body: SignRequest,
    request: Request,
    storage: ArchiveStorage = Depends(get_storage),
    invoker: SignToolInvoker = Depends(get_sign_tool),
    settings: Settings = Depends(get_settings),
) -> SignResult:
    """Run the signing tool over an uploaded archive.

    Responds 200 with the tool's exit code and output whether or not the
    tool succeeded; `downloadUrl` is included only on exit code 0.
    """
    logger.info("Start signing files from %s", body.archive_name)

    try:
        outcome = await run_in_threadpool(
            sign_archive,
            storage,
            invoker,
            body.archive_name,
            body.subcommands,
            settings.sign_timeout_seconds,
        )
    except InvalidArchiveName as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ArchiveNotFoundError as exc:
        logger.warning("Archive has not been found: %s", body.archive_name)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except SignToolNotFoundError as exc:
        logger.error("SignTool is not installed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        )
    except (ArchiveError, zipfile.BadZipFile) as exc:
        logger.error("Cannot extract %s: %s", body.archive_name, exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid archive: {exc}",
        )

    download_url = None
    if outcome.signed_archive_name:
        download_url = str(request.url_for("download_archive", name=outcome.signed_archive_name))

    return SignResult(
        exit_code=outcome.invocation.exit_code,
        standard_output=outcome.invocation.stdout,
        standard_error=outcome.invocation.stderr,
        download_url=download_url,
    )
