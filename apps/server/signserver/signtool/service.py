"""Server side of one sign request.

Extracts an uploaded archive into a fresh working directory, runs the
signing tool over it, and on success packs the signed files into
`<request stem>_signed.zip` next to the request archive in storage.

The working directory is removed before returning, whatever the outcome.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from signcommon.archive import pack, unpack
from signserver.signtool.invoker import DEFAULT_TIMEOUT, InvocationResult, SignToolInvoker
from signserver.storage.archives import ArchiveStorage

logger = logging.getLogger(__name__)

SIGNED_ARCHIVE_SUFFIX = "_signed.zip"


class ArchiveNotFoundError(Exception):
    def __init__(self, archive_name: str):
        self.archive_name = archive_name
        super().__init__(f"Archive has not been found: {archive_name}")


class SignToolNotFoundError(Exception):
    """Raised when the signing tool is not installed on this host."""


@dataclass
class SignOutcome:
    """Tool result plus the stored result archive name on success."""

    invocation: InvocationResult
    signed_archive_name: Optional[str] = None


def signed_archive_name(archive_name: str) -> str:
    return f"{Path(archive_name).stem}{SIGNED_ARCHIVE_SUFFIX}"


def sign_archive(
    storage: ArchiveStorage,
    invoker: SignToolInvoker,
    archive_name: str,
    subcommands: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> SignOutcome:
    """Sign every file of a stored archive.

    Raises:
        ArchiveNotFoundError: If `archive_name` is not in storage.
        SignToolNotFoundError: If the invoker cannot locate the tool.
        ArchiveError / zipfile.BadZipFile: If the archive cannot be extracted.
    """
    if not storage.exists(archive_name):
        raise ArchiveNotFoundError(archive_name)

    tool_path = invoker.locate()
    if tool_path is None:
        raise SignToolNotFoundError("SignTool is not installed")

    work_dir = storage.create_work_dir()
    try:
        unpack(storage.path_for(archive_name), work_dir)
        logger.info("Files have been extracted to: %s", work_dir)

        invocation = invoker.invoke(tool_path, subcommands, work_dir, timeout)
        if not invocation.is_success:
            logger.error("SignTool exited with code: %d", invocation.exit_code)
            logger.error(invocation.stderr)
            return SignOutcome(invocation=invocation)

        logger.info("SignTool successfully signed files")
        result_name = signed_archive_name(archive_name)
        result_path = storage.path_for(result_name)

        # Nested output is not carried back; the client only expects flat names
        signed_files = sorted(p for p in work_dir.iterdir() if p.is_file())
        try:
            pack(signed_files, result_path)
        except (OSError, ValueError):
            result_path.unlink(missing_ok=True)
            raise

        logger.info("Archive with signed files created: %s", result_name)
        return SignOutcome(invocation=invocation, signed_archive_name=result_name)
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)
        logger.debug("Working directory removed: %s", work_dir)
