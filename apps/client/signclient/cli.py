"""Command-line entry point: `remotesign sign <options> <file-or-glob>...`.

Arguments mirror a local `signtool sign` invocation. Options are checked
against the catalogs and files resolved before anything is sent to the
server, so input errors never touch the network.
"""

import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import Optional

from signclient.config import ClientSettings, get_settings
from signclient.errors import ExitCode, RemoteSignError, ServerUrlNotConfiguredError
from signclient.files import resolve_files
from signclient.options import classify
from signclient.transfer import TransferClient
from signcommon.logging import configure_structlog

logger = logging.getLogger(__name__)


def run(args: Sequence[str], settings: ClientSettings, transport=None) -> ExitCode:
    """Execute one sign invocation and return its exit code."""
    try:
        request = classify(args)

        if not settings.server_url.strip():
            raise ServerUrlNotConfiguredError("REMOTESIGN_SERVER_URL is not configured")

        files = resolve_files(request.file_patterns)

        client = TransferClient(
            settings.server_url,
            timeout=settings.request_timeout_seconds,
            temp_dir=settings.temp_dir,
            transport=transport,
        )
        report = asyncio.run(client.sign(request, files))
    except RemoteSignError as exc:
        logger.error("%s", exc)
        return exc.exit_code

    logger.info("Signed %d file(s)", len(report.updated_files))
    return ExitCode.OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    configure_structlog(debug=settings.debug)
    args = list(sys.argv[1:] if argv is None else argv)
    return int(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
