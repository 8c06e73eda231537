"""Exit codes and the exception hierarchy of the signing client.

Every failure category maps to exactly one process exit code. The values
are part of the command-line contract and must stay stable.
"""

from enum import IntEnum
from typing import Optional

from signcommon.schemas import SignResult


class ExitCode(IntEnum):
    OK = 0
    NO_ARGUMENTS = 1
    SERVER_URL_NOT_CONFIGURED = 2
    UNSUPPORTED_COMMAND = 3
    UNSUPPORTED_SUBCOMMAND = 4
    UNKNOWN_SUBCOMMAND = 5
    MISSING_OPTION_VALUE = 6
    DUPLICATE_FILE_NAME = 7
    NO_FILES_MATCHED = 8
    SERVER_COMMUNICATION_FAILED = 9
    SIGN_TOOL_INVALID_EXIT_CODE = 10
    FILE_TRANSFER_FAILED = 11


class RemoteSignError(Exception):
    """Base class for failures that end a sign invocation.

    Subclasses pin `exit_code` to their failure category.
    """

    exit_code: ExitCode = ExitCode.FILE_TRANSFER_FAILED


# ---------------------------------------------------------------------------
# Input errors: detected locally, before any network traffic
# ---------------------------------------------------------------------------


class NoArgumentsError(RemoteSignError):
    exit_code = ExitCode.NO_ARGUMENTS


class ServerUrlNotConfiguredError(RemoteSignError):
    exit_code = ExitCode.SERVER_URL_NOT_CONFIGURED


class UnsupportedCommandError(RemoteSignError):
    exit_code = ExitCode.UNSUPPORTED_COMMAND

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Remote signtool supports only the sign command, got: {command}")


class UnsupportedSubcommandError(RemoteSignError):
    """A recognised option that must never be forwarded."""

    exit_code = ExitCode.UNSUPPORTED_SUBCOMMAND

    def __init__(self, option: str):
        self.option = option
        super().__init__(f"Subcommand {option} is not supported")


class UnknownSubcommandError(RemoteSignError):
    exit_code = ExitCode.UNKNOWN_SUBCOMMAND

    def __init__(self, option: str):
        self.option = option
        super().__init__(f"Unknown subcommand: {option}")


class MissingOptionValueError(RemoteSignError):
    exit_code = ExitCode.MISSING_OPTION_VALUE

    def __init__(self, option: str, expected: int, available: int):
        self.option = option
        self.expected = expected
        self.available = available
        super().__init__(
            f"Subcommand {option} expects {expected} value(s) but only {available} remain"
        )


class DuplicateFileNameError(RemoteSignError):
    exit_code = ExitCode.DUPLICATE_FILE_NAME

    def __init__(self, file_name: str, path: str):
        self.file_name = file_name
        self.path = path
        super().__init__(
            "Multiple files with the same name cannot be signed in one request: "
            f"{file_name} ({path})"
        )


class NoFilesMatchedError(RemoteSignError):
    exit_code = ExitCode.NO_FILES_MATCHED


# ---------------------------------------------------------------------------
# Transfer errors
# ---------------------------------------------------------------------------


class ServerCommunicationError(RemoteSignError):
    """A network step failed: non-2xx status, connection error, bad body."""

    exit_code = ExitCode.SERVER_COMMUNICATION_FAILED

    def __init__(self, step: str, message: str, status_code: Optional[int] = None):
        self.step = step
        self.status_code = status_code
        super().__init__(f"[{step}] {message}")


class SignToolExitError(RemoteSignError):
    """The remote signing tool ran and reported a nonzero exit code."""

    exit_code = ExitCode.SIGN_TOOL_INVALID_EXIT_CODE

    def __init__(self, result: SignResult):
        self.result = result
        super().__init__(f"signtool exited with code: {result.exit_code}")


class FileTransferError(RemoteSignError):
    """Local I/O failed while packing, unpacking or redistributing files."""

    exit_code = ExitCode.FILE_TRANSFER_FAILED
