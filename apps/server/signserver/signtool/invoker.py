"""Signing tool discovery and execution.

The server talks to the signing executable only through the SignToolInvoker
protocol, so the sign endpoint can be exercised with a fake invoker in tests.

SdkSignTool is the real implementation. Discovery order:
  1. the explicitly configured path, if any
  2. <sdk_bin_dir>\\x64\\signtool.exe, then <sdk_bin_dir>\\x86\\signtool.exe
  3. <sdk_bin_dir>\\10.*\\x64\\signtool.exe, newest version first

A run executes `signtool sign <subcommands> *.*` once inside the working
directory, so every extracted file is signed by a single invocation.
"""

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from fastapi import Depends

from signcommon.schemas import split_subcommands
from signserver.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

SIGNTOOL_EXE = "signtool.exe"

# Target handed to the tool; it expands the wildcard itself
WILDCARD_TARGET = "*.*"

DEFAULT_TIMEOUT = 300

IS_WINDOWS = os.name == "nt"


@dataclass
class InvocationResult:
    """Exit status and complete output of one signing tool run."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0


@runtime_checkable
class SignToolInvoker(Protocol):
    """Protocol for locating and running the signing tool."""

    def locate(self) -> Optional[Path]:
        """Return the signing tool path, or None when it is not installed."""
        ...

    def invoke(
        self,
        tool_path: Path,
        subcommands: str,
        working_dir: Path,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> InvocationResult:
        """Sign every file in `working_dir` in one run.

        Never raises for tool failures; a timeout or a failure to start is
        reported as a nonzero exit code.
        """
        ...


def _version_key(path: Path) -> tuple:
    """Sort key for `10.0.22621.0`-style directory names."""
    parts = []
    for piece in path.name.split("."):
        parts.append((0, int(piece), "") if piece.isdigit() else (1, 0, piece))
    return tuple(parts)


def build_command(tool_path: Path, subcommands: str) -> Union[str, list[str]]:
    """Build the process command line for a sign run.

    On Windows the command line is passed as one string so the forwarded
    (already quoted) subcommands reach the tool untouched. Elsewhere it is
    split into argv with the same quoting rules.
    """
    if IS_WINDOWS:
        parts = [f'"{tool_path}"', "sign", subcommands, WILDCARD_TARGET]
        return " ".join(part for part in parts if part)

    return [str(tool_path), "sign", *split_subcommands(subcommands), WILDCARD_TARGET]


class SdkSignTool:
    """Windows SDK signtool.exe located on the local filesystem."""

    def __init__(self, sdk_bin_dir: Path, explicit_path: Optional[Path] = None):
        self.sdk_bin_dir = Path(sdk_bin_dir)
        self.explicit_path = explicit_path

    def candidates(self) -> list[Path]:
        """Every location checked by `locate()`, in search order."""
        found = [
            self.sdk_bin_dir / "x64" / SIGNTOOL_EXE,
            self.sdk_bin_dir / "x86" / SIGNTOOL_EXE,
        ]
        if self.sdk_bin_dir.is_dir():
            versioned = [p for p in self.sdk_bin_dir.glob("10.*") if p.is_dir()]
            for sdk_dir in sorted(versioned, key=_version_key, reverse=True):
                found.append(sdk_dir / "x64" / SIGNTOOL_EXE)
        return found

    def locate(self) -> Optional[Path]:
        if self.explicit_path is not None:
            if self.explicit_path.is_file():
                return self.explicit_path
            logger.error("Configured signtool path does not exist: %s", self.explicit_path)
            return None

        for candidate in self.candidates():
            logger.debug("Searching for signtool at %s", candidate)
            if candidate.is_file():
                return candidate
        return None

    def invoke(
        self,
        tool_path: Path,
        subcommands: str,
        working_dir: Path,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> InvocationResult:
        command = build_command(tool_path, subcommands)
        logger.info("Executing %s in %s", tool_path, working_dir)
        logger.debug("Command line: %s", command)
        start = time.monotonic()

        try:
            completed = subprocess.run(
                command,
                cwd=str(working_dir),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            result = InvocationResult(
                exit_code=completed.returncode,
                stdout=completed.stdout or "",
                stderr=completed.stderr or "",
                duration_seconds=time.monotonic() - start,
            )

        except subprocess.TimeoutExpired as exc:
            result = InvocationResult(
                exit_code=-1,
                stdout=_decode(exc.stdout),
                stderr=f"Timed out after {timeout} seconds",
                duration_seconds=time.monotonic() - start,
            )

        except OSError as exc:
            result = InvocationResult(
                exit_code=-2,
                stderr=str(exc),
                duration_seconds=time.monotonic() - start,
            )

        logger.info(
            "signtool %s (exit=%d, %.1fs)",
            "OK" if result.is_success else "FAILED",
            result.exit_code, result.duration_seconds,
        )
        return result


def _decode(output: Union[bytes, str, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


def get_sign_tool(settings: Settings = Depends(get_settings)) -> SignToolInvoker:
    explicit = Path(settings.signtool_path) if settings.signtool_path else None
    return SdkSignTool(Path(settings.sdk_bin_dir), explicit_path=explicit)
