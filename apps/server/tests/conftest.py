"""Shared test fixtures for the signing server test suite.

Storage and working directories live under pytest's tmp_path. The real
signing tool is replaced by FakeSignTool, which appends a marker to every
file in the working directory instead of signing it.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from signserver.core.config import Settings, get_settings
from signserver.main import create_app
from signserver.signtool.invoker import InvocationResult, get_sign_tool

SIGNATURE_MARKER = b"--signed--"


class FakeSignTool:
    """In-memory stand-in for signtool.exe."""

    def __init__(
        self,
        exit_code: int = 0,
        stdout: str = "Successfully signed",
        stderr: str = "",
        installed: bool = True,
    ):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.installed = installed
        self.calls: list[dict] = []

    def locate(self) -> Optional[Path]:
        return Path("C:/fake/signtool.exe") if self.installed else None

    def invoke(self, tool_path, subcommands, working_dir, timeout=300) -> InvocationResult:
        working_dir = Path(working_dir)
        self.calls.append({
            "tool_path": tool_path,
            "subcommands": subcommands,
            "working_dir": working_dir,
            "files": sorted(p.name for p in working_dir.iterdir()),
            "timeout": timeout,
        })
        if self.exit_code == 0:
            for path in working_dir.iterdir():
                if path.is_file():
                    path.write_bytes(path.read_bytes() + SIGNATURE_MARKER)
        return InvocationResult(exit_code=self.exit_code, stdout=self.stdout, stderr=self.stderr)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        storage_dir=str(tmp_path / "Upload"),
        work_dir=str(tmp_path / "Temp"),
        sign_timeout_seconds=30,
        sentry_dsn="",
        debug=False,
    )


@pytest.fixture
def storage_dir(settings) -> Path:
    path = Path(settings.storage_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def sign_tool() -> FakeSignTool:
    return FakeSignTool()


@pytest.fixture
def app(settings, sign_tool):
    """FastAPI app with settings and the signing tool overridden."""
    test_app = create_app()
    test_app.dependency_overrides[get_settings] = lambda: settings
    test_app.dependency_overrides[get_sign_tool] = lambda: sign_tool
    return test_app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
