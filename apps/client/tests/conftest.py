"""Shared fixtures for the signing client test suite.

End-to-end tests run the real signing server app in process. The client
reaches it through an ASGITransport, and the signing tool is replaced by
LocalSignTool, which appends a marker to each file instead of signing it.
"""

from pathlib import Path
from typing import Optional

import pytest
from httpx import ASGITransport

from signclient.config import ClientSettings
from signserver.core.config import Settings, get_settings
from signserver.main import create_app
from signserver.signtool.invoker import InvocationResult, get_sign_tool

SERVER_URL = "http://signer.test"
SIGNATURE_MARKER = b"--signed--"


class LocalSignTool:
    marker = SIGNATURE_MARKER

    def __init__(self, exit_code: int = 0, stdout: str = "Successfully signed", stderr: str = ""):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.subcommands: list[str] = []

    def locate(self) -> Optional[Path]:
        return Path("signtool.exe")

    def invoke(self, tool_path, subcommands, working_dir, timeout=300) -> InvocationResult:
        self.subcommands.append(subcommands)
        if self.exit_code == 0:
            for path in Path(working_dir).iterdir():
                path.write_bytes(path.read_bytes() + self.marker)
        return InvocationResult(exit_code=self.exit_code, stdout=self.stdout, stderr=self.stderr)


@pytest.fixture
def server_settings(tmp_path) -> Settings:
    return Settings(
        storage_dir=str(tmp_path / "server" / "Upload"),
        work_dir=str(tmp_path / "server" / "Temp"),
        sentry_dsn="",
        debug=False,
    )


@pytest.fixture
def sign_tool() -> LocalSignTool:
    return LocalSignTool()


@pytest.fixture
def transport(server_settings, sign_tool) -> ASGITransport:
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: server_settings
    app.dependency_overrides[get_sign_tool] = lambda: sign_tool
    return ASGITransport(app=app)


@pytest.fixture
def client_settings(tmp_path) -> ClientSettings:
    temp_dir = tmp_path / "client-temp"
    temp_dir.mkdir()
    return ClientSettings(server_url=SERVER_URL, temp_dir=str(temp_dir), request_timeout_seconds=30)
