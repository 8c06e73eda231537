"""Network exchange with the signing server.

Public API:
    TransferClient(server_url, ...).sign(request, files) -> TransferReport
"""

from signclient.transfer.client import TransferClient
from signclient.transfer.types import TransferReport

__all__ = ["TransferClient", "TransferReport"]
