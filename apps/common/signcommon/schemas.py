"""Wire DTOs exchanged between the signing client and server.

JSON bodies use camelCase keys (`archiveName`, `exitCode`, ...). Both
models also accept their snake_case field names when constructed in
Python code.
"""

import shlex
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def split_subcommands(subcommands: str) -> list[str]:
    """Split a joined subcommand string back into tokens.

    Double quotes group a token containing whitespace. Backslashes are path
    separators for the signing tool, not escapes, and `#` is not a comment.
    """
    lexer = shlex.shlex(subcommands, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.quotes = '"'
    lexer.escape = ""
    return list(lexer)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignRequest(_WireModel):
    """Request to sign every file inside a previously uploaded archive.

    `subcommands` is the forwarded option sequence joined with single
    spaces; tokens containing whitespace arrive wrapped in double quotes.
    """

    archive_name: str = Field(..., min_length=1)
    subcommands: str = ""


class SignResult(_WireModel):
    """Outcome of one signing tool invocation.

    `download_url` is set if and only if `exit_code == 0`.
    """

    exit_code: int
    standard_output: str = ""
    standard_error: str = ""
    download_url: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0
