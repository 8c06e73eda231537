"""Single-pass classifier for `sign` command lines.

Walks the tokens left to right and sorts each one into:
  - a forwardable option, plus exactly `arity` following values
  - a rejected option        -> UnsupportedSubcommandError (fail fast)
  - an unknown `/` option    -> UnknownSubcommandError
  - anything else            -> a file path pattern

Option values are consumed verbatim, so a value that happens to look like
an option (`/d /weird`) is never classified on its own.
"""

import logging
from collections.abc import Sequence

from signclient.errors import (
    MissingOptionValueError,
    NoArgumentsError,
    UnknownSubcommandError,
    UnsupportedCommandError,
    UnsupportedSubcommandError,
)
from signclient.options.catalog import (
    FORWARDABLE_OPTIONS,
    OPTION_PREFIX,
    REJECTED_OPTIONS,
    SUPPORTED_COMMAND,
)
from signclient.options.types import ClassifiedRequest

logger = logging.getLogger(__name__)


def quote_token(token: str) -> str:
    """Wrap a token in double quotes when it contains whitespace."""
    if any(ch.isspace() for ch in token):
        return f'"{token}"'
    return token


def classify(args: Sequence[str]) -> ClassifiedRequest:
    """Classify a full command line (command name first).

    Raises:
        NoArgumentsError: If `args` is empty.
        UnsupportedCommandError: If the command is not `sign`.
        UnsupportedSubcommandError: On the first rejected option.
        UnknownSubcommandError: On a `/` token found in neither catalog.
        MissingOptionValueError: If an option's values run past the input.
    """
    if not args:
        raise NoArgumentsError("Invalid number of arguments")

    if args[0] != SUPPORTED_COMMAND:
        raise UnsupportedCommandError(args[0])

    forwarded: list[str] = []
    patterns: list[str] = []

    i = 1
    while i < len(args):
        token = args[i]

        if token in REJECTED_OPTIONS:
            raise UnsupportedSubcommandError(token)

        if token in FORWARDABLE_OPTIONS:
            arity = FORWARDABLE_OPTIONS[token]
            end = i + 1 + arity
            if end > len(args):
                raise MissingOptionValueError(token, arity, len(args) - i - 1)
            forwarded.extend(quote_token(t) for t in args[i:end])
            i = end
            continue

        if token.startswith(OPTION_PREFIX):
            raise UnknownSubcommandError(token)

        patterns.append(token)
        i += 1

    logger.debug(
        "Classified %d forwarded token(s) and %d file pattern(s)",
        len(forwarded), len(patterns),
    )
    return ClassifiedRequest(
        forwarded_tokens=tuple(forwarded),
        file_patterns=tuple(patterns),
    )
