"""Types for the option classifier."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ClassifiedRequest:
    """Result of classifying a `sign` command line.

    forwarded_tokens holds catalogued options and their values, in input
    order, already quoted where they contain whitespace. file_patterns holds
    every remaining token: file names or glob patterns to resolve locally.
    """

    forwarded_tokens: tuple[str, ...] = ()
    file_patterns: tuple[str, ...] = ()

    @property
    def subcommands(self) -> str:
        """The forwarded tokens as a single space-separated string."""
        return " ".join(self.forwarded_tokens)
