"""Option catalog and classifier for `sign` command lines.

Public API:
    classify(args) -> ClassifiedRequest
"""

from signclient.options.classifier import classify
from signclient.options.types import ClassifiedRequest

__all__ = ["ClassifiedRequest", "classify"]
