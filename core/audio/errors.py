"""
core/audio/errors.py — Failure types for the analysis core.
"""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised when an analysis call receives malformed input.

    Covers empty energy series, non-positive tick rates, non-finite values,
    spectra with inconsistent sample-rate/window-size metadata and
    chromagrams of the wrong shape. Degenerate but well-formed input
    (no detectable peaks, silent spectrum) is not an error.

    Subclasses ValueError so callers that already map ValueError to a
    client error (HTTP 422, failed ToolResult) handle it unchanged.

    Args:
        argument: Name of the offending argument.
        message: Human-readable description of the violation.
    """

    def __init__(self, argument: str, message: str) -> None:
        """Initialize with the argument name and a description."""
        self.argument = argument
        super().__init__(f"{argument}: {message}")
