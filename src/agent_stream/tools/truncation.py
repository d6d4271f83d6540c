"""Text truncation utilities for previews and trace payloads."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TruncationResult:
    """Result of truncating a piece of text."""

    text: str
    truncated: bool
    original_length: int

    @property
    def dropped(self) -> int:
        """Number of original characters that did not survive."""
        if not self.truncated:
            return 0
        return max(0, self.original_length - len(self.text))


def truncate_text(text: str, max_chars: int, suffix: str = "...") -> TruncationResult:
    """Cut text so the result, suffix included, fits in ``max_chars``."""
    original_length = len(text)
    if original_length <= max_chars:
        return TruncationResult(text=text, truncated=False, original_length=original_length)
    if max_chars <= 0:
        return TruncationResult(text="", truncated=True, original_length=original_length)
    if len(suffix) >= max_chars:
        return TruncationResult(
            text=suffix[:max_chars], truncated=True, original_length=original_length
        )
    cut = max_chars - len(suffix)
    return TruncationResult(
        text=f"{text[:cut]}{suffix}", truncated=True, original_length=original_length
    )


def truncate_with_marker(text: str, max_chars: int) -> str:
    """Keep the first ``max_chars`` characters and note how many were dropped.

    Unlike :func:`truncate_text`, the kept prefix is never shortened to make
    room for the marker, so readers always see ``max_chars`` of real content.
    """
    if len(text) <= max_chars:
        return text
    dropped = len(text) - max_chars
    return f"{text[:max_chars]}… [truncated: {dropped} chars]"
