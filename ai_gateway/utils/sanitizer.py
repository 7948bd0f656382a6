"""Prompt input sanitization and prompt-injection heuristics.

``sanitize_input`` strips chat-template control markers so user text cannot
open or close instruction blocks once it is interpolated into a prompt.

``detects_injection_attempt`` is a best-effort filter over a fixed list of
phrasings. It has false negatives by construction and is not a security
boundary; callers decide whether a hit blocks, logs or annotates a request.
"""

from __future__ import annotations

import re

DEFAULT_MAX_LENGTH = 10_000

# Applied in order; each pass sees the output of the previous one.
_CONTROL_MARKERS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\[INST\]", re.IGNORECASE),
    re.compile(r"\[/INST\]", re.IGNORECASE),
    re.compile(r"<\|.*?\|>"),
    re.compile(r"<<SYS>>", re.IGNORECASE),
    re.compile(r"<</SYS>>", re.IGNORECASE),
)

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"ignore\s+(all\s+)?(previous|prior|above)\s+instructions",
        r"disregard\s+(all\s+)?(previous|prior|above)\s+instructions",
        r"forget\s+(all\s+)?(previous|prior|above)\s+instructions",
        r"new\s+instructions?:",
        r"you\s+are\s+now\s+a",
        r"pretend\s+(you\s+are|to\s+be)",
        r"act\s+as\s+(if|a)",
        r"from\s+now\s+on,?\s+you",
        r"instead,?\s+(please\s+)?give\s+me",
        r"actually,?\s+(please\s+)?(just\s+)?give\s+me",
        r"do\s+not\s+follow\s+the\s+(above|previous)",
        r"override\s+(the\s+)?(system|instructions)",
        r"system\s*prompt",
        r"jailbreak",
        r"dan\s+mode",
    )
)


def sanitize_input(text: str | None, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Trim, strip control markers and truncate user text.

    Each marker pattern is applied once, so nested markers are only peeled
    one layer: ``"[IN[INST]ST]"`` comes out as ``"[INST]"``. Sanitizing is
    therefore not idempotent for such crafted input; prompts label user text
    as content, which keeps a surviving marker inert.

    Args:
        text: Raw user input. ``None`` is treated as an empty string.
        max_length: Maximum number of characters kept from the start.

    Returns:
        str: Sanitized text, possibly empty.
    """
    cleaned = (text or "").strip()
    for marker in _CONTROL_MARKERS:
        cleaned = marker.sub("", cleaned)
    return cleaned[: max(max_length, 0)]


def detects_injection_attempt(text: str | None) -> bool:
    """Return True if ``text`` matches any known instruction-override phrasing."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in INJECTION_PATTERNS)
