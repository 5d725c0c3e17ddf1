"""Text helpers shared by the policy chain."""

from typing import Any

ELLIPSIS = "…"


def normalize_ws(value: Any) -> str:
    """Collapse runs of whitespace and trim."""
    if value is None:
        return ""
    return " ".join(str(value).split())


def clip_text(value: Any, max_chars: int) -> str:
    """Normalize whitespace, then cut to ``max_chars`` ending in an ellipsis."""
    text = normalize_ws(value)
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1] + ELLIPSIS


def clip_list(values: list[Any] | None, max_items: int) -> list[Any]:
    return list(values or [])[: max(0, max_items)]
