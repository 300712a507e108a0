"""Trigger-keyword helpers.

Both operations are plain literal string matching: case-sensitive, no regex,
whitespace around a trigger is left alone.
"""
from __future__ import annotations
from typing import Callable

from localllm_plugin.common.errors import ClipboardReadError


def substitute_clipboard(text: str, trigger: str, read_clipboard: Callable[[], str]) -> str:
    """
    Replace every occurrence of `trigger` with the clipboard text.

    The clipboard is read once, and only when the trigger is present. Clipboard
    text that itself contains the trigger is inserted as-is.

    Raises:
        ClipboardReadError: if `read_clipboard` fails.
    """
    if not trigger or trigger not in text:
        return text
    try:
        clip = read_clipboard()
    except ClipboardReadError:
        raise
    except Exception as e:
        raise ClipboardReadError(str(e) or type(e).__name__) from e
    if clip is None:
        clip = ""
    return text.replace(trigger, clip)


def split_send_trigger(text: str, trigger: str) -> str | None:
    """Return `text` without the trailing `trigger`, or None if it does not end with it."""
    if not text.endswith(trigger):
        return None
    return text[: len(text) - len(trigger)]
