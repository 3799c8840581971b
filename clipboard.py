"""Clipboard service for copying hashes, signatures and addresses."""

from __future__ import annotations

from dataclasses import dataclass

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore


@dataclass
class CopyResult:
    success: bool
    reason: str


class ClipboardService:
    def copy_text(self, text: str) -> CopyResult:
        if not text.strip():
            return CopyResult(success=False, reason="nothing to copy")
        if pyperclip is None:
            return CopyResult(success=False, reason="clipboard dependency missing")
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            return CopyResult(success=False, reason=f"clipboard unavailable: {exc}")
        return CopyResult(success=True, reason="ok")
