"""Exceptions raised by the adaptive engine."""

from __future__ import annotations


class ProfileUnavailable(Exception):
    """Raised when an adaptive profile cannot be loaded or saved."""

    def __init__(self, student_id: str, curriculum: str, reason: str = ""):
        self.student_id = student_id
        self.curriculum = curriculum
        self.reason = reason
        message = f"Adaptive profile unavailable for {student_id}/{curriculum}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AdaptationError(Exception):
    """Raised inside the real-time adapter; never escapes record_answer()."""

    def __init__(self, code: str, detail: str = ""):
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)
