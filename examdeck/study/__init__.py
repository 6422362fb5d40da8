"""
Study session module.

Provides the SessionManager: exam selection, the prev/current/next question
window, answer submit/save/discard, bookmarks, attempts and progress.
"""

from examdeck.study.session_manager import SessionManager

__all__ = [
    "SessionManager",
]
