from __future__ import annotations


class FragmentError(Exception):
    """Base class for errors raised by fragmentctl."""


class ValidationError(FragmentError, ValueError):
    """Content was rejected locally, before any request was sent."""


class SessionError(FragmentError):
    """An operation needed an active session and there was none."""


class DetailStateError(FragmentError):
    """The detail view is not in a state that permits the operation."""
