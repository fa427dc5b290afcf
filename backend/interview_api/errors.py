"""Error taxonomy for the interview service.

Each error carries the HTTP status it maps to; ``main`` renders them as
``{"success": false, "message": ...}`` bodies.
"""

from __future__ import annotations


class InterviewError(Exception):
	status_code: int = 500
	default_message: str = "Server error"

	def __init__(self, message: str | None = None) -> None:
		self.message = message or self.default_message
		super().__init__(self.message)


class ValidationError(InterviewError):
	status_code = 400
	default_message = "Invalid request"


class QuotaExceededError(InterviewError):
	status_code = 403
	default_message = "Free interview already used. Please sign in to continue."


class NotFoundError(InterviewError):
	status_code = 404
	default_message = "Session not found"


class ConflictError(InterviewError):
	"""A concurrent write won; the caller may retry the request."""

	status_code = 409
	default_message = "Session was updated concurrently, please retry"


class UpstreamUnavailable(InterviewError):
	status_code = 502
	default_message = "AI service unavailable"


class MalformedFeedbackError(InterviewError):
	status_code = 502
	default_message = "AI feedback did not match the expected format"
