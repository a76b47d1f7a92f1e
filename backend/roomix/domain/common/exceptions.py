"""Domain-level exceptions shared by the roommate and directory features."""

from __future__ import annotations


class DomainError(Exception):
	"""Base class for recoverable domain errors surfaced to callers."""

	reason: str = "unknown"
	status_code: int = 400

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class NotFound(DomainError):
	reason = "not_found"
	status_code = 404


class Unauthorized(DomainError):
	"""Mutation attempted by someone who is neither the owner nor an admin."""

	reason = "not_authorized"
	status_code = 403


class ValidationFailed(DomainError):
	reason = "invalid"
	status_code = 422


class Conflict(DomainError):
	reason = "conflict"
	status_code = 409
