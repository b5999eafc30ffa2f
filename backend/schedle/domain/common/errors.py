"""Shared base for domain errors surfaced to users as notices."""

from __future__ import annotations


class SchedleError(Exception):
	"""Base class for recoverable domain errors.

	``reason`` is a stable machine-readable code; subclasses override the class
	attribute and callers may pass a more specific one.
	"""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason
