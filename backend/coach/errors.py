"""Error taxonomy for the writing coach.

``ValidationError`` covers bad learner input, ``ServiceError`` covers the
generative service failing, and ``DecodeError`` is the subset of service
failures where the payload arrived but did not match the expected shape.
"""
from __future__ import annotations


class CoachError(Exception):
	"""Base class for every error raised by the coach package."""


class ValidationError(CoachError):
	"""Learner input rejected locally; state does not advance."""


class ServiceError(CoachError):
	"""The generative service failed or returned unusable output."""


class DecodeError(ServiceError):
	def __init__(self, field: str, message: str) -> None:
		self.field = field
		self.message = message
		super().__init__(f"{field}: {message}")


class StageError(CoachError):
	"""An action was attempted in a stage that does not allow it."""
