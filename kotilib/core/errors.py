#!/usr/bin/env python3

"""
Error kinds raised by the frame pipeline.

All of them are RuntimeError subclasses so plain callers can keep catching
RuntimeError; the pipeline branches on the specific kinds.
"""

#============================================

class KotiError(RuntimeError):
	"""Base class for pipeline failures."""

#============================================

class ExternalFailure(KotiError):
	"""
	An external tool or library failed.

	Carries the return code and stderr text when a child process was involved.
	"""
	def __init__(self, message: str, returncode: int = None, stdout: str = None,
		stderr: str = None):
		super().__init__(message)
		self.returncode = returncode
		self.stdout = stdout
		self.stderr = stderr

#============================================

class MediaGenerationFailed(ExternalFailure):
	"""Narration synthesis, text rendering or image probing failed."""

#============================================

class RenderFailed(ExternalFailure):
	"""The compositor exited with a non-zero status or wrote no output."""

#============================================

class TextOverflow(KotiError):
	"""Text does not fit in the requested box at the requested font size."""

#============================================

class DurationTooShort(KotiError):
	def __init__(self, total_ticks: int, minimum_ticks: int):
		super().__init__(
			f"program is {total_ticks} ticks, below the minimum of {minimum_ticks}")
		self.total_ticks = total_ticks
		self.minimum_ticks = minimum_ticks

#============================================

class OperationTimeout(KotiError):
	"""A bounded wait on an external operation ran out."""

#============================================

class NumParseError(KotiError):
	"""A numeric value from an upstream source could not be parsed."""

#============================================

class ContractViolation(KotiError):
	"""A value broke a structural rule, e.g. a frame with no image at all."""
