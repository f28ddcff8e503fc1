"""
Exception types raised by label rendering and delivery.
"""


class LabelError(Exception):
	"""
	Base class for label errors.
	"""


class LabelValidationError(LabelError):
	"""
	Raised for invalid label input before any rendering starts.
	"""


class LabelRenderError(LabelError):
	"""
	Raised when a single label cannot be rendered.

	The correlation id lets a batch caller skip just this label.
	"""

	def __init__(self, message: str, correlation_id: str | None = None):
		super().__init__(message)
		self.correlation_id = correlation_id

	def __str__(self) -> str:
		message = super().__str__()
		if self.correlation_id:
			return f"{message} (label {self.correlation_id})"
		return message


class DeliveryError(LabelError):
	"""
	Raised when token refresh or upload fails.
	"""

	def __init__(self, message: str, error_summary: str | None = None):
		super().__init__(message)
		self.error_summary = error_summary
