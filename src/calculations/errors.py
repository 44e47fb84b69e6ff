"""
Error types raised by the markup engine

All of these are recoverable: the controller reports them as user notices
and leaves the design state and history untouched.
"""


class MarkupError(Exception):
    """Base class for markup engine errors"""


class ScaleNotSetError(MarkupError):
    """A real-unit computation was requested before the drawing was calibrated"""

    def __init__(self, message="Drawing scale has not been set"):
        super().__init__(message)


class InvalidLengthError(MarkupError):
    """A calibration length was non-numeric, non-positive or zero-length"""


class InvalidGeometryError(MarkupError):
    """Too few points for a polyline or polygon"""


class DetailsValidationError(MarkupError):
    """A detail form payload is missing a required field or has the wrong type"""

    def __init__(self, field_name, message):
        self.field_name = field_name
        super().__init__(f"{field_name}: {message}")
