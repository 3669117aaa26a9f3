# mfm/exceptions.py


class CoefficientsError(ValueError):
    """Base class for errors raised by coefficient containers."""


class DimensionMismatchError(CoefficientsError):
    """Two coefficient sets with different shapes were combined."""


class CoefficientsDecodeError(CoefficientsError):
    """Encoded coefficient text is malformed and cannot be trusted."""

    def __init__(self, message, line_number=None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
