"""Exceptions raised by the intensity evaluator."""


class FieldError(Exception):
    """Base class for strata_field errors."""

    pass


class InvalidConfig(FieldError, ValueError):
    """Raised when a batch configuration or input point set is unusable.

    Always raised before any call to the pressure-field primitive.
    """

    pass


class EvaluationFailed(FieldError, RuntimeError):
    """Raised when the pressure-field primitive fails for a batch.

    The underlying exception is chained as ``__cause__``. The run is
    abandoned at the failing batch; no partial result is returned.

    Attributes:
        batch_index: Index of the failing batch (0-based)
        start: First node index of the failing batch
        stop: One past the last node index of the failing batch
    """

    def __init__(self, message: str, batch_index: int, start: int, stop: int):
        super().__init__(message)
        self.batch_index = batch_index
        self.start = start
        self.stop = stop
