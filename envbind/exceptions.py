# envbind/exceptions.py
"""
envbind.exceptions
------------------

Custom exceptions for envbind.
"""


class EnvbindError(Exception):
    """
    Base class for errors raised by envbind.
    """


class UnsupportedFieldError(EnvbindError, TypeError):
    """
    Raised when a record declares a field whose type cannot be bound.
    """

    def __init__(self, record, field, annotation):
        record_name = getattr(record, "__qualname__", repr(record))
        super().__init__(
            f"Cannot bind field '{field}' of {record_name}: unsupported type {annotation!r}"
        )
        self.record = record
        self.field = field
        self.annotation = annotation


class SecretResolutionError(EnvbindError):
    """
    Raised when a value pre-processor cannot resolve a secret or parameter reference.
    """

    def __init__(self, reference, reason):
        super().__init__(f"Unable to resolve '{reference}': {reason}")
        self.reference = reference
