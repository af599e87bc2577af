"""Core rereso exceptions.

Construction of an entity either succeeds completely or raises. Decoding
raises for malformed encoded data. Schema validation failures are *not*
exceptions; see :py:class:`rereso.schemas.ValidationResult`.
"""

__all__ = ['DecodeError',
           'InternalError',
           'InvariantError',
           'MissingSchemaError',
           'ProtocolError',
           'RereSoError',
           'UnsupportedFormat']


class RereSoError(Exception):
    """Base exception for rereso package errors.

    Users should be able to use this base class to catch errors
    emitted by rereso.
    """


class InternalError(RereSoError):
    """An otherwise unclassifiable error has occurred (a bug)."""


class InvariantError(RereSoError, ValueError):
    """An entity could not be constructed because an invariant does not hold."""


class DecodeError(RereSoError, ValueError):
    """Encoded data does not describe a valid object of the requested type."""


class UnsupportedFormat(RereSoError, ValueError):
    """A file name does not select a supported serialization format."""


class ProtocolError(RereSoError):
    """Unexpected use of the codec registry."""


class MissingSchemaError(InternalError):
    """A bundled schema resource could not be found.

    This indicates a broken installation, not bad input.
    """
