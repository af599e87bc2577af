"""Provide encoding and decoding support for serialized rereso artifacts.

Encoding converts rereso objects to basic Python objects (``dict``, ``list``,
``str``, ...) that any of the supported document formats can render.
Decoding is type-directed: the caller names the expected type, and the
decoder registered for that type interprets the basic Python object.

Reference https://docs.python.org/3/library/json.html#py-to-json-table for the
trivial Python object conversions.

Encoding modes:
    A :py:class:`PythonEncoder` is either *compact* or *structured*. Compact
    encoders may render a value in a shorter form when the shape of the data
    allows it (e.g. a log entry without metadata becomes a bare string).
    Structured encoders always emit the full field set. Decoders accept both
    forms unconditionally.

Registration:
    Modules defining rereso types register their handlers at import time::

        encode.register(dtype=Metadata, handler=_encode_metadata)
        decode.register(dtype=Metadata, handler=_decode_metadata)

    Encoding handlers are called as ``handler(obj, encoder)`` and decoding
    handlers as ``handler(encoded, decoder)``, so that nested values are
    processed with the same encoder (and mode) or decoder.

Sets:
    Unordered collections are emitted in a canonical order (sorted by the
    compact JSON of each encoded element), so equal objects always produce
    identical documents.
"""
from __future__ import annotations

__all__ = ['BaseEncodable',
           'compact_json',
           'decode',
           'encode',
           'encode_structured',
           'PythonDecoder',
           'PythonEncoder']

import json
import logging
import typing
import weakref

from rereso.exceptions import DecodeError
from rereso.exceptions import ProtocolError

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

json_base_encodable_types: typing.Tuple[type, ...] = (dict, list, tuple, str, int, float, bool, type(None))

BaseEncodable = typing.Union[dict, list, tuple, str, int, float, bool, None]
BaseDecoded = typing.Union[dict, list, str, int, float, bool, None]

DispatchT = typing.TypeVar('DispatchT')
EncoderHandler = typing.Callable[[typing.Any, 'PythonEncoder'], BaseEncodable]
DecoderHandler = typing.Callable[[BaseDecoded, 'PythonDecoder'], typing.Any]


def _type_name(dtype) -> str:
    return getattr(dtype, '__name__', repr(dtype))


class PythonEncoder:
    """Encode rereso objects as basic Python data that is easily serialized.

    The dispatch table is shared by all encoder instances; instances only
    differ in their *compact* mode.

    Encoded objects can be passed directly to ``json.dumps()``, the JSON5 and
    YAML dumpers, or :py:func:`compact_json`.
    """
    # We use WeakKeyDictionary because the keys are classes,
    # and we don't intend to extend the life of the type objects.
    _dispatchers: typing.ClassVar[typing.MutableMapping[type, EncoderHandler]] = weakref.WeakKeyDictionary()

    def __init__(self, *, compact: bool = True):
        self.compact = bool(compact)

    @classmethod
    def register(cls, *, dtype: typing.Type[DispatchT], handler: typing.Callable[[DispatchT, PythonEncoder], BaseEncodable]):
        if not isinstance(dtype, type):
            raise TypeError('We use `isinstance(obj, dtype)` for dispatching, so *dtype* must be a `type` object.')
        if dtype in cls._dispatchers:
            raise ProtocolError(f'Encodable type {dtype} appears to be registered already.')
        logger.debug(f'Registering encoder for {dtype.__qualname__}.')
        cls._dispatchers[dtype] = handler

    @classmethod
    def unregister(cls, dtype: type):
        del cls._dispatchers[dtype]

    def encode(self, obj) -> BaseEncodable:
        """Convert an object of a registered type to a representation as a basic Python object."""
        # Exact type matches are the common case. Fall back to isinstance() for subclasses.
        dispatch = self._dispatchers.get(type(obj), None)
        if dispatch is None:
            for dtype, handler in self._dispatchers.items():
                if isinstance(obj, dtype):
                    dispatch = handler
                    break
        if dispatch is not None:
            return dispatch(obj, self)
        if isinstance(obj, (list, tuple)):
            return [self.encode(element) for element in obj]
        if isinstance(obj, dict):
            return {str(key): self.encode(value) for key, value in obj.items()}
        if type(obj) in json_base_encodable_types:
            return obj
        raise TypeError(f'No registered dispatching for {repr(obj)}')

    def encode_set(self, values: typing.Iterable) -> typing.List[BaseEncodable]:
        """Encode an unordered collection in canonical order."""
        return sorted((self.encode(value) for value in values), key=compact_json)

    def __call__(self, obj, *, compact: bool = None) -> BaseEncodable:
        """Encode *obj*, optionally overriding the compact mode of this encoder."""
        if compact is not None and bool(compact) != self.compact:
            return PythonEncoder(compact=compact).encode(obj)
        return self.encode(obj)


class PythonDecoder:
    """Convert basic Python representations to rereso objects of a requested type.

    Failures raise :py:class:`~rereso.exceptions.DecodeError`. Errors raised by
    the constructors of the decoded types (invariant violations, malformed
    primitive values) are converted, with the original error chained.
    """
    # Keys are usually classes, but closed unions (typing.Union aliases) are
    # valid decoding targets, too.
    _dispatchers: typing.ClassVar[typing.MutableMapping[typing.Hashable, DecoderHandler]] = dict()

    @classmethod
    def register(cls, *, dtype: typing.Type[DispatchT], handler: typing.Callable[[BaseDecoded, PythonDecoder], DispatchT]):
        if dtype in cls._dispatchers:
            raise ProtocolError(f'Type {dtype} appears to be registered already.')
        logger.debug(f'Registering decoder for {_type_name(dtype)}.')
        cls._dispatchers[dtype] = handler

    @classmethod
    def unregister(cls, dtype: type):
        del cls._dispatchers[dtype]

    @classmethod
    def get_decoder(cls, dtype: type) -> DecoderHandler:
        try:
            return cls._dispatchers[dtype]
        except (KeyError, TypeError):
            raise ProtocolError(f'No decoder registered for {dtype!r}')

    def decode(self, obj: BaseDecoded, dtype: typing.Type[DispatchT]) -> DispatchT:
        """Create a *dtype* instance from its basic Python representation."""
        dispatch = self.get_decoder(dtype)
        try:
            return dispatch(obj, self)
        except DecodeError:
            raise
        except (ValueError, TypeError) as e:
            raise DecodeError(f'Could not decode {_type_name(dtype)} from {obj!r}: {e}') from e

    # Helpers for decoding handlers.

    @staticmethod
    def fields(obj: BaseDecoded,
               dtype: type,
               required: typing.Iterable[str] = (),
               optional: typing.Iterable[str] = ()) -> typing.Dict[str, BaseDecoded]:
        """Check that *obj* is a mapping with the expected keys and return it.

        Raises:
            DecodeError if *obj* is not a mapping, misses a required key, or has
            an unknown key.
        """
        if not isinstance(obj, dict):
            raise DecodeError(f'Expected a mapping for {_type_name(dtype)}. Got {obj!r}')
        required = tuple(required)
        allowed = set(required) | set(optional)
        missing = [key for key in required if key not in obj]
        if missing:
            raise DecodeError(f'Missing {", ".join(missing)} for {_type_name(dtype)} in {obj!r}')
        unknown = [key for key in obj if key not in allowed]
        if unknown:
            raise DecodeError(f'Unexpected {", ".join(map(str, unknown))} for {_type_name(dtype)} in {obj!r}')
        return obj

    @staticmethod
    def string(obj: BaseDecoded, what: str) -> str:
        if not isinstance(obj, str):
            raise DecodeError(f'Expected a string for {what}. Got {obj!r}')
        return obj

    @staticmethod
    def optional_string(obj: BaseDecoded, what: str) -> typing.Optional[str]:
        if obj is None:
            return None
        return PythonDecoder.string(obj, what)

    def sequence(self, obj: BaseDecoded, dtype: typing.Type[DispatchT]) -> typing.Tuple[DispatchT, ...]:
        """Decode a list of *dtype* elements. ``None`` is the empty sequence."""
        if obj is None:
            return ()
        if not isinstance(obj, list):
            raise DecodeError(f'Expected a list of {_type_name(dtype)}. Got {obj!r}')
        return tuple(self.decode(element, dtype) for element in obj)

    def set(self, obj: BaseDecoded, dtype: typing.Type[DispatchT]) -> typing.FrozenSet[DispatchT]:
        """Decode a list of *dtype* elements as a set. ``None`` is the empty set."""
        return frozenset(self.sequence(obj, dtype))

    def __call__(self, obj: BaseDecoded, dtype: typing.Type[DispatchT]) -> DispatchT:
        return self.decode(obj, dtype)


encode = PythonEncoder()
encode_structured = PythonEncoder(compact=False)
decode = PythonDecoder()


def compact_json(obj) -> str:
    """Produce the compact JSON string for the encodable object."""
    # Use the extensible Encoder from this module, but apply some output formatting.
    string = json.dumps(obj,
                        default=encode_structured,
                        ensure_ascii=True,
                        separators=(',', ':'),
                        sort_keys=True
                        )
    return string
