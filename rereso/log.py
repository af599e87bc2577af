"""Behavioral log archives.

A :py:class:`LogArchive` is a set of :py:class:`Log` sequences. Each log is an
ordered sequence of :py:class:`LogEntry` symbols, optionally enriched with
classification, a training/validation/test split, timing, and a normalized
("denormalized" plus parameters) view of the symbols.

Most real-world logs use only a fraction of these features, so the wire form
adapts to the data: in compact encodings (JSON, JSON5), an entry with only a
value is written as a bare string, and a log whose entries are all such
one-character strings is written as a single string::

    {"entries": "abcab"}

is the same log as::

    {"entries": [{"value": "a"}, {"value": "b"}, ...]}

Both forms are always accepted when decoding.
"""

from __future__ import annotations

__all__ = ['decode_entries',
           'decode_entry',
           'encode_entries',
           'encode_entry',
           'Log',
           'LogArchive',
           'LogEntry',
           'Split']

import dataclasses
import datetime
import enum
import logging
import typing

from rereso.exceptions import DecodeError
from rereso.exceptions import InvariantError
from rereso.support.basictypes import format_duration
from rereso.support.basictypes import format_instant
from rereso.support.basictypes import parse_duration
from rereso.support.basictypes import parse_instant
from rereso.support.serialization import BaseEncodable
from rereso.support.serialization import decode
from rereso.support.serialization import encode
from rereso.support.serialization import PythonDecoder
from rereso.support.serialization import PythonEncoder
from rereso.support.strings import implies

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Split(enum.Enum):
    """Role of a log in a machine learning workflow."""
    TRAINING = 'training'
    """Data used in the creation of a model."""
    VALIDATION = 'validation'
    """Data used to evaluate a model between rounds."""
    TEST = 'test'
    """Data used to evaluate the final model."""


def _optional_duration(value, what: str) -> typing.Optional[datetime.timedelta]:
    if value is None:
        return None
    if not isinstance(value, datetime.timedelta):
        raise InvariantError(f'{what} must be a timedelta. Got {value!r}')
    if value < datetime.timedelta(0):
        raise InvariantError(f'{what} {format_duration(value)} must be non-negative.')
    return value


@dataclasses.dataclass(frozen=True)
class LogEntry:
    """A single symbol of a log.

    Attributes:
        value: The symbol as recorded.
        denormalized: The symbol as a template, e.g. ``'open(x)'``.
        parameters: The template parameters in *denormalized*. Only allowed
            when *denormalized* is set.
        relative_start: Start time relative to the epoch of the containing log.
        duration: Duration of the event.

    Derived attributes (not compared):
        relative_end: *relative_start* + *duration*, if both are set.
        is_simple: True iff only the *value* is set.
    """
    value: str
    denormalized: typing.Optional[str] = None
    parameters: typing.Tuple[str, ...] = ()
    relative_start: typing.Optional[datetime.timedelta] = None
    duration: typing.Optional[datetime.timedelta] = None

    relative_end: typing.Optional[datetime.timedelta] = dataclasses.field(init=False, compare=False, repr=False)
    is_simple: bool = dataclasses.field(init=False, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise InvariantError(f'Log entry value must be a string. Got {self.value!r}')
        if isinstance(self.parameters, str):
            raise InvariantError('parameters must be a sequence of strings, not a single string.')
        parameters = tuple(self.parameters)
        if not implies(self.denormalized is None, len(parameters) == 0):
            raise InvariantError(f'parameters {parameters} are only valid if a denormalized string exists.')
        object.__setattr__(self, 'parameters', parameters)
        _optional_duration(self.relative_start, 'relative start')
        _optional_duration(self.duration, 'duration')

        if self.relative_start is not None and self.duration is not None:
            relative_end = self.relative_start + self.duration
        else:
            relative_end = None
        object.__setattr__(self, 'relative_end', relative_end)
        object.__setattr__(self, 'is_simple',
                           self.denormalized is None
                           and not parameters
                           and self.relative_start is None
                           and self.duration is None)

    def start(self, epoch: datetime.datetime) -> typing.Optional[datetime.datetime]:
        """The absolute start, interpreted relative to *epoch*, or None without a relative start."""
        if self.relative_start is None:
            return None
        return epoch + self.relative_start

    def end(self, epoch: datetime.datetime) -> typing.Optional[datetime.datetime]:
        """The absolute end, interpreted relative to *epoch*, or None without a relative end."""
        if self.relative_end is None:
            return None
        return epoch + self.relative_end


@dataclasses.dataclass(frozen=True)
class Log:
    """An ordered sequence of log entries.

    Plain strings in *entries* are promoted to simple entries, so
    ``Log(entries=['a', 'b'])`` is a valid log. A single string is rejected
    to avoid accidental splitting into characters; use ``list('ab')``.

    Invariants:
        * Defined relative starts are non-decreasing in sequence order.
        * With a *duration*, no entry starts or ends after it.

    *end* is derived from *epoch* and *duration* and not compared.
    """
    entries: typing.Tuple[LogEntry, ...]
    name: typing.Optional[str] = None
    classifier: typing.Optional[str] = None
    split: Split = Split.TRAINING
    epoch: typing.Optional[datetime.datetime] = None
    duration: typing.Optional[datetime.timedelta] = None

    end: typing.Optional[datetime.datetime] = dataclasses.field(init=False, compare=False, repr=False)

    def __post_init__(self):
        if isinstance(self.entries, str):
            raise InvariantError('entries must be a sequence of entries or strings, not a single string.')
        entries = tuple(LogEntry(entry) if isinstance(entry, str) else entry for entry in self.entries)
        for entry in entries:
            if not isinstance(entry, LogEntry):
                raise InvariantError(f'Expected a LogEntry or string. Got {entry!r}')
        object.__setattr__(self, 'entries', entries)
        try:
            split = Split(self.split)
        except ValueError as e:
            raise InvariantError(str(e)) from e
        object.__setattr__(self, 'split', split)
        if self.epoch is not None:
            if not isinstance(self.epoch, datetime.datetime) or self.epoch.utcoffset() is None:
                raise InvariantError(f'epoch must be a timezone-aware datetime. Got {self.epoch!r}')
        _optional_duration(self.duration, 'log duration')

        starts = [entry.relative_start for entry in entries if entry.relative_start is not None]
        for earlier, later in zip(starts, starts[1:]):
            if earlier > later:
                raise InvariantError(
                    f'Log must be chronological; violated by {format_duration(earlier)} '
                    f'and {format_duration(later)}.')
        if self.duration is not None:
            for start in starts:
                if start > self.duration:
                    raise InvariantError(
                        f'Log start {format_duration(start)} beyond log duration {format_duration(self.duration)}.')
            for entry in entries:
                if entry.relative_end is not None and entry.relative_end > self.duration:
                    raise InvariantError(
                        f'Log end {format_duration(entry.relative_end)} beyond log duration '
                        f'{format_duration(self.duration)}.')

        if self.epoch is not None and self.duration is not None:
            end = self.epoch + self.duration
        else:
            end = None
        object.__setattr__(self, 'end', end)


@dataclasses.dataclass(frozen=True)
class LogArchive:
    """A named set of logs."""
    logs: typing.FrozenSet[Log]
    name: typing.Optional[str] = None

    def __post_init__(self):
        if isinstance(self.logs, Log):
            raise InvariantError('logs must be a collection of Log objects.')
        logs = frozenset(self.logs)
        if not all(isinstance(log, Log) for log in logs):
            raise InvariantError(f'Expected Log objects. Got {logs!r}')
        object.__setattr__(self, 'logs', logs)


# Adaptive entry codec.

def encode_entry(entry: LogEntry, compact: bool = True) -> BaseEncodable:
    """Encode a single entry; simple entries become bare strings in *compact* mode."""
    if compact and entry.is_simple:
        return entry.value
    record = {'value': entry.value}
    if entry.denormalized is not None:
        record['denormalized'] = entry.denormalized
    if entry.parameters:
        record['parameters'] = list(entry.parameters)
    if entry.relative_start is not None:
        record['relative-start'] = format_duration(entry.relative_start)
    if entry.duration is not None:
        record['duration'] = format_duration(entry.duration)
    return record


def encode_entries(entries: typing.Sequence[LogEntry], compact: bool = True) -> BaseEncodable:
    """Encode an entry sequence.

    In *compact* mode, a sequence of simple one-character entries becomes a
    single string (the empty sequence becomes ``''``). Otherwise, the result
    is a list of the individually encoded entries.
    """
    if compact and all(entry.is_simple and len(entry.value) == 1 for entry in entries):
        return ''.join(entry.value for entry in entries)
    return [encode_entry(entry, compact=compact) for entry in entries]


def decode_entry(obj) -> LogEntry:
    """Decode a single entry from either a bare string or an entry object.

    Raises:
        DecodeError for any other shape or invalid content.
    """
    return decode(obj, LogEntry)


def decode_entries(obj) -> typing.Tuple[LogEntry, ...]:
    """Decode an entry sequence from either a string or a list of entries.

    A string yields one simple entry per character.

    Raises:
        DecodeError for any other shape or invalid content.
    """
    if isinstance(obj, str):
        return tuple(LogEntry(char) for char in obj)
    if isinstance(obj, list):
        return tuple(decode_entry(element) for element in obj)
    raise DecodeError(f'Expected a string or a list of log entries. Got {obj!r}')


def _encode_log_entry(obj: LogEntry, encoder: PythonEncoder):
    return encode_entry(obj, compact=encoder.compact)


def _decode_log_entry(obj, decoder: PythonDecoder) -> LogEntry:
    if isinstance(obj, str):
        return LogEntry(obj)
    record = decoder.fields(obj, LogEntry,
                            required=('value',),
                            optional=('denormalized', 'parameters', 'relative-start', 'duration'))
    relative_start = record.get('relative-start')
    duration = record.get('duration')
    parameters = record.get('parameters')
    if parameters is None:
        parameters = []
    if not isinstance(parameters, list):
        raise DecodeError(f'Expected a list of parameters. Got {parameters!r}')
    return LogEntry(value=decoder.string(record['value'], 'value'),
                    denormalized=decoder.optional_string(record.get('denormalized'), 'denormalized'),
                    parameters=tuple(decoder.string(parameter, 'parameter') for parameter in parameters),
                    relative_start=None if relative_start is None else parse_duration(relative_start),
                    duration=None if duration is None else parse_duration(duration))


def _encode_log(obj: Log, encoder: PythonEncoder):
    record = {}
    if obj.name is not None:
        record['name'] = obj.name
    record['entries'] = encode_entries(obj.entries, compact=encoder.compact)
    if obj.classifier is not None:
        record['class'] = obj.classifier
    if obj.split is not Split.TRAINING:
        record['split'] = obj.split.value
    if obj.epoch is not None:
        record['epoch'] = format_instant(obj.epoch)
    if obj.duration is not None:
        record['duration'] = format_duration(obj.duration)
    return record


def _decode_log(obj, decoder: PythonDecoder) -> Log:
    record = decoder.fields(obj, Log,
                            required=('entries',),
                            optional=('name', 'class', 'split', 'epoch', 'duration'))
    split = record.get('split')
    epoch = record.get('epoch')
    duration = record.get('duration')
    return Log(entries=decode_entries(record['entries']),
               name=decoder.optional_string(record.get('name'), 'name'),
               classifier=decoder.optional_string(record.get('class'), 'class'),
               split=Split.TRAINING if split is None else Split(decoder.string(split, 'split')),
               epoch=None if epoch is None else parse_instant(epoch),
               duration=None if duration is None else parse_duration(duration))


def _encode_log_archive(obj: LogArchive, encoder: PythonEncoder):
    record = {}
    if obj.name is not None:
        record['name'] = obj.name
    record['logs'] = encoder.encode_set(obj.logs)
    return record


def _decode_log_archive(obj, decoder: PythonDecoder) -> LogArchive:
    record = decoder.fields(obj, LogArchive, required=('logs',), optional=('name',))
    return LogArchive(logs=decoder.set(record['logs'], Log),
                      name=decoder.optional_string(record.get('name'), 'name'))


encode.register(dtype=LogEntry, handler=_encode_log_entry)
encode.register(dtype=Log, handler=_encode_log)
encode.register(dtype=LogArchive, handler=_encode_log_archive)

decode.register(dtype=LogEntry, handler=_decode_log_entry)
decode.register(dtype=Log, handler=_decode_log)
decode.register(dtype=LogArchive, handler=_decode_log_archive)
