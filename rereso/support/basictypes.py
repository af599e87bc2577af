"""Specify some basic value types used in the rereso data model.

:py:class:`MimeType` and :py:class:`URI` wrap their textual form but compare by
value: two MIME types are equal if their (case-insensitive) base types and
parameters match, two URIs are equal if they only differ in the case of the
scheme or host. The textual form given at construction is retained for
serialization.

Temporal values use the standard library types and ISO-8601 text:
:py:class:`datetime.timedelta` is written as a duration such as ``PT1H30M``
or ``PT0.500S``, timezone-aware :py:class:`datetime.datetime` values as UTC
instants such as ``1969-07-20T20:17:00Z``.
"""

from __future__ import annotations

__all__ = ['MimeType', 'URI', 'format_duration', 'format_instant', 'parse_duration', 'parse_instant']

import datetime
import logging
import re
import typing
import urllib.parse

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

# RFC 2045 token characters.
_token = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_mime_base = re.compile(rf'^\s*({_token})/({_token})\s*$')
_mime_parameter = re.compile(rf'^\s*({_token})\s*=\s*({_token}|"(?:[^"\\]|\\.)*")\s*$')


class MimeType:
    """A MIME media type such as ``text/plain`` or ``text/plain; charset=utf-8``.

    Construct either from the full text or from the primary and sub type::

        MimeType('application/json')
        MimeType('application', 'json')

    Type names and parameter names are case-insensitive and normalized to
    lower case. Parameter values are kept verbatim (unquoted).

    Raises:
        ValueError if the text is not a valid media type.
    """

    def __init__(self, primary_type: str, sub_type: str = None, parameters: typing.Mapping[str, str] = None):
        params = {}
        if sub_type is None:
            base, *raw_params = str(primary_type).split(';')
            match = _mime_base.match(base)
            if match is None:
                raise ValueError(f'Not a media type: {primary_type!r}')
            primary_type, sub_type = match.groups()
            for raw in raw_params:
                parameter = _mime_parameter.match(raw)
                if parameter is None:
                    raise ValueError(f'Bad media type parameter {raw!r} in {primary_type!r}')
                key, value = parameter.groups()
                if value.startswith('"'):
                    value = re.sub(r'\\(.)', r'\1', value[1:-1])
                params[key.lower()] = value
        else:
            if _mime_base.match(f'{primary_type}/{sub_type}') is None:
                raise ValueError(f'Not a media type: {primary_type!r}/{sub_type!r}')
        if parameters is not None:
            for key, value in parameters.items():
                params[str(key).lower()] = str(value)
        self._primary_type = primary_type.strip().lower()
        self._sub_type = sub_type.strip().lower()
        self._parameters = tuple(sorted(params.items()))

    @property
    def primary_type(self) -> str:
        return self._primary_type

    @property
    def sub_type(self) -> str:
        return self._sub_type

    @property
    def base_type(self) -> str:
        """The media type without parameters, e.g. ``text/plain``."""
        return f'{self._primary_type}/{self._sub_type}'

    @property
    def parameters(self) -> typing.Dict[str, str]:
        return dict(self._parameters)

    def __str__(self) -> str:
        rendered = [self.base_type]
        for key, value in self._parameters:
            if re.fullmatch(_token, value) is None:
                value = '"{}"'.format(value.replace('\\', '\\\\').replace('"', '\\"'))
            rendered.append(f'{key}={value}')
        return '; '.join(rendered)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({str(self)!r})'

    def __eq__(self, other):
        if not isinstance(other, MimeType):
            return NotImplemented
        return self.base_type == other.base_type and self._parameters == other._parameters

    def __hash__(self) -> int:
        return hash((self.base_type, self._parameters))


class URI:
    """A URI reference such as ``https://aqua.tools/schema.json``.

    The scheme and host name compare case-insensitively; all other components
    compare exactly.

    Raises:
        ValueError if *uri* is empty, contains whitespace, or cannot be parsed.
    """

    def __init__(self, uri: str):
        if isinstance(uri, URI):
            uri = str(uri)
        if not isinstance(uri, str):
            raise TypeError(f'Expected a URI string. Got {uri!r}')
        if not uri or any(char.isspace() for char in uri):
            raise ValueError(f'Not a URI: {uri!r}')
        parts = urllib.parse.urlsplit(uri)
        # Accessing the port validates it.
        port = parts.port
        self._text = uri
        self._key = (parts.scheme.lower(),
                     parts.username,
                     parts.password,
                     parts.hostname,
                     port,
                     parts.path,
                     parts.query,
                     parts.fragment)

    @property
    def scheme(self) -> str:
        return self._key[0]

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self._text!r})'

    def __eq__(self, other):
        if not isinstance(other, URI):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)


_duration = re.compile(
    r'^(?P<sign>[-+])?P(?:(?P<days>\d+)D)?'
    r'(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)(?:[.,](?P<fraction>\d+))?S)?)?$')


def _fraction(microseconds: int) -> str:
    """Render a sub-second part in groups of three digits, without trailing zero groups."""
    if microseconds == 0:
        return ''
    if microseconds % 1000 == 0:
        return '.{:03d}'.format(microseconds // 1000)
    return '.{:06d}'.format(microseconds)


def format_duration(duration: datetime.timedelta) -> str:
    """Render an ISO-8601 duration using hours, minutes and seconds.

    Days are folded into the hours, zero components are left out, and the
    zero duration is ``PT0S``.
    """
    if duration < datetime.timedelta(0):
        return '-' + format_duration(-duration)
    total_seconds = duration.days * 86400 + duration.seconds
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    microseconds = duration.microseconds

    has_hours = hours != 0
    has_seconds = seconds != 0 or microseconds != 0
    has_minutes = minutes != 0 or (has_seconds and has_hours)

    rendered = 'PT'
    if has_hours:
        rendered += f'{hours}H'
    if has_minutes:
        rendered += f'{minutes}M'
    if has_seconds or not (has_hours or has_minutes):
        rendered += f'{seconds}{_fraction(microseconds)}S'
    return rendered


def parse_duration(text: str) -> datetime.timedelta:
    """Parse an ISO-8601 duration of days, hours, minutes and (fractional) seconds.

    Sub-microsecond digits are truncated.

    Raises:
        ValueError if *text* is not such a duration.
    """
    if isinstance(text, datetime.timedelta):
        return text
    match = _duration.match(text) if isinstance(text, str) else None
    if match is None or text.endswith('T') or all(
            match.group(key) is None for key in ('days', 'hours', 'minutes', 'seconds')):
        raise ValueError(f'Not an ISO-8601 duration: {text!r}')
    fraction = match.group('fraction') or ''
    duration = datetime.timedelta(days=int(match.group('days') or 0),
                                  hours=int(match.group('hours') or 0),
                                  minutes=int(match.group('minutes') or 0),
                                  seconds=int(match.group('seconds') or 0),
                                  microseconds=int(fraction[:6].ljust(6, '0')))
    if match.group('sign') == '-':
        duration = -duration
    return duration


def format_instant(instant: datetime.datetime) -> str:
    """Render a timezone-aware timestamp as an ISO-8601 UTC instant with a ``Z`` suffix."""
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError(f'Instant {instant!r} has no timezone.')
    utc = instant.astimezone(datetime.timezone.utc)
    if utc.microsecond == 0:
        timespec = 'seconds'
    elif utc.microsecond % 1000 == 0:
        timespec = 'milliseconds'
    else:
        timespec = 'microseconds'
    return utc.replace(tzinfo=None).isoformat(timespec=timespec) + 'Z'


def parse_instant(text: typing.Union[str, datetime.datetime]) -> datetime.datetime:
    """Parse an ISO-8601 timestamp with an explicit offset and normalize to UTC.

    Already parsed :py:class:`datetime.datetime` values (as produced by YAML
    loaders for unquoted timestamps) are accepted if they are timezone-aware.

    Raises:
        ValueError if *text* is not a timestamp or has no offset.
    """
    if isinstance(text, datetime.datetime):
        instant = text
    elif isinstance(text, str):
        normalized = text.strip()
        if normalized[-1:] in ('Z', 'z'):
            normalized = normalized[:-1] + '+00:00'
        instant = datetime.datetime.fromisoformat(normalized)
    else:
        raise ValueError(f'Not an ISO-8601 instant: {text!r}')
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError(f'Instant {text!r} has no timezone offset.')
    return instant.astimezone(datetime.timezone.utc)
