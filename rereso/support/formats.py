"""Select compression and serialization codecs from file names.

File names follow the pattern ``<stem>[.<compression>].<format>``, e.g.
``logs.json.zst`` or ``rereso.yml``. The outermost suffix is checked against
the known compressions first (case-insensitive); if it does not match, the
file is not compressed. The remaining suffix must name a serialization
format, else :py:class:`~rereso.exceptions.UnsupportedFormat` is raised
before any file is touched.

Compressions:
    ``bz2``, ``gz``, ``xz``, ``zst``/``zstd``. Compression levels are module
    constants (``BZ2_COMPRESSLEVEL``, ``GZIP_COMPRESSLEVEL``, ``XZ_PRESET``,
    ``ZSTD_LEVEL``) read when a stream is opened.

Serialization formats:
    ``json``, ``json5``, ``yaml``/``yml``. JSON and JSON5 use the compact
    encoding (see :py:mod:`rereso.support.serialization`), YAML the
    structured one.
"""

from __future__ import annotations

__all__ = ['Compression',
           'dumps',
           'get_format',
           'loads',
           'open_compressed',
           'Pipeline',
           'resolve',
           'SerializationFormat',
           'smart_dump',
           'smart_load',
           'split_compression']

import bz2
import contextlib
import dataclasses
import gzip
import json
import logging
import lzma
import os
import pathlib
import typing

import json5
import yaml
import zstandard

from rereso.exceptions import DecodeError
from rereso.exceptions import UnsupportedFormat
from rereso.support.serialization import BaseDecoded
from rereso.support.serialization import BaseEncodable
from rereso.support.serialization import decode
from rereso.support.serialization import encode

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

BZ2_COMPRESSLEVEL = 9
GZIP_COMPRESSLEVEL = 6
XZ_PRESET = 6
ZSTD_LEVEL = 3

JSON_INDENT = 2

PathLike = typing.Union[str, os.PathLike]
T = typing.TypeVar('T')


def _is_writing(mode: str) -> bool:
    return any(char in mode for char in 'wax')


class Compression:
    """A compression codec for whole files.

    :py:meth:`open` behaves like the builtin :py:func:`open` (binary or text
    mode), transparently compressing or decompressing the stream.
    """

    def __init__(self, name: str, suffixes: typing.Iterable[str], opener: typing.Callable[..., typing.IO]):
        self.name = name
        self.suffixes = tuple(suffixes)
        self._opener = opener

    def open(self, path: PathLike, mode: str = 'rb') -> typing.IO:
        kwargs = {}
        if 't' in mode:
            kwargs['encoding'] = 'utf-8'
        return self._opener(path, mode, _is_writing(mode), **kwargs)

    def __repr__(self):
        return f'<Compression {self.name}>'


def _open_plain(path, mode, writing, **kwargs):
    return open(path, mode, **kwargs)


def _open_bz2(path, mode, writing, **kwargs):
    return bz2.open(path, mode, compresslevel=BZ2_COMPRESSLEVEL, **kwargs)


def _open_gzip(path, mode, writing, **kwargs):
    return gzip.open(path, mode, compresslevel=GZIP_COMPRESSLEVEL, **kwargs)


def _open_xz(path, mode, writing, **kwargs):
    # lzma refuses a preset for reading.
    if writing:
        kwargs['preset'] = XZ_PRESET
    return lzma.open(path, mode, **kwargs)


def _open_zstd(path, mode, writing, **kwargs):
    if writing:
        kwargs['cctx'] = zstandard.ZstdCompressor(level=ZSTD_LEVEL)
    return zstandard.open(path, mode, **kwargs)


PASSTHROUGH = Compression('none', (), _open_plain)
BZ2 = Compression('bz2', ('bz2',), _open_bz2)
GZIP = Compression('gzip', ('gz',), _open_gzip)
XZ = Compression('xz', ('xz',), _open_xz)
ZSTD = Compression('zstd', ('zst', 'zstd'), _open_zstd)

_compressions: typing.Dict[str, Compression] = {
    suffix: compression for compression in (BZ2, GZIP, XZ, ZSTD) for suffix in compression.suffixes
}


class SerializationFormat:
    """Render basic Python data as text, and parse it back.

    Attributes:
        name: Canonical format name.
        suffixes: File name suffixes selecting this format.
        compact: Whether values are encoded in compact mode for this format.
    """
    name: str
    suffixes: typing.Tuple[str, ...]
    compact: bool

    def dumps(self, obj: BaseEncodable) -> str:
        raise NotImplementedError

    def loads(self, text: str) -> BaseDecoded:
        raise NotImplementedError

    def __repr__(self):
        return f'<SerializationFormat {self.name}>'


class JsonFormat(SerializationFormat):
    name = 'json'
    suffixes = ('json',)
    compact = True

    def dumps(self, obj: BaseEncodable) -> str:
        return json.dumps(obj, indent=JSON_INDENT, ensure_ascii=False) + '\n'

    def loads(self, text: str) -> BaseDecoded:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f'Invalid JSON document: {e}') from e


class Json5Format(SerializationFormat):
    name = 'json5'
    suffixes = ('json5',)
    compact = True

    def dumps(self, obj: BaseEncodable) -> str:
        return json5.dumps(obj, indent=JSON_INDENT, ensure_ascii=False) + '\n'

    def loads(self, text: str) -> BaseDecoded:
        try:
            return json5.loads(text)
        except ValueError as e:
            raise DecodeError(f'Invalid JSON5 document: {e}') from e


class YamlFormat(SerializationFormat):
    name = 'yaml'
    suffixes = ('yaml', 'yml')
    compact = False

    def dumps(self, obj: BaseEncodable) -> str:
        return yaml.safe_dump(obj, sort_keys=False, allow_unicode=True)

    def loads(self, text: str) -> BaseDecoded:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DecodeError(f'Invalid YAML document: {e}') from e


JSON = JsonFormat()
JSON5 = Json5Format()
YAML = YamlFormat()

_formats: typing.Dict[str, SerializationFormat] = {
    suffix: serialization for serialization in (JSON, JSON5, YAML) for suffix in serialization.suffixes
}


def get_format(name: str) -> SerializationFormat:
    """Get the serialization format for a suffix or format name (case-insensitive).

    Raises:
        UnsupportedFormat for unknown names.
    """
    try:
        return _formats[name.lower()]
    except KeyError:
        raise UnsupportedFormat(f'Unsupported serialization format: {name!r}') from None


@dataclasses.dataclass(frozen=True)
class Pipeline:
    """The codecs selected for a file name.

    *stem* is the base name with the compression and format suffixes removed.
    """
    compression: Compression
    serialization: SerializationFormat
    stem: str


def split_compression(path: PathLike) -> typing.Tuple[Compression, pathlib.Path]:
    """Get the compression selected by *path* and the virtual path of the uncompressed content.

    Unknown suffixes select no compression and leave the path unchanged.
    """
    path = pathlib.Path(path)
    compression = _compressions.get(path.suffix[1:].lower())
    if compression is None:
        return PASSTHROUGH, path
    return compression, path.with_name(path.stem)


def resolve(name: PathLike) -> Pipeline:
    """Select the codecs for a file name.

    Raises:
        UnsupportedFormat if the name does not end in a known serialization
        suffix (after removing a compression suffix).
    """
    compression, virtual = split_compression(name)
    suffix = virtual.suffix[1:]
    if not suffix:
        raise UnsupportedFormat(f'No serialization format suffix in {os.fspath(name)!r}')
    serialization = get_format(suffix)
    pipeline = Pipeline(compression=compression, serialization=serialization, stem=virtual.stem)
    logger.debug(f'Resolved {os.fspath(name)!r} to {pipeline}.')
    return pipeline


@contextlib.contextmanager
def open_compressed(path: PathLike, mode: str = 'rb') -> typing.Iterator[typing.Tuple[typing.IO, pathlib.Path]]:
    """Open *path* through the compression selected by its name.

    Yields:
        The (de)compressing stream and the virtual path of the uncompressed
        content, e.g. ``logs.json`` for ``logs.json.gz``.
    """
    compression, virtual = split_compression(path)
    with compression.open(path, mode) as stream:
        yield stream, virtual


def dumps(value, format_name: str = 'json') -> str:
    """Encode and serialize *value* in the named format."""
    serialization = get_format(format_name)
    return serialization.dumps(encode(value, compact=serialization.compact))


def loads(text: str, dtype: typing.Type[T], format_name: str = 'json') -> T:
    """Deserialize *text* in the named format and decode a *dtype* instance.

    Raises:
        DecodeError if the text cannot be parsed or does not describe a *dtype*.
    """
    serialization = get_format(format_name)
    return decode(serialization.loads(text), dtype)


def smart_dump(path: PathLike, value):
    """Write *value* to *path*, with the format and compression selected by the file name."""
    pipeline = resolve(path)
    text = pipeline.serialization.dumps(encode(value, compact=pipeline.serialization.compact))
    with pipeline.compression.open(path, 'wt') as stream:
        stream.write(text)


def smart_load(path: PathLike, dtype: typing.Type[T]) -> T:
    """Read a *dtype* instance from *path*, with the format and compression selected by the file name."""
    pipeline = resolve(path)
    with pipeline.compression.open(path, 'rt') as stream:
        text = stream.read()
    return decode(pipeline.serialization.loads(text), dtype)
