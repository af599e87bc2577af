"""rereso artifact data model.

Benchmark sets and tools are immutable value objects. Construction checks the
invariants of each entity and raises :py:class:`~rereso.exceptions.InvariantError`
on violation, so an existing object is always valid.

Collections are normalized on construction: unordered collections become
:py:class:`frozenset`, ordered ones :py:class:`tuple`. Textual MIME types and
URIs are converted to :py:class:`~rereso.support.basictypes.MimeType` and
:py:class:`~rereso.support.basictypes.URI`.

Wire form:
    Encoding and decoding handlers for all entities are registered with
    :py:mod:`rereso.support.serialization` when this module is imported.
    Optional fields and empty collections are omitted when encoding, and
    accepted as absent (or ``null``) when decoding.

Example::

    benchmark_set = BenchmarkSet(
        metadata=Metadata('Simple Benchmark'),
        license=SpdxLicense('BSD'),
        format=DataFormat('text/plain'),
        benchmarks={Benchmark('example.txt')})
    document = json.dumps(encode(benchmark_set))
"""

from __future__ import annotations

__all__ = ['BENCHMARK_SET_FILE_NAME',
           'Benchmark',
           'BenchmarkSet',
           'CustomLicense',
           'DataFormat',
           'License',
           'Metadata',
           'SCHEMA_VERSION',
           'SpdxLicense',
           'Tool',
           'ToolCommand']

import dataclasses
import logging
import typing

from rereso.exceptions import InvariantError
from rereso.support.basictypes import MimeType
from rereso.support.basictypes import URI
from rereso.support.serialization import decode
from rereso.support.serialization import encode
from rereso.support.serialization import PythonDecoder
from rereso.support.serialization import PythonEncoder
from rereso.support.strings import implies

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

SCHEMA_VERSION = '0.3'
"""Version of the artifact formats (and their bundled schemas)."""

BENCHMARK_SET_FILE_NAME = 'rereso.yml'
"""Conventional file name of a benchmark set description."""


def _set(values, dtype: type, what: str) -> typing.FrozenSet:
    if isinstance(values, (str, bytes)):
        raise InvariantError(f'{what} must be a collection, not a single string.')
    return frozenset(value if isinstance(value, dtype) else dtype(value) for value in values)


def _non_empty_string(value, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvariantError(f'{what} must be a non-empty string. Got {value!r}')
    return value


@dataclasses.dataclass(frozen=True)
class Metadata:
    """Descriptive metadata shared by all artifacts."""
    name: str
    description: typing.Optional[str] = None
    references: typing.FrozenSet[URI] = frozenset()

    def __post_init__(self):
        _non_empty_string(self.name, 'Metadata name')
        object.__setattr__(self, 'references', _set(self.references, URI, 'references'))


@dataclasses.dataclass(frozen=True)
class SpdxLicense:
    """A license identified by its SPDX identifier (or expression), e.g. ``BSD-3-Clause``."""
    id: str

    def __post_init__(self):
        _non_empty_string(self.id, 'SPDX license identifier')


@dataclasses.dataclass(frozen=True)
class CustomLicense:
    """A license given as free text."""
    text: str

    def __post_init__(self):
        _non_empty_string(self.text, 'Custom license text')


License = typing.Union[SpdxLicense, CustomLicense]
_license_types = (SpdxLicense, CustomLicense)


def _check_license(license, what: str, optional: bool = True):
    if license is None and optional:
        return
    if not isinstance(license, _license_types):
        raise InvariantError(f'{what} must be a SpdxLicense or CustomLicense. Got {license!r}')


@dataclasses.dataclass(frozen=True)
class DataFormat:
    """A data format: a media type, optionally constrained by schemas.

    The media type must not carry parameters. Media types compare by their
    case-insensitive base type, so ``DataFormat('text/plain')`` equals
    ``DataFormat('TEXT/Plain')``.
    """
    media_type: MimeType
    schemas: typing.FrozenSet[URI] = frozenset()

    def __post_init__(self):
        media_type = self.media_type
        if not isinstance(media_type, MimeType):
            try:
                media_type = MimeType(media_type)
            except ValueError as e:
                raise InvariantError(str(e)) from e
        if media_type.parameters:
            raise InvariantError(f'The media type must not be parameterized. Got {media_type}')
        object.__setattr__(self, 'media_type', media_type)
        object.__setattr__(self, 'schemas', _set(self.schemas, URI, 'schemas'))


@dataclasses.dataclass(frozen=True)
class Benchmark:
    path: str
    license: typing.Optional[License] = None

    def __post_init__(self):
        _non_empty_string(self.path, 'Benchmark path')
        _check_license(self.license, 'Benchmark license')


@dataclasses.dataclass(frozen=True)
class BenchmarkSet:
    """A set of benchmark files of a common format.

    Invariants:
        * There is at least one benchmark.
        * Either a default *license* is set, or every benchmark has its own.
    """
    metadata: Metadata
    license: typing.Optional[License]
    format: DataFormat
    benchmarks: typing.FrozenSet[Benchmark]

    rereso_version: typing.ClassVar[str] = SCHEMA_VERSION

    def __post_init__(self):
        _check_license(self.license, 'Default license')
        if isinstance(self.benchmarks, Benchmark):
            raise InvariantError('benchmarks must be a collection of Benchmark objects.')
        benchmarks = frozenset(self.benchmarks)
        if not benchmarks:
            raise InvariantError('At least one benchmark is required.')
        if not all(isinstance(benchmark, Benchmark) for benchmark in benchmarks):
            raise InvariantError(f'Expected Benchmark objects. Got {benchmarks!r}')
        if not implies(self.license is None, all(benchmark.license is not None for benchmark in benchmarks)):
            raise InvariantError('Either a default license must be defined, or all benchmarks must define one.')
        object.__setattr__(self, 'benchmarks', benchmarks)


@dataclasses.dataclass(frozen=True)
class ToolCommand:
    """A command line offered by a tool, reading one format and writing one or more."""
    name: str
    input_format: DataFormat
    output_formats: typing.Tuple[DataFormat, ...]

    def __post_init__(self):
        _non_empty_string(self.name, 'Command name')
        if not isinstance(self.input_format, DataFormat):
            raise InvariantError(f'Expected a DataFormat for the input. Got {self.input_format!r}')
        output_formats = tuple(self.output_formats)
        if not all(isinstance(output_format, DataFormat) for output_format in output_formats):
            raise InvariantError(f'Expected DataFormat objects for the outputs. Got {output_formats!r}')
        object.__setattr__(self, 'output_formats', output_formats)


@dataclasses.dataclass(frozen=True)
class Tool:
    """A research tool packaged as a container *image*."""
    metadata: Metadata
    license: License
    commands: typing.FrozenSet[ToolCommand]
    image: str

    def __post_init__(self):
        _check_license(self.license, 'Tool license', optional=False)
        commands = frozenset(self.commands)
        if not all(isinstance(command, ToolCommand) for command in commands):
            raise InvariantError(f'Expected ToolCommand objects. Got {commands!r}')
        object.__setattr__(self, 'commands', commands)
        _non_empty_string(self.image, 'Tool image')


# Encoding and decoding.
#
# Handlers only deal with a single entity; nested values are processed by the
# encoder or decoder that was passed in.

def _omit_empty(record: dict) -> dict:
    """Drop the ``None`` values and empty collections from an encoded record."""
    return {key: value for key, value in record.items() if value is not None and value != []}


def _encode_metadata(obj: Metadata, encoder: PythonEncoder):
    return _omit_empty({
        'name': obj.name,
        'description': obj.description,
        'references': encoder.encode_set(str(reference) for reference in obj.references),
    })


def _decode_metadata(obj, decoder: PythonDecoder) -> Metadata:
    record = decoder.fields(obj, Metadata, required=('name',), optional=('description', 'references'))
    return Metadata(name=decoder.string(record['name'], 'name'),
                    description=decoder.optional_string(record.get('description'), 'description'),
                    references=decoder.set(record.get('references'), URI))


def _encode_license(obj: License, encoder: PythonEncoder):
    if isinstance(obj, SpdxLicense):
        return {'spdx': obj.id}
    else:
        return {'custom': obj.text}


def _decode_license(obj, decoder: PythonDecoder) -> License:
    record = decoder.fields(obj, License, optional=('spdx', 'custom'))
    spdx = record.get('spdx')
    custom = record.get('custom')
    if (spdx is None) == (custom is None):
        raise InvariantError(f'Exactly one of "spdx" or "custom" must be given for a license. Got {obj!r}')
    if spdx is not None:
        return SpdxLicense(decoder.string(spdx, 'spdx'))
    else:
        return CustomLicense(decoder.string(custom, 'custom'))


def _decode_uri(obj, decoder: PythonDecoder) -> URI:
    return URI(decoder.string(obj, 'URI'))


def _encode_data_format(obj: DataFormat, encoder: PythonEncoder):
    return _omit_empty({
        'media-type': str(obj.media_type),
        'schemas': encoder.encode_set(str(schema) for schema in obj.schemas),
    })


def _decode_data_format(obj, decoder: PythonDecoder) -> DataFormat:
    record = decoder.fields(obj, DataFormat, required=('media-type',), optional=('schemas',))
    return DataFormat(media_type=MimeType(decoder.string(record['media-type'], 'media-type')),
                      schemas=decoder.set(record.get('schemas'), URI))


def _encode_benchmark(obj: Benchmark, encoder: PythonEncoder):
    return _omit_empty({
        'path': obj.path,
        'license': None if obj.license is None else encoder.encode(obj.license),
    })


def _decode_benchmark(obj, decoder: PythonDecoder) -> Benchmark:
    record = decoder.fields(obj, Benchmark, required=('path',), optional=('license',))
    license = record.get('license')
    return Benchmark(path=decoder.string(record['path'], 'path'),
                     license=None if license is None else decoder.decode(license, License))


def _encode_benchmark_set(obj: BenchmarkSet, encoder: PythonEncoder):
    return _omit_empty({
        'metadata': encoder.encode(obj.metadata),
        'license': None if obj.license is None else encoder.encode(obj.license),
        'format': encoder.encode(obj.format),
        'benchmarks': encoder.encode_set(obj.benchmarks),
        'rereso-benchmark-version': obj.rereso_version,
    })


def _decode_benchmark_set(obj, decoder: PythonDecoder) -> BenchmarkSet:
    record = decoder.fields(obj, BenchmarkSet,
                            required=('metadata', 'format', 'rereso-benchmark-version'),
                            optional=('license', 'benchmarks'))
    # The version tag is mandatory, but checking its value is left to the schema.
    decoder.string(record['rereso-benchmark-version'], 'rereso-benchmark-version')
    license = record.get('license')
    return BenchmarkSet(metadata=decoder.decode(record['metadata'], Metadata),
                        license=None if license is None else decoder.decode(license, License),
                        format=decoder.decode(record['format'], DataFormat),
                        benchmarks=decoder.set(record.get('benchmarks'), Benchmark))


def _encode_tool_command(obj: ToolCommand, encoder: PythonEncoder):
    return {
        'name': obj.name,
        'input-format': encoder.encode(obj.input_format),
        'output-formats': [encoder.encode(output_format) for output_format in obj.output_formats],
    }


def _decode_tool_command(obj, decoder: PythonDecoder) -> ToolCommand:
    record = decoder.fields(obj, ToolCommand, required=('name', 'input-format', 'output-formats'))
    return ToolCommand(name=decoder.string(record['name'], 'name'),
                       input_format=decoder.decode(record['input-format'], DataFormat),
                       output_formats=decoder.sequence(record['output-formats'], DataFormat))


def _encode_tool(obj: Tool, encoder: PythonEncoder):
    return _omit_empty({
        'metadata': encoder.encode(obj.metadata),
        'license': encoder.encode(obj.license),
        'commands': encoder.encode_set(obj.commands),
        'image': obj.image,
    })


def _decode_tool(obj, decoder: PythonDecoder) -> Tool:
    record = decoder.fields(obj, Tool, required=('metadata', 'license', 'image'), optional=('commands',))
    return Tool(metadata=decoder.decode(record['metadata'], Metadata),
                license=decoder.decode(record['license'], License),
                commands=decoder.set(record.get('commands'), ToolCommand),
                image=decoder.string(record['image'], 'image'))


encode.register(dtype=Metadata, handler=_encode_metadata)
encode.register(dtype=SpdxLicense, handler=_encode_license)
encode.register(dtype=CustomLicense, handler=_encode_license)
encode.register(dtype=DataFormat, handler=_encode_data_format)
encode.register(dtype=Benchmark, handler=_encode_benchmark)
encode.register(dtype=BenchmarkSet, handler=_encode_benchmark_set)
encode.register(dtype=ToolCommand, handler=_encode_tool_command)
encode.register(dtype=Tool, handler=_encode_tool)

decode.register(dtype=Metadata, handler=_decode_metadata)
decode.register(dtype=License, handler=_decode_license)
decode.register(dtype=URI, handler=_decode_uri)
decode.register(dtype=DataFormat, handler=_decode_data_format)
decode.register(dtype=Benchmark, handler=_decode_benchmark)
decode.register(dtype=BenchmarkSet, handler=_decode_benchmark_set)
decode.register(dtype=ToolCommand, handler=_decode_tool_command)
decode.register(dtype=Tool, handler=_decode_tool)
