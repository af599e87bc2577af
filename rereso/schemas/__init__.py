"""Bundled, versioned JSON schemas for rereso documents.

Schemas are organized in groups. A group declares its schemas as class
attributes; each attribute name determines the bundled resource file, which
lives next to the module defining the group::

    class RereSoSchemas(SchemaGroup):
        version = '0.3'
        instance_format = YAML

        benchmark_set = bundled_schema()   # benchmark-set-0.3.json5

All schemas of a group are loaded, checked, and registered when the group is
instantiated. Schemas of one group can reference each other through their
``$id`` URIs.

Validation does not raise for non-conforming documents. It reports all
problems in a :py:class:`ValidationResult`::

    schemas = LogSchemas()
    result = schemas.timed_logs.validate(document)
    if not result:
        for issue in result.errors:
            print(issue.instance_location, issue.message)
"""

from __future__ import annotations

__all__ = ['bundled_schema',
           'LogSchemas',
           'RereSoSchemas',
           'Schema',
           'SchemaGroup',
           'ValidationIssue',
           'ValidationResult']

import dataclasses
import importlib.resources
import logging
import sys
import typing
import urllib.parse
import uuid

import json5
import jsonschema
import referencing
import referencing.jsonschema

from rereso.datamodel import SCHEMA_VERSION
from rereso.exceptions import MissingSchemaError
from rereso.support.formats import JSON
from rereso.support.formats import SerializationFormat
from rereso.support.formats import YAML
from rereso.support.serialization import BaseDecoded
from rereso.support.strings import camel_to_snake_case

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


def _pointer(parts: typing.Iterable) -> str:
    """Render a JSON pointer (RFC 6901). The empty pointer is the document root."""
    return ''.join('/' + str(part).replace('~', '~0').replace('/', '~1') for part in parts)


def _unpointer(fragment: str) -> typing.Tuple[str, ...]:
    if not fragment:
        return ()
    return tuple(part.replace('~1', '/').replace('~0', '~') for part in fragment.split('/')[1:])


def _walk(node, resolver: referencing.Resolver, uri: str, location: tuple, remaining: list, evaluated: tuple,
          target, followed: frozenset):
    """Replay a validator schema path over schema contents.

    Returns the evaluation path, the URI of the resource holding the failing
    keyword and the pointer to it, or None if the path does not lead to
    *target*, the schema object in which the keyword failed.
    """
    if len(remaining) <= 1:
        if node is target and (not remaining or (isinstance(node, dict) and remaining[0] in node)):
            return evaluated + tuple(remaining), uri, location + tuple(remaining)
    if remaining:
        segment = remaining[0]
        child = None
        if isinstance(node, dict) and segment in node:
            child = node[segment]
        elif isinstance(node, list) and isinstance(segment, int) and segment < len(node):
            child = node[segment]
        if child is not None:
            found = _walk(child, resolver, uri, location + (segment,), remaining[1:], evaluated + (segment,),
                          target, frozenset())
            if found is not None:
                return found
    if isinstance(node, dict) and isinstance(node.get('$ref'), str) and id(node) not in followed:
        reference = node['$ref']
        resolved = resolver.lookup(reference)
        document, fragment = urllib.parse.urldefrag(reference)
        document = urllib.parse.urljoin(uri, document) if document else uri
        return _walk(resolved.contents, resolved.resolver, document, _unpointer(fragment), remaining,
                     evaluated + ('$ref',), target, followed | {id(node)})
    return None


@dataclasses.dataclass(frozen=True)
class ValidationIssue:
    """A single validation error.

    Attributes:
        evaluation_path: JSON pointer of the failing keyword, following the
            keywords evaluated from the root schema (including ``$ref``).
        schema_location: Absolute location of the failing keyword, i.e. the
            schema URI and a JSON pointer fragment.
        instance_location: JSON pointer of the offending value in the document.
        keyword: The failing keyword, e.g. ``required``.
        message: Human readable description.
    """
    evaluation_path: str
    schema_location: str
    instance_location: str
    keyword: str
    message: str

    def __str__(self):
        return f'{self.instance_location or "/"}: {self.message} ({self.keyword} at {self.schema_location})'


@dataclasses.dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a document against a schema. Truthy iff valid."""
    valid: bool
    errors: typing.Tuple[ValidationIssue, ...] = ()

    def __bool__(self):
        return self.valid


class Schema:
    """A registered schema, bound to the validator and instance format of its group."""

    def __init__(self, *, name: str, uri: str, contents: dict, validator: jsonschema.protocols.Validator,
                 instance_format: SerializationFormat, registry: referencing.Registry):
        self.name = name
        self.uri = uri
        self.contents = contents
        self._validator = validator
        self._resolver = registry.resolver(base_uri=uri)
        self._instance_format = instance_format

    def validate(self, document: str) -> ValidationResult:
        """Parse *document* in the group's instance format and validate it.

        Raises:
            DecodeError if the document cannot be parsed at all.
        """
        return self.validate_instance(self._instance_format.loads(document))

    def validate_instance(self, instance: BaseDecoded) -> ValidationResult:
        """Validate already parsed basic Python data."""
        issues = []
        for error in self._validator.iter_errors(instance):
            evaluation_path, schema_location = self._locate(error)
            issues.append(ValidationIssue(evaluation_path=evaluation_path,
                                          schema_location=schema_location,
                                          instance_location=_pointer(error.absolute_path),
                                          keyword=str(error.validator),
                                          message=error.message))
        return ValidationResult(valid=not issues, errors=tuple(issues))

    def _locate(self, error: jsonschema.ValidationError) -> typing.Tuple[str, str]:
        """Get the evaluation path and the absolute keyword location of *error*.

        The schema path reported by the validator skips ``$ref`` keywords, so
        the path is replayed over the schema contents, following references
        wherever the next segment is not found locally.
        """
        segments = list(error.absolute_schema_path)
        found = _walk(self.contents, self._resolver, self.uri, (), segments, (), error.schema, frozenset())
        if found is None:
            logger.debug(f'Could not replay schema path {segments} in {self.uri}.')
            pointer = _pointer(segments)
            return pointer, f'{self.uri}#{pointer}'
        evaluated, uri, location = found
        return _pointer(evaluated), f'{uri}#{_pointer(location)}'

    def __str__(self):
        return self.uri

    def __repr__(self):
        return f'<Schema {self.name} {self.uri}>'


class bundled_schema:
    """Declare a bundled schema in a :py:class:`SchemaGroup` body.

    The resource name is derived from the attribute name and the group version:
    ``tvt_split_logs`` in a version ``0.3`` group is ``tvt-split-logs-0.3.json5``.
    Instances of the group provide the registered :py:class:`Schema`; the
    attribute cannot be assigned.
    """

    def __init__(self):
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name

    def resource_name(self, version: str) -> str:
        return f'{camel_to_snake_case(self.name, "-")}-{version}.json5'

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance._schemas[self.name]

    def __set__(self, instance, value):
        raise AttributeError(f'Schema {self.name} is read-only.')


class SchemaGroup:
    """Base class for a family of versioned schemas.

    Subclasses define *version*, the *instance_format* used to parse
    documents for :py:meth:`Schema.validate`, and declare their schemas with
    :py:class:`bundled_schema`. Resources are looked up in the package of the
    module defining the subclass, unless *resource_package* is set.
    """
    version: typing.ClassVar[str]
    instance_format: typing.ClassVar[SerializationFormat] = JSON
    resource_package: typing.ClassVar[typing.Optional[str]] = None

    _declared: typing.ClassVar[typing.Tuple[bundled_schema, ...]] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        declared = {}
        for klass in reversed(cls.__mro__):
            for value in vars(klass).values():
                if isinstance(value, bundled_schema):
                    declared[value.name] = value
        cls._declared = tuple(declared.values())

    def __init__(self):
        contents = {}
        for declaration in self._declared:
            contents[declaration.name] = self._load(declaration.resource_name(self.version))

        registry = referencing.Registry()
        uris = {}
        for name, schema in contents.items():
            jsonschema.Draft202012Validator.check_schema(schema)
            uri = schema.get('$id') or f'urn:uuid:{uuid.uuid4()}'
            resource = referencing.Resource.from_contents(schema,
                                                          default_specification=referencing.jsonschema.DRAFT202012)
            registry = registry.with_resource(uri, resource)
            uris[name] = uri
            logger.debug(f'Registered schema {name} as {uri}.')
        registry = registry.crawl()

        self._schemas: typing.Dict[str, Schema] = {}
        for name, schema in contents.items():
            validator = jsonschema.Draft202012Validator(schema, registry=registry)
            self._schemas[name] = Schema(name=name,
                                         uri=uris[name],
                                         contents=schema,
                                         validator=validator,
                                         instance_format=self.instance_format,
                                         registry=registry)
        logger.info(f'Initialized {self.__class__.__name__} version {self.version} '
                    f'with schemas {", ".join(self._schemas)}.')

    @classmethod
    def _package(cls) -> str:
        if cls.resource_package is not None:
            return cls.resource_package
        module = sys.modules[cls.__module__]
        if hasattr(module, '__path__'):
            return module.__name__
        return module.__name__.rpartition('.')[0]

    def _load(self, resource_name: str) -> dict:
        package = self._package()
        try:
            resource = importlib.resources.files(package).joinpath(resource_name)
            text = resource.read_text(encoding='utf-8')
        except (FileNotFoundError, ModuleNotFoundError, TypeError, ValueError) as e:
            raise MissingSchemaError(f'Schema {resource_name} not found in {package!r}.') from e
        return json5.loads(text)

    @property
    def schemas(self) -> typing.Tuple[Schema, ...]:
        """All schemas of the group, in declaration order."""
        return tuple(self._schemas.values())

    def __iter__(self) -> typing.Iterator[Schema]:
        return iter(self.schemas)


class RereSoSchemas(SchemaGroup):
    """Schemas of the benchmark set and tool descriptions (YAML documents)."""
    version = SCHEMA_VERSION
    instance_format = YAML

    common = bundled_schema()
    """Definitions shared by the artifact schemas."""
    benchmark_set = bundled_schema()
    tool = bundled_schema()


class LogSchemas(SchemaGroup):
    """Schemas of log archives (JSON documents).

    *logs* is the base schema. The others are facets, each requiring one
    optional log feature to be present in all logs of an archive.
    """
    version = SCHEMA_VERSION
    instance_format = JSON

    logs = bundled_schema()
    classified_logs = bundled_schema()
    normalized_logs = bundled_schema()
    timed_logs = bundled_schema()
    tvt_split_logs = bundled_schema()
