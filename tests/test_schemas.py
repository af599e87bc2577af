"""Test the bundled schemas and the schema group machinery."""
import datetime
import json
import logging

import pytest

from artifacts import BENCHMARK_SETS
from artifacts import FACETS
from artifacts import LOG_ARCHIVES
from artifacts import SIMPLE_BENCHMARK
from artifacts import SIMPLE_TOOL
from artifacts import TOOLS
from rereso.exceptions import DecodeError
from rereso.exceptions import MissingSchemaError
from rereso.log import Log
from rereso.log import LogArchive
from rereso.log import LogEntry
from rereso.schemas import bundled_schema
from rereso.schemas import LogSchemas
from rereso.schemas import RereSoSchemas
from rereso.schemas import Schema
from rereso.schemas import SchemaGroup
from rereso.support.formats import dumps
from rereso.support.serialization import encode

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


def test_group_declarations(rereso_schemas, log_schemas):
    assert rereso_schemas.version == '0.3'
    assert [schema.name for schema in rereso_schemas] == ['common', 'benchmark_set', 'tool']
    assert [schema.name for schema in log_schemas] == [
        'logs', 'classified_logs', 'normalized_logs', 'timed_logs', 'tvt_split_logs']
    assert isinstance(log_schemas.tvt_split_logs, Schema)
    assert isinstance(LogSchemas.tvt_split_logs, bundled_schema)
    assert LogSchemas.tvt_split_logs.resource_name('0.3') == 'tvt-split-logs-0.3.json5'
    assert rereso_schemas.benchmark_set.uri == 'urn:rereso:schema:benchmark-set:0.3'
    assert len({schema.uri for schema in log_schemas}) == 5


def test_schemas_are_read_only(log_schemas):
    with pytest.raises(AttributeError):
        log_schemas.logs = log_schemas.timed_logs


def test_missing_schema():
    class BrokenSchemas(SchemaGroup):
        version = '0.3'
        resource_package = 'rereso.schemas'

        logs = bundled_schema()
        does_not_exist = bundled_schema()

    with pytest.raises(MissingSchemaError):
        BrokenSchemas()


def test_minted_uri(tmp_path, monkeypatch):
    (tmp_path / 'anonymous_schemas').mkdir()
    (tmp_path / 'anonymous_schemas' / '__init__.py').write_text('')
    (tmp_path / 'anonymous_schemas' / 'spam-1.json5').write_text("{type: 'object', required: ['eggs']}")
    monkeypatch.syspath_prepend(str(tmp_path))

    class AnonymousSchemas(SchemaGroup):
        version = '1'
        resource_package = 'anonymous_schemas'

        spam = bundled_schema()

    schemas = AnonymousSchemas()
    assert schemas.spam.uri.startswith('urn:uuid:')
    assert schemas.spam.validate('{"eggs": 1}')
    assert not schemas.spam.validate('{"ham": 1}')


@pytest.mark.parametrize('benchmark_set', BENCHMARK_SETS)
def test_benchmark_set_conforms(rereso_schemas, benchmark_set):
    result = rereso_schemas.benchmark_set.validate(dumps(benchmark_set, 'yaml'))
    assert result.valid, [str(error) for error in result.errors]


@pytest.mark.parametrize('tool', TOOLS)
def test_tool_conforms(rereso_schemas, tool):
    result = rereso_schemas.tool.validate(dumps(tool, 'yaml'))
    assert result.valid, [str(error) for error in result.errors]


def test_benchmark_set_violations(rereso_schemas):
    schema = rereso_schemas.benchmark_set

    document = encode(SIMPLE_BENCHMARK)
    document['rereso-benchmark-version'] = '0.2'
    result = schema.validate_instance(document)
    assert not result.valid
    assert [error.keyword for error in result.errors] == ['const']
    assert result.errors[0].instance_location == '/rereso-benchmark-version'

    # Neither a default license, nor per-benchmark licenses.
    document = encode(SIMPLE_BENCHMARK)
    del document['license']
    result = schema.validate_instance(document)
    assert not result.valid
    assert any(error.keyword == 'required' for error in result.errors)

    document = encode(SIMPLE_BENCHMARK)
    document['license'] = {'spdx': 'BSD', 'custom': 'Mine'}
    assert not schema.validate_instance(document)

    document = encode(SIMPLE_BENCHMARK)
    document['format']['media-type'] = 'text/plain; charset=utf-8'
    assert not schema.validate_instance(document)

    document = encode(SIMPLE_BENCHMARK)
    document['benchmarks'] = []
    assert not schema.validate_instance(document)


def test_tool_violations(rereso_schemas):
    document = encode(SIMPLE_TOOL)
    del document['image']
    result = rereso_schemas.tool.validate_instance(document)
    assert not result
    assert result.errors[0].keyword == 'required'


def test_validation_collects_all_errors(rereso_schemas):
    document = encode(SIMPLE_BENCHMARK)
    del document['metadata']
    document['rereso-benchmark-version'] = '0.2'
    result = rereso_schemas.benchmark_set.validate_instance(document)
    assert sorted(error.keyword for error in result.errors) == ['const', 'required']


def test_validate_unparsable_document(rereso_schemas, log_schemas):
    with pytest.raises(DecodeError):
        log_schemas.logs.validate('{"logs": [')
    with pytest.raises(DecodeError):
        rereso_schemas.tool.validate('metadata: [')


@pytest.mark.parametrize('archive,facets', LOG_ARCHIVES)
def test_log_archive_facets(log_schemas, archive, facets):
    document = dumps(archive, 'json')
    for name in ('logs', 'tvt_split_logs'):
        result = getattr(log_schemas, name).validate(document)
        assert result.valid, (name, [str(error) for error in result.errors])
    for name in FACETS:
        result = getattr(log_schemas, name).validate(document)
        assert result.valid == (name in facets), name


def test_split_facet(log_schemas):
    document = json.dumps({'logs': [{'entries': 'abc', 'split': 'holdout'}]})
    assert log_schemas.logs.validate(document)
    result = log_schemas.tvt_split_logs.validate(document)
    assert not result
    assert result.errors[0].instance_location == '/logs/0/split'
    assert result.errors[0].keyword == 'enum'


def test_facets_include_base_schema(log_schemas):
    document = json.dumps({'logs': [{'entries': [{'value': 'a', 'denormalized': 'a'}], 'extra': 1}]})
    assert not log_schemas.logs.validate(document)
    assert not log_schemas.normalized_logs.validate(document)


def test_facet_conjunction(log_schemas):
    second = datetime.timedelta(seconds=1)
    timed_and_classified = LogArchive(logs={
        Log(entries=[LogEntry('a', relative_start=0 * second), LogEntry('b', relative_start=second)],
            classifier='cls')})
    document = dumps(timed_and_classified, 'json')
    for schema in log_schemas:
        assert schema.validate(document).valid == (schema.name != 'normalized_logs'), schema.name

    plain = dumps(LogArchive(logs={Log(entries=['a', 'b'])}), 'json')
    assert log_schemas.logs.validate(plain)
    assert log_schemas.tvt_split_logs.validate(plain)
    assert not log_schemas.timed_logs.validate(plain)
    assert not log_schemas.classified_logs.validate(plain)


def test_error_location_follows_references(log_schemas):
    result = log_schemas.timed_logs.validate('{"logs": [{"entries": "a", "extra": 1}]}')
    assert not result
    issue = next(error for error in result.errors if error.keyword == 'additionalProperties')
    assert issue.instance_location == '/logs/0'
    assert issue.evaluation_path == '/allOf/0/$ref/properties/logs/items/$ref/additionalProperties'
    assert issue.schema_location == 'urn:rereso:schema:logs:0.3#/$defs/log/additionalProperties'

    # Keywords of the facet itself are located in the facet.
    issue = next(error for error in result.errors if error.keyword == 'type')
    assert issue.evaluation_path == '/properties/logs/items/properties/entries/type'
    assert issue.schema_location == 'urn:rereso:schema:timed-logs:0.3#/properties/logs/items/properties/entries/type'


def test_error_location_across_schemas(rereso_schemas):
    document = encode(SIMPLE_TOOL)
    document['metadata'] = {}
    result = rereso_schemas.tool.validate_instance(document)
    assert [error.keyword for error in result.errors] == ['required']
    assert result.errors[0].evaluation_path == '/properties/metadata/$ref/required'
    assert result.errors[0].schema_location == 'urn:rereso:schema:common:0.3#/$defs/metadata/required'
