import datetime
import logging

import pytest

from rereso.support.basictypes import format_duration
from rereso.support.basictypes import format_instant
from rereso.support.basictypes import MimeType
from rereso.support.basictypes import parse_duration
from rereso.support.basictypes import parse_instant
from rereso.support.basictypes import URI

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


def test_mime_type():
    mime_type = MimeType('Text/Plain; Charset=utf-8')
    assert mime_type.base_type == 'text/plain'
    assert mime_type.parameters == {'charset': 'utf-8'}
    assert str(mime_type) == 'text/plain; charset=utf-8'
    assert MimeType('text', 'plain') == MimeType('TEXT/PLAIN')
    assert MimeType('text/plain') != mime_type
    assert MimeType('text/plain; title="a b"').parameters == {'title': 'a b'}
    assert str(MimeType('text/plain; title="a b"')) == 'text/plain; title="a b"'

    for bad in ('text', 'text/', '/plain', 'text/plain; charset', 'a b/c'):
        with pytest.raises(ValueError):
            MimeType(bad)


def test_uri():
    assert URI('HTTPS://Aqua.Tools/Schema') == URI('https://aqua.tools/Schema')
    assert URI('https://aqua.tools/Schema') != URI('https://aqua.tools/schema')
    assert str(URI('HTTPS://Aqua.Tools')) == 'HTTPS://Aqua.Tools'
    assert len({URI('https://aqua.tools'), URI('HTTPS://aqua.tools')}) == 1
    for bad in ('', 'has space', 'https://host:port/'):
        with pytest.raises(ValueError):
            URI(bad)


@pytest.mark.parametrize('duration,text', [
    (datetime.timedelta(0), 'PT0S'),
    (datetime.timedelta(seconds=1), 'PT1S'),
    (datetime.timedelta(hours=1), 'PT1H'),
    (datetime.timedelta(minutes=90), 'PT1H30M'),
    (datetime.timedelta(hours=1, seconds=5), 'PT1H0M5S'),
    (datetime.timedelta(milliseconds=1500), 'PT1.500S'),
    (datetime.timedelta(microseconds=1), 'PT0.000001S'),
    (datetime.timedelta(days=2), 'PT48H'),
    (-datetime.timedelta(seconds=3), '-PT3S'),
])
def test_duration(duration, text):
    assert format_duration(duration) == text
    assert parse_duration(text) == duration


def test_parse_duration():
    assert parse_duration('P1D') == datetime.timedelta(days=1)
    assert parse_duration('PT0,5S') == datetime.timedelta(milliseconds=500)
    for bad in ('', 'P', 'PT', '1S', 'PT1', 'PT1.S', 'one second'):
        with pytest.raises(ValueError):
            parse_duration(bad)


def test_instant():
    instant = datetime.datetime(1969, 7, 20, 20, 17, tzinfo=datetime.timezone.utc)
    assert format_instant(instant) == '1969-07-20T20:17:00Z'
    assert parse_instant('1969-07-20T20:17:00Z') == instant
    assert parse_instant('1969-07-20T22:17:00+02:00') == instant
    assert format_instant(parse_instant('1969-07-20T22:17:00.250+02:00')) == '1969-07-20T20:17:00.250Z'
    with pytest.raises(ValueError):
        parse_instant('1969-07-20T20:17:00')
    with pytest.raises(ValueError):
        format_instant(datetime.datetime(1969, 7, 20))
