"""Test the codec registry."""
import json
import logging

import pytest

from rereso.datamodel import Metadata
from rereso.exceptions import DecodeError
from rereso.exceptions import ProtocolError
from rereso.support.serialization import compact_json
from rereso.support.serialization import decode
from rereso.support.serialization import encode
from rereso.support.serialization import PythonDecoder
from rereso.support.serialization import PythonEncoder

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class Spam:
    def __init__(self, eggs: int):
        self.eggs = eggs


def test_encoding_basic_types():
    for value in ('asdf', 42, 4.2, True, None, [1, 'a'], {'a': [1, 2]}):
        serialized = json.dumps(value, default=encode)
        assert json.loads(serialized) == value
    assert encode((1, 2)) == [1, 2]
    with pytest.raises(TypeError):
        encode(Spam(1))
    with pytest.raises(TypeError):
        encode(b'bytes')


def test_encoder_registration():
    PythonEncoder.register(dtype=Spam, handler=lambda obj, encoder: {'eggs': obj.eggs})
    PythonDecoder.register(dtype=Spam, handler=lambda obj, decoder: Spam(decoder.fields(obj, Spam, ('eggs',))['eggs']))
    try:
        with pytest.raises(ProtocolError):
            PythonEncoder.register(dtype=Spam, handler=lambda obj, encoder: None)
        with pytest.raises(ProtocolError):
            PythonDecoder.register(dtype=Spam, handler=lambda obj, decoder: None)

        assert encode([Spam(1), {'spam': Spam(2)}]) == [{'eggs': 1}, {'spam': {'eggs': 2}}]
        assert decode({'eggs': 3}, Spam).eggs == 3
        with pytest.raises(DecodeError):
            decode({'ham': 3}, Spam)
    finally:
        PythonEncoder.unregister(Spam)
        PythonDecoder.unregister(Spam)

    with pytest.raises(ProtocolError):
        decode({'eggs': 3}, Spam)


def test_encoder_requires_types():
    with pytest.raises(TypeError):
        PythonEncoder.register(dtype='Spam', handler=lambda obj, encoder: None)


def test_subclass_dispatch():
    class Named(Metadata):
        pass

    assert encode(Named('Spam')) == {'name': 'Spam'}


def test_encoder_modes():
    assert encode.compact
    assert not PythonEncoder(compact=False).compact
    assert PythonEncoder().encode_set({'c', 'a', 'b'}) == ['a', 'b', 'c']


def test_compact_json():
    assert compact_json({'b': 1, 'a': [1, 2]}) == '{"a":[1,2],"b":1}'
    assert compact_json(Metadata('Spam', description='Eggs')) == '{"description":"Eggs","name":"Spam"}'
