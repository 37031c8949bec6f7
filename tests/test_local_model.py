from unittest.mock import MagicMock, call

import pytest

from remote_model.events import EventEmitter
from remote_model.local_model import LocalModel


@pytest.fixture
def model():
    return LocalModel({'name': 'Test name'})


class TestEventEmitter:
    def test_emit_without_listeners(self):
        assert EventEmitter().emit('anything') is False

    def test_listeners_called_in_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on('evt', lambda value: calls.append(('first', value)))
        emitter.on('evt', lambda value: calls.append(('second', value)))
        assert emitter.emit('evt', 1) is True
        assert calls == [('first', 1), ('second', 1)]

    def test_once(self):
        emitter = EventEmitter()
        listener = MagicMock()
        emitter.once('evt', listener)
        emitter.emit('evt', 'a')
        emitter.emit('evt', 'b')
        listener.assert_called_once_with('a')

    def test_off(self):
        emitter = EventEmitter()
        listener = MagicMock()
        emitter.on('evt', listener)
        emitter.off('evt', listener)
        emitter.emit('evt')
        listener.assert_not_called()

    def test_off_removes_once_listener(self):
        emitter = EventEmitter()
        listener = MagicMock()
        emitter.once('evt', listener)
        emitter.off('evt', listener)
        assert emitter.listeners('evt') == []


class TestGetSet:
    def test_get(self, model):
        assert model.get('name') == 'Test name'
        assert model.get('missing') is None

    def test_set_key(self, model):
        assert model.set('age', 20).attributes == {'name': 'Test name', 'age': 20}

    def test_set_mapping(self, model):
        model.set({'placeOfBirth': 'London'})
        assert model.attributes == {'name': 'Test name', 'placeOfBirth': 'London'}

    def test_change_event_with_changed_attributes(self, model):
        listener = MagicMock()
        model.on('change', listener)
        model.set({'foo': 'bar', 'bar': 'baz'})
        listener.assert_called_once_with({'foo': 'bar', 'bar': 'baz'})

    def test_unchanged_attributes_not_reported(self, model):
        model.set({'foo': 'bar', 'bar': 'baz'})
        listener = MagicMock()
        model.on('change', listener)
        model.set({'foo': 'bar', 'bar': 'changed'})
        listener.assert_called_once_with({'bar': 'changed'})

    def test_property_change_events(self, model):
        listener = MagicMock()
        model.on('change:prop', listener)
        model.set('prop', 'value')
        model.set('prop', 'newvalue')
        model.set('prop', 'newvalue')
        assert listener.call_args_list == [call('value', None), call('newvalue', 'value')]

    def test_silent(self, model):
        listener = MagicMock()
        model.on('change', listener)
        model.on('change:prop', listener)
        model.set('prop', 'value', silent=True)
        model.set({'prop': 'other'}, silent=True)
        listener.assert_not_called()


class TestUnset:
    @pytest.fixture(autouse=True)
    def attrs(self, model):
        model.reset(silent=True)
        model.set({'a': 1, 'b': 2, 'c': 3}, silent=True)

    def test_unset_key(self, model):
        model.unset('a')
        assert model.to_json() == {'b': 2, 'c': 3}

    def test_unset_list(self, model):
        model.unset(['a', 'b'])
        assert model.to_json() == {'c': 3}

    def test_unset_missing_key(self, model):
        listener = MagicMock()
        model.on('change', listener)
        model.unset('foo')
        assert model.to_json() == {'a': 1, 'b': 2, 'c': 3}
        listener.assert_not_called()

    def test_events(self, model):
        change, change_a = MagicMock(), MagicMock()
        model.on('change', change)
        model.on('change:a', change_a)
        model.unset('a')
        change.assert_called_once_with({'a': None})
        change_a.assert_called_once_with(None, 1)

    def test_silent(self, model):
        listener = MagicMock()
        model.on('change', listener)
        model.on('change:a', listener)
        model.unset('a', silent=True)
        listener.assert_not_called()


class TestIncrement:
    def test_requires_key(self, model):
        with pytest.raises(TypeError):
            model.increment()

    def test_requires_string_key(self, model):
        with pytest.raises(TypeError):
            model.increment({})

    def test_by_one(self, model):
        model.set('value', 1)
        model.increment('value')
        assert model.get('value') == 2

    def test_by_amount(self, model):
        model.set('value', 10)
        model.increment('value', 10)
        assert model.get('value') == 20

    def test_starts_from_zero(self, model):
        model.increment('value')
        assert model.get('value') == 1


class TestReset:
    @pytest.fixture(autouse=True)
    def attrs(self, model):
        model.reset(silent=True)
        model.set({'name': 'John', 'age': 30}, silent=True)

    def test_clears(self, model):
        model.reset()
        assert model.to_json() == {}
        assert model.get('name') is None

    def test_events(self, model):
        reset, name, age = MagicMock(), MagicMock(), MagicMock()
        model.on('reset', reset)
        model.on('change:name', name)
        model.on('change:age', age)
        model.reset()
        reset.assert_called_once_with()
        name.assert_called_once_with(None)
        age.assert_called_once_with(None)

    def test_silent(self, model):
        listener = MagicMock()
        model.on('reset', listener)
        model.on('change:name', listener)
        model.reset(silent=True)
        listener.assert_not_called()


def test_to_json_is_a_copy(model):
    model.set('nested', {'a': [1]})
    snapshot = model.to_json()
    snapshot['nested']['a'].append(2)
    assert model.get('nested') == {'a': [1]}
    assert snapshot['name'] == 'Test name'
