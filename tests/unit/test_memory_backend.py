import pytest

from hypha_lib.storage.memory_backend import MemoryStorage


def test_memory_basic_operations():
    m = MemoryStorage()

    # namespace save/load
    m.save('ns', 'a', {'x': 1})
    assert m.load('ns', 'a') == {'x': 1}

    # exists and list_keys
    assert m.exists('ns', 'a') is True
    assert m.exists('other', 'a') is False
    assert list(m.list_keys('ns')) == ['a']

    m.delete('ns', 'a')
    assert m.exists('ns', 'a') is False


def test_memory_missing_keys_raise_key_error():
    m = MemoryStorage()
    with pytest.raises(KeyError):
        m.load('ns', 'missing')
    with pytest.raises(KeyError):
        m.delete('ns', 'missing')


def test_list_keys_is_a_snapshot():
    m = MemoryStorage()
    m.save('ns', 'a', 1)
    m.save('ns', 'b', 2)
    for key in m.list_keys('ns'):
        m.delete('ns', key)
    assert list(m.list_keys('ns')) == []
