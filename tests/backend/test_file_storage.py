import pytest

from hypha_lib.storage import create_storage
from hypha_lib.storage.file_backend import FileStorageBackend
from hypha_lib.storage.serializer import JSONSerializer


def test_save_load_delete_and_list_keys(tmp_path):
    b = FileStorageBackend(data_dir=tmp_path / "data_test")
    ns = "unittest"
    key = "item1"
    value = {"x": 1}

    b.save(ns, key, value)
    assert b.exists(ns, key) is True
    keys = list(b.list_keys(ns))
    assert key in keys
    loaded = b.load(ns, key)
    assert loaded == value
    b.delete(ns, key)
    assert b.exists(ns, key) is False


def test_missing_keys_raise_key_error(tmp_path):
    b = FileStorageBackend(data_dir=tmp_path)
    with pytest.raises(KeyError):
        b.load("ns", "missing")
    with pytest.raises(KeyError):
        b.delete("ns", "missing")


def test_records_use_serializer_extension(tmp_path):
    b = FileStorageBackend(data_dir=tmp_path, serializer=JSONSerializer())
    b.save("sessions", "abc", {"k": "v"})
    assert (tmp_path / "sessions" / "abc.json").read_text(encoding="utf-8") == '{"k": "v"}'
    assert list(b.list_keys("sessions")) == ["abc"]


def test_no_temporary_files_left_behind(tmp_path):
    b = FileStorageBackend(data_dir=tmp_path)
    b.save("ns", "k", [1, 2, 3])
    b.save("ns", "k", [4])
    assert sorted(p.name for p in (tmp_path / "ns").iterdir()) == ["k.pkl"]
    assert b.load("ns", "k") == [4]


@pytest.mark.parametrize("serializer", ["pickle", "json", "yaml"])
def test_create_storage_file_backends(tmp_path, serializer):
    s = create_storage(backend="file", serializer=serializer, data_dir=tmp_path)
    s.save("sessions", "sid", {"role": "admin", "n": 2})
    assert s.load("sessions", "sid") == {"role": "admin", "n": 2}
