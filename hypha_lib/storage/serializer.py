from typing import Any, Protocol
import pickle
import json
import yaml


class Serializer(Protocol):
    """Serialize/deserialize Python values for backends that store bytes.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    `extension` is the file suffix a file backend uses for the records.
    """

    extension: str

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class PickleSerializer:
    """Default serializer using pickle (binary).

    Session payloads may hold arbitrary Python values, so pickle is the
    practical default. Only use it on data directories the server owns.
    """

    extension = "pkl"

    def dump(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)

    def load(self, data: bytes) -> Any:
        return pickle.loads(data)


class JSONSerializer:
    """Serializer using JSON (text). Caller must ensure values are JSON-serializable."""

    extension = "json"

    def dump(self, value: Any) -> bytes:
        return json.dumps(value).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class YAMLSerializer:
    """Serializer using YAML (text). Used for the human-editable server config."""

    extension = "yml"

    def dump(self, value: Any) -> bytes:
        return yaml.safe_dump(value, sort_keys=False).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return yaml.safe_load(data.decode("utf-8"))


SERIALIZERS = {
    "pickle": PickleSerializer,
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
}


def get_serializer(name: str) -> Serializer:
    try:
        return SERIALIZERS[name]()
    except KeyError:
        raise ValueError(f"unknown serializer: {name!r}") from None
