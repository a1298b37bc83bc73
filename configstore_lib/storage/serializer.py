from typing import Any, Protocol
import json
import yaml


class Serializer(Protocol):
    """Serialize/deserialize Python values for backends that store bytes.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    """

    extension: str

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class JSONSerializer:
    """Serializer using JSON (text). Caller must ensure values are JSON-serializable.

    This is the on-disk format of the configuration document, so output is
    kept human-readable and non-ASCII characters are written verbatim.
    """

    extension = ".json"

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def dump(self, value: Any) -> bytes:
        return json.dumps(value, indent=self.indent, ensure_ascii=False).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class YAMLSerializer:
    """Serializer using YAML (text). Caller must ensure values are YAML-serializable."""

    extension = ".yml"

    def dump(self, value: Any) -> bytes:
        return yaml.safe_dump(value, sort_keys=False, allow_unicode=True).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return yaml.safe_load(data.decode("utf-8"))


def get_serializer(name: str) -> Serializer:
    """Return a serializer instance by name (``json`` or ``yaml``)."""
    key = (name or "json").strip().lower()
    if key == "json":
        return JSONSerializer()
    if key in ("yaml", "yml"):
        return YAMLSerializer()
    raise ValueError(f"Unknown serializer: {name}")
