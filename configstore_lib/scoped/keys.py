"""Scoped key encoding.

Scoped entries share one flat mapping with global entries. A scoped key
has the form::

    $${type}||{id}//{plugin_id}//{key}

for example ``$$item||abc123//plugin.sample//myKey``. A global key is the
bare logical key. This format is the on-disk contract with existing
documents and must not change.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional

from configstore_lib.errors import InvalidKeyError

SCOPE_MARKER = "$$"
TYPE_SEPARATOR = "||"
ID_SEPARATOR = "//"


class ScopeType(str, enum.Enum):
    ITEM = "item"
    FOLDER = "folder"
    LIBRARY = "library"


# Resolution order for reads; global is always tried last.
PRIORITY = (ScopeType.ITEM, ScopeType.FOLDER, ScopeType.LIBRARY)


@dataclass(frozen=True)
class ScopedKey:
    type: ScopeType
    id: str
    plugin_id: str
    key: str

    def encode(self) -> str:
        return encode_key(self.type, self.id, self.plugin_id, self.key)


def scope_type(value: str | ScopeType) -> ScopeType:
    try:
        return ScopeType(value)
    except ValueError:
        raise InvalidKeyError(f"Unknown scope type: {value!r}") from None


def check_logical_key(key: str) -> str:
    """Reject logical keys that would be mistaken for scoped keys."""
    if not isinstance(key, str) or not key:
        raise InvalidKeyError("Configuration key must be a non-empty string")
    if key.startswith(SCOPE_MARKER):
        raise InvalidKeyError(f"Configuration key must not start with {SCOPE_MARKER!r}: {key!r}")
    return key


def encode_key(type_: str | ScopeType, scope_id: str, plugin_id: str, key: str) -> str:
    """Join the components of a scoped key. No id resolution happens here."""
    st = scope_type(type_)
    return "".join([
        SCOPE_MARKER,
        st.value,
        TYPE_SEPARATOR,
        str(scope_id),
        ID_SEPARATOR,
        plugin_id,
        ID_SEPARATOR,
        check_logical_key(key),
    ])


def is_scoped(raw: str) -> bool:
    return raw.startswith(SCOPE_MARKER)


def parse_key(raw: str) -> Optional[ScopedKey]:
    """Split a stored key back into its components.

    Returns None for global keys. Raises `InvalidKeyError` for a key that
    carries the scope marker but does not follow the format. Ids and plugin
    ids must not contain ``//``; the logical key may.
    """
    if not is_scoped(raw):
        return None
    body = raw[len(SCOPE_MARKER):]
    type_part, sep, rest = body.partition(TYPE_SEPARATOR)
    if not sep:
        raise InvalidKeyError(f"Malformed scoped key (missing {TYPE_SEPARATOR!r}): {raw!r}")
    parts = rest.split(ID_SEPARATOR, 2)
    if len(parts) != 3:
        raise InvalidKeyError(f"Malformed scoped key (missing {ID_SEPARATOR!r}): {raw!r}")
    scope_id, plugin_id, key = parts
    return ScopedKey(type=scope_type(type_part), id=scope_id, plugin_id=plugin_id, key=key)
