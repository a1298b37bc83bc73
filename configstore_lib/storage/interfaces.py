from typing import Protocol, Any, MutableMapping, runtime_checkable


@runtime_checkable
class DocumentProtocol(Protocol):
    """In-memory view of a backing document with explicit persistence.

    `configstore_lib.storage.JsonDocument` is the implementation; locked
    access in `configstore_lib.scoped.LockedDocumentStore` depends only on
    this protocol.
    """

    @property
    def data(self) -> MutableMapping[str, Any]: ...

    def get_all(self) -> MutableMapping[str, Any]: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def set_default(self, key: str, default: Any) -> Any: ...

    def delete(self, key: str) -> bool: ...

    def reload(self) -> MutableMapping[str, Any]: ...

    async def save(self) -> None: ...
