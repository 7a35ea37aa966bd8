"""
Document store collection protocol.

A collection holds JSON documents, each identified by a partition key value and an id. The
partition key value of a document is the value of the property named by the collection's
partition_key attribute; the id is the value of its "id" property.

Collections report conditions by raising errors from docmerge.error:
• NotFoundError: document does not exist
• ConflictError: document already exists (create)
• RateLimitError: request was rate limited; retry_after suggests how long to wait
"""

from docmerge.document import Object
from docmerge.error import BadRequestError
from typing import Protocol, runtime_checkable


@runtime_checkable
class Collection(Protocol):
    """Prototype document store collection."""

    partition_key: str  # name of the document property holding the partition key value

    async def read(self, partition_key: str, id: str) -> Object:
        ...

    async def create(self, document: Object) -> Object:
        ...

    async def upsert(self, document: Object) -> Object:
        ...

    async def replace(self, document: Object) -> Object:
        ...

    async def delete(self, partition_key: str, id: str) -> None:
        ...

    async def query(self, query_text: str) -> list[Object]:
        ...


def document_key(collection: Collection, document: Object) -> tuple[str, str]:
    """Return the partition key value and id of a document in a collection."""
    pk = document.get(collection.partition_key)
    id = document.get("id")
    if pk is None or id is None:
        raise BadRequestError(
            f"document requires {collection.partition_key!r} and 'id' properties"
        )
    return str(pk), str(id)
