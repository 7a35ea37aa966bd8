"""Module to store documents in memory."""

import json
import logging
import re

from collections.abc import Iterable
from copy import deepcopy
from docmerge.document import Object, is_object
from docmerge.error import BadRequestError, ConflictError, NotFoundError, RateLimitError
from docmerge.store import document_key
from typing import Any


_logger = logging.getLogger(__name__)


_select = re.compile(
    r"\s*select\s+\*\s+from\s+(\w+)(?:\s+where\s+(.+?))?\s*;?\s*", re.I | re.S
)
_condition = re.compile(r"\s*(\w+)((?:\.\w+)+)\s*=\s*(.+?)\s*", re.S)
_token = re.compile(r"""'(?:[^']|'')*'|"(?:[^"\\]|\\.)*"|[^\s'"]+|['"]""")


def _literal(text: str) -> Any:
    if len(text) >= 2 and text[0] == text[-1] == "'":
        return text[1:-1].replace("''", "'")
    try:
        return json.loads(text)
    except json.JSONDecodeError as jde:
        raise BadRequestError(f"invalid literal in query: {text}") from jde


def _conditions(where: str) -> list[str]:
    """Split a WHERE clause at AND keywords that are not within string literals."""
    conditions = [[]]
    for token in _token.findall(where):
        if token.lower() == "and":
            conditions.append([])
        else:
            conditions[-1].append(token)
    return [" ".join(tokens) for tokens in conditions]


def _compile(query_text: str):
    """
    Compile query text into a predicate function. Supported form:

    SELECT * FROM c [WHERE c.path.to.property = literal [AND ...]]

    Literals are strings in single or double quotes, numbers, true, false and null.
    """
    match = _select.fullmatch(query_text)
    if not match:
        raise BadRequestError(f"unsupported query: {query_text}")
    alias, where = match.groups()
    conditions = []
    for text in _conditions(where) if where else ():
        condition = _condition.fullmatch(text)
        if not condition or condition.group(1) != alias:
            raise BadRequestError(f"unsupported query condition: {text}")
        path = condition.group(2).split(".")[1:]
        conditions.append((path, _literal(condition.group(3))))

    def predicate(document: Object) -> bool:
        for path, value in conditions:
            node = document
            for name in path:
                if not is_object(node) or name not in node:
                    return False
                node = node[name]
            if node != value or isinstance(node, bool) is not isinstance(value, bool):
                return False
        return True

    return predicate


class MemoryCollection:
    """
    A collection of documents stored in memory.

    Parameters:
    • partition_key: name of the document property holding the partition key value  ["id"]
    • throttle: retry-after durations to simulate rate limiting  [no rate limiting]

    Each request consumes the next value from throttle, if any remain; if the value is not
    None, the request is rejected with RateLimitError, with the value as its retry-after
    duration. This allows a store that rate limits requests to be emulated in tests.

    Documents are copied when stored and retrieved; changing a document returned from the
    collection does not affect the stored document.
    """

    def __init__(
        self,
        partition_key: str = "id",
        throttle: Iterable[float | None] | None = None,
    ):
        self.partition_key = partition_key
        self._throttle = iter(throttle or ())
        self._storage: dict[tuple[str, str], Object] = {}
        self.requests = 0

    def _request(self, operation: str):
        self.requests += 1
        retry_after = next(self._throttle, None)
        if retry_after is not None:
            _logger.debug("%s rate limited; retry after %ss", operation, retry_after)
            raise RateLimitError(f"{operation} rate limited", retry_after=retry_after)

    def _key(self, document: Object) -> tuple[str, str]:
        if not is_object(document):
            raise BadRequestError("document must be an object")
        return document_key(self, document)

    async def read(self, partition_key: str, id: str) -> Object:
        """Return document with partition key and id."""
        self._request("read")
        try:
            return deepcopy(self._storage[(partition_key, id)])
        except KeyError:
            raise NotFoundError(f"document not found: partition key {partition_key}, id {id}")

    async def create(self, document: Object) -> Object:
        """Store new document."""
        self._request("create")
        key = self._key(document)
        if key in self._storage:
            raise ConflictError(f"document already exists: partition key {key[0]}, id {key[1]}")
        self._storage[key] = deepcopy(document)
        return deepcopy(document)

    async def upsert(self, document: Object) -> Object:
        """Store new document or replace existing document."""
        self._request("upsert")
        self._storage[self._key(document)] = deepcopy(document)
        return deepcopy(document)

    async def replace(self, document: Object) -> Object:
        """Replace existing document."""
        self._request("replace")
        key = self._key(document)
        if key not in self._storage:
            raise NotFoundError(f"document not found: partition key {key[0]}, id {key[1]}")
        self._storage[key] = deepcopy(document)
        return deepcopy(document)

    async def delete(self, partition_key: str, id: str) -> None:
        """Delete document with partition key and id."""
        self._request("delete")
        try:
            del self._storage[(partition_key, id)]
        except KeyError:
            raise NotFoundError(f"document not found: partition key {partition_key}, id {id}")

    async def query(self, query_text: str) -> list[Object]:
        """Return documents matching query, in the order they were first stored."""
        predicate = _compile(query_text)
        self._request("query")
        return [deepcopy(doc) for doc in self._storage.values() if predicate(doc)]
