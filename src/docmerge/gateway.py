"""
Module to access a document store collection, retrying requests the store rate limits.

Every gateway operation is attempted, and when the collection raises RateLimitError, the
gateway waits for the duration its retry policy derives from the suggested retry-after
duration (by default, twice the suggested duration) and attempts the operation again. Any
other error ends the operation immediately: docmerge errors are raised as-is; other
exceptions are raised as StoreError, chained to the original exception.
"""

import docmerge.monitor as monitor
import logging
import wrapt

from docmerge.document import Object
from docmerge.error import NotFoundError, RateLimitError, RetriesExhaustedError, StoreError
from docmerge.error import wrap_exception
from docmerge.retry import RetryPolicy
from docmerge.store import Collection
from typing import Any


_logger = logging.getLogger(__name__)


@wrapt.decorator
async def _retried(wrapped, instance, args, kwargs):
    return await instance._execute(wrapped, args, kwargs)


class StoreGateway:
    """
    Gateway to a document store collection.

    Parameters:
    • collection: collection to access
    • policy: policy for retrying rate limited requests  [RetryPolicy()]
    """

    def __init__(self, collection: Collection, policy: RetryPolicy | None = None):
        if not isinstance(collection, Collection):
            raise TypeError("collection must implement docmerge.store.Collection")
        self.collection = collection
        self.policy = policy or RetryPolicy()

    async def _execute(self, function, args, kwargs) -> Any:
        name = function.__name__
        tags = {"operation": name}
        max_attempts = self.policy.max_retries + 1
        attempt = 0
        while True:
            attempt += 1
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "%s(%s) attempt %d/%d",
                    name,
                    ", ".join(repr(a) for a in args),
                    attempt,
                    max_attempts,
                )
            try:
                async with monitor.measure("store", tags=tags):
                    with wrap_exception(catch=Exception, throw=StoreError):
                        result = await function(*args, **kwargs)
            except RateLimitError as rle:
                await monitor.count("store_throttles", tags=tags)
                if attempt >= max_attempts:
                    message = f"{name} remained rate limited after {attempt} attempts"
                    _logger.error(message)
                    if self.policy.raise_on_exhaustion:
                        raise RetriesExhaustedError(message, retry_after=rle.retry_after) from rle
                    return None
                delay = self.policy.delay(rle.retry_after)
                _logger.warning(
                    "%s rate limited (attempt %d/%d); retrying in %ss",
                    name,
                    attempt,
                    max_attempts,
                    delay,
                )
                await self.policy.sleep(delay)
            except Exception as e:
                _logger.debug("%s failed with non-retryable error: %s", name, e)
                raise
            else:
                if attempt > 1:
                    _logger.info("%s succeeded after %d attempts", name, attempt)
                return result

    @_retried
    async def read(self, partition_key: str, id: str) -> Object | None:
        """Return the document with partition key and id, or None if it does not exist."""
        try:
            return await self.collection.read(partition_key, id)
        except NotFoundError:
            return None

    @_retried
    async def create(self, document: Object) -> Object:
        """Create a new document, returning the stored document."""
        return await self.collection.create(document)

    @_retried
    async def upsert(self, document: Object) -> Object:
        """Create or replace a document, returning the stored document."""
        return await self.collection.upsert(document)

    @_retried
    async def replace(self, document: Object) -> Object:
        """Replace an existing document, returning the stored document."""
        return await self.collection.replace(document)

    @_retried
    async def delete(self, partition_key: str, id: str) -> bool:
        """
        Delete the document with partition key and id. Returns True if the document was
        deleted, or False if it did not exist.
        """
        try:
            await self.collection.delete(partition_key, id)
        except NotFoundError:
            return False
        return True

    @_retried
    async def query(self, query_text: str) -> list[Object]:
        """Return all documents matching a query."""
        return list(await self.collection.query(query_text))
