"""
Module to perform partial updates of documents in a document store.

A partial update reads a document, locates the object within it that a patch applies to,
merges the patch into that object according to merge options, and writes the whole document
back to the store. Store requests that are rate limited are retried by the store gateway.

There is no protection against concurrent writers: if two updates of the same document
overlap, the last write wins.
"""

import docmerge.monitor as monitor
import docmerge.patch
import logging

from docmerge.document import Object, is_object
from docmerge.error import BadRequestError, NotFoundError
from docmerge.gateway import StoreGateway
from docmerge.locate import locate
from docmerge.options import DEFAULT_OPTIONS, MergeOptions


_logger = logging.getLogger(__name__)


def _require(name: str, value: str | None) -> None:
    if value is None or value == "":
        raise BadRequestError(f"{name} cannot be null or empty")


def _validate(patch: Object | None, options: MergeOptions | None) -> MergeOptions:
    if patch is None:
        raise BadRequestError("patch cannot be null")
    if not is_object(patch):
        raise BadRequestError("patch must be an object")
    if options is None:
        return DEFAULT_OPTIONS
    if not isinstance(options, MergeOptions):
        raise BadRequestError("options must be MergeOptions")
    options.validate()
    return options


class DocumentUpdater:
    """
    Performs partial updates of documents.

    Parameter:
    • gateway: gateway to the collection containing documents to update
    """

    def __init__(self, gateway: StoreGateway):
        self.gateway = gateway

    async def update(
        self,
        partition_key: str,
        id: str,
        patch: Object,
        options: MergeOptions | None = None,
    ) -> Object:
        """
        Partially update the document with the specified partition key and id, returning
        the updated document as stored.

        Parameters:
        • partition_key: partition key value of document to update
        • id: id of document to update
        • patch: object containing fields to merge into document
        • options: options governing the merge  [DEFAULT_OPTIONS]
        """
        _require("partition_key", partition_key)
        _require("id", id)
        options = _validate(patch, options)
        document = await self.gateway.read(partition_key, id)
        if document is None:
            raise NotFoundError(
                f"Document with partition key: {partition_key} and id: {id} does not exist."
            )
        return await self._apply(document, patch, options)

    async def update_query(
        self,
        query_text: str,
        patch: Object,
        options: MergeOptions | None = None,
    ) -> list[Object]:
        """
        Partially update all documents matching a query, returning the updated documents
        as stored, in query order.

        Parameters:
        • query_text: query that selects documents to update
        • patch: object containing fields to merge into each document
        • options: options governing the merge  [DEFAULT_OPTIONS]

        Documents are updated one at a time. If updating a document fails, the exception is
        raised immediately and remaining documents are not updated; documents already
        updated remain updated.
        """
        _require("query_text", query_text)
        options = _validate(patch, options)
        documents = await self.gateway.query(query_text)
        _logger.debug("query matched %d documents: %s", len(documents or ()), query_text)
        return [await self._apply(document, patch, options) for document in documents or ()]

    async def apply(
        self,
        document: Object,
        patch: Object,
        options: MergeOptions | None = None,
    ) -> Object:
        """
        Partially update a document that has already been read from the store, and write it
        back to the store. The document is modified in place.
        """
        if not is_object(document):
            raise BadRequestError("document must be an object")
        return await self._apply(document, patch, _validate(patch, options))

    async def _apply(self, document: Object, patch: Object, options: MergeOptions) -> Object:
        tags = {"operation": "update"}
        async with monitor.measure("update", tags=tags):
            target = locate(document, options.filter_name, options.filter_value)
            if target is None:
                raise NotFoundError(
                    f"Object with filter: {options.filter_name} and value: "
                    f"{options.filter_value} does not exist."
                )
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "update document id=%s filter=%s=%s patch=%s",
                    document.get("id"),
                    options.filter_name,
                    options.filter_value,
                    patch,
                )
            docmerge.patch.apply(target, patch, options)
            return await self.gateway.upsert(document)
