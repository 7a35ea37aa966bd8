import pytest
import tempfile

from docmerge.error import BadRequestError, ConflictError, NotFoundError
from docmerge.gateway import StoreGateway
from docmerge.options import ArrayMerge, MergeOptions
from docmerge.sqlite import Database, SQLiteCollection
from docmerge.updater import DocumentUpdater


pytestmark = pytest.mark.asyncio


@pytest.fixture(scope="function")
def database():
    with tempfile.TemporaryDirectory() as dir:
        yield Database(f"{dir}/test.db")


async def collection_in(database, partition_key="id"):
    collection = SQLiteCollection(database, "documents", partition_key)
    await collection.create_table()
    return collection


async def test_crud(database):
    collection = await collection_in(database)
    doc = {"id": "1", "foo": "bar", "list": [1, 2.5, None, True]}
    assert await collection.create(doc) == doc
    assert await collection.read("1", "1") == doc
    doc["foo"] = "baz"
    assert await collection.replace(doc) == doc
    assert await collection.read("1", "1") == doc
    await collection.delete("1", "1")
    with pytest.raises(NotFoundError):
        await collection.read("1", "1")


async def test_upsert(database):
    collection = await collection_in(database, partition_key="tenant")
    await collection.upsert({"tenant": "a", "id": "1", "v": 1})
    await collection.upsert({"tenant": "a", "id": "1", "v": 2})
    await collection.upsert({"tenant": "b", "id": "1", "v": 3})
    assert await collection.read("a", "1") == {"tenant": "a", "id": "1", "v": 2}
    assert await collection.read("b", "1") == {"tenant": "b", "id": "1", "v": 3}


async def test_create_conflict(database):
    collection = await collection_in(database)
    await collection.create({"id": "1"})
    with pytest.raises(ConflictError):
        await collection.create({"id": "1"})


async def test_replace_delete_notfound(database):
    collection = await collection_in(database)
    with pytest.raises(NotFoundError):
        await collection.replace({"id": "1"})
    with pytest.raises(NotFoundError):
        await collection.delete("1", "1")


async def test_query(database):
    collection = await collection_in(database)
    await collection.upsert({"id": "1", "employer": "Some Company"})
    await collection.upsert({"id": "2", "employer": "Other Company"})
    docs = await collection.query("json_extract(document, '$.employer') = 'Other Company'")
    assert docs == [{"id": "2", "employer": "Other Company"}]
    with pytest.raises(BadRequestError):
        await collection.query("this is not sql")


async def test_drop_table(database):
    collection = await collection_in(database)
    await collection.upsert({"id": "1"})
    await collection.drop_table()
    await collection.create_table()
    with pytest.raises(NotFoundError):
        await collection.read("1", "1")


async def test_invalid_table_name(database):
    with pytest.raises(ValueError):
        SQLiteCollection(database, "documents; DROP TABLE x")


async def test_partial_update(database, document):
    collection = await collection_in(database)
    await collection.create(document)
    updater = DocumentUpdater(StoreGateway(collection))
    options = MergeOptions(array_merge=ArrayMerge.CONCAT, filter_name="id", filter_value="4")
    await updater.update("123", "123", {"managers": ["Kobe"]}, options)
    stored = await collection.read("123", "123")
    assert stored["previousJobs"][3]["managers"] == ["Gates", "Bartholomew", "Kobe"]
