import pytest

from docmerge.error import BadRequestError, ConflictError, NotFoundError, RateLimitError
from docmerge.memory import MemoryCollection


pytestmark = pytest.mark.asyncio


async def test_crud():
    collection = MemoryCollection()
    doc = {"id": "1", "foo": "bar"}
    assert await collection.create(doc) == doc
    assert await collection.read("1", "1") == doc
    doc["foo"] = "baz"
    assert await collection.replace(doc) == doc
    assert await collection.read("1", "1") == {"id": "1", "foo": "baz"}
    await collection.delete("1", "1")
    with pytest.raises(NotFoundError):
        await collection.read("1", "1")


async def test_partition_key():
    collection = MemoryCollection(partition_key="tenant")
    await collection.upsert({"tenant": "a", "id": "1"})
    await collection.upsert({"tenant": "b", "id": "1"})
    assert await collection.read("b", "1") == {"tenant": "b", "id": "1"}
    with pytest.raises(NotFoundError):
        await collection.read("c", "1")


async def test_missing_key():
    collection = MemoryCollection(partition_key="tenant")
    with pytest.raises(BadRequestError):
        await collection.upsert({"id": "1"})
    with pytest.raises(BadRequestError):
        await collection.upsert(["id"])


async def test_create_conflict():
    collection = MemoryCollection()
    await collection.create({"id": "1"})
    with pytest.raises(ConflictError):
        await collection.create({"id": "1"})


async def test_replace_notfound():
    with pytest.raises(NotFoundError):
        await MemoryCollection().replace({"id": "1"})


async def test_delete_notfound():
    with pytest.raises(NotFoundError):
        await MemoryCollection().delete("1", "1")


async def test_copies():
    collection = MemoryCollection()
    doc = {"id": "1", "list": [1]}
    await collection.upsert(doc)
    doc["list"].append(2)
    read = await collection.read("1", "1")
    assert read == {"id": "1", "list": [1]}
    read["list"].append(3)
    assert await collection.read("1", "1") == {"id": "1", "list": [1]}


async def test_throttle():
    collection = MemoryCollection(throttle=[None, 1.5])
    await collection.upsert({"id": "1"})
    with pytest.raises(RateLimitError) as info:
        await collection.read("1", "1")
    assert info.value.retry_after == 1.5
    assert await collection.read("1", "1") == {"id": "1"}
    assert collection.requests == 3


async def test_query():
    collection = MemoryCollection()
    await collection.upsert({"id": "1", "name": "a", "n": 1, "o": {"flag": True}})
    await collection.upsert({"id": "2", "name": "b", "n": 1.0, "o": {"flag": False}})
    await collection.upsert({"id": "3", "name": "it's", "n": 2})
    ids = lambda docs: [doc["id"] for doc in docs]
    assert ids(await collection.query("SELECT * FROM c")) == ["1", "2", "3"]
    assert ids(await collection.query("select * from c where c.id = '123'")) == []
    assert ids(await collection.query("SELECT * FROM c WHERE c.n = 1")) == ["1", "2"]
    assert ids(await collection.query('SELECT * FROM c WHERE c.name = "b"')) == ["2"]
    assert ids(await collection.query("SELECT * FROM c WHERE c.name = 'it''s'")) == ["3"]
    assert ids(await collection.query("SELECT * FROM c WHERE c.o.flag = true")) == ["1"]
    assert ids(await collection.query("SELECT * FROM c WHERE c.n = 1 AND c.name = 'b'")) == ["2"]
    assert ids(await collection.query("SELECT * FROM d WHERE d.o.missing = null")) == []


async def test_query_and_within_literal():
    collection = MemoryCollection()
    await collection.upsert({"id": "1", "employer": "Smith and Sons", "n": 1})
    await collection.upsert({"id": "2", "employer": "Smith", "n": 1})
    docs = await collection.query("SELECT * FROM c WHERE c.employer = 'Smith and Sons'")
    assert [doc["id"] for doc in docs] == ["1"]
    docs = await collection.query(
        'SELECT * FROM c WHERE c.employer = "Smith AND Sons" and c.n = 1'
    )
    assert docs == []
    docs = await collection.query("SELECT * FROM c WHERE c.employer='Smith and Sons' AND c.n=1")
    assert [doc["id"] for doc in docs] == ["1"]


async def test_query_unsupported():
    collection = MemoryCollection()
    with pytest.raises(BadRequestError):
        await collection.query("DELETE FROM c")
    with pytest.raises(BadRequestError):
        await collection.query("SELECT * FROM c WHERE x.id = '1'")
    with pytest.raises(BadRequestError):
        await collection.query("SELECT * FROM c WHERE c.id = bogus")
    with pytest.raises(BadRequestError):
        await collection.query("SELECT * FROM c WHERE c.id = 'unterminated")
    with pytest.raises(BadRequestError):
        await collection.query("SELECT * FROM c WHERE c.id = '1' AND")
