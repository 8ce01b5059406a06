import json
from contextlib import asynccontextmanager

import asyncpg
import pytest

from resume_matcher.errors import ConflictError, NotFoundError
from resume_matcher.models import Analysis, DocumentPart, User
from resume_matcher.store import InMemoryUserStore, PostgresUserStore


class FakeConnection:
    """Answers the store's queries from a dict of rows keyed by email."""

    def __init__(self):
        self.rows = {}
        self.queries = []

    async def execute(self, query, *args):
        self.queries.append((" ".join(query.split()), args))
        if "INSERT INTO users" in query:
            user_id, first_name, last_name, email, phone_num, password = args
            if email in self.rows:
                raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
            self.rows[email] = {
                "id": user_id, "first_name": first_name, "last_name": last_name,
                "email": email, "phone_num": phone_num, "password": password,
                "analyses": [],
            }
        return "OK"

    async def fetchrow(self, query, *args):
        self.queries.append((" ".join(query.split()), args))
        row = self.rows.get(args[0])
        if row is None:
            return None
        if query.lstrip().startswith("UPDATE users"):
            # jsonb codec round trip
            row["analyses"] = row["analyses"] + json.loads(json.dumps(args[1]))
            return {"id": row["id"]}
        if "SELECT analyses" in query:
            return {"analyses": list(row["analyses"])}
        return dict(row, analyses=list(row["analyses"]))


class FakePool:
    def __init__(self):
        self.conn = FakeConnection()
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        yield self.conn

    def is_closing(self):
        return self.closed

    async def close(self):
        self.closed = True


@pytest.fixture(params=["memory", "postgres"])
def store(request):
    if request.param == "memory":
        return InMemoryUserStore()
    return PostgresUserStore(FakePool())


def make_user(email="ada@example.com", first_name="Ada"):
    return User(first_name=first_name, last_name="Lovelace", email=email,
                phone_num=5550100, password="$2b$04$hash")


async def test_create_and_fetch_user(store):
    await store.create_user(make_user())
    user = await store.get_by_email("ada@example.com")
    assert user.first_name == "Ada"
    assert user.phone_num == "5550100"
    assert user.analyses == []
    assert await store.get_by_email("nobody@example.com") is None


async def test_duplicate_email_rejected(store):
    await store.create_user(make_user())
    with pytest.raises(ConflictError):
        await store.create_user(make_user(first_name="Imposter"))
    assert (await store.get_by_email("ada@example.com")).first_name == "Ada"


async def test_analyses_appended_in_order(store):
    await store.create_user(make_user())
    first = Analysis(resume=DocumentPart(text="resume one"))
    second = Analysis(resume=DocumentPart(text="resume two"),
                      job_description=DocumentPart(text="jd two"))

    assert await store.append_analysis("ada@example.com", first) == first.id
    assert await store.append_analysis("ada@example.com", second) == second.id

    analyses = await store.list_analyses("ada@example.com")
    assert [a.id for a in analyses] == [first.id, second.id]
    assert analyses[-1].job_description.text == "jd two"


async def test_analyses_scoped_to_owner(store):
    await store.create_user(make_user())
    await store.create_user(make_user("grace@example.com"))
    await store.append_analysis("ada@example.com", Analysis(resume=DocumentPart(text="ada")))

    assert await store.list_analyses("grace@example.com") == []
    assert len(await store.list_analyses("ada@example.com")) == 1


async def test_returned_records_are_copies(store):
    await store.create_user(make_user())
    user = await store.get_by_email("ada@example.com")
    user.analyses.append(Analysis())
    assert await store.list_analyses("ada@example.com") == []


async def test_unknown_user_operations(store):
    with pytest.raises(NotFoundError):
        await store.append_analysis("ghost@example.com", Analysis())
    with pytest.raises(NotFoundError):
        await store.list_analyses("ghost@example.com")


def test_analysis_document_uses_wire_names():
    doc = Analysis(resume=DocumentPart(text="r", file_name="cv.pdf")).to_document()
    assert set(doc) == {"_id", "resume", "jobDescription", "matchScore", "status", "createdAt"}
    assert doc["resume"]["fileName"] == "cv.pdf"
    assert doc["status"] == "pending"
    assert Analysis.model_validate(doc).resume.file_name == "cv.pdf"


# ── postgres specifics ────────────────────────────────────────────

@pytest.fixture
def pool():
    return FakePool()


async def test_ensure_schema_creates_users_table(pool):
    await PostgresUserStore(pool).ensure_schema()
    query, _ = pool.conn.queries[0]
    assert query.startswith("CREATE TABLE IF NOT EXISTS users")


async def test_append_is_a_single_jsonb_update(pool):
    pg = PostgresUserStore(pool)
    await pg.create_user(make_user())
    pool.conn.queries.clear()
    analysis = Analysis(resume=DocumentPart(text="resume"))

    await pg.append_analysis("ada@example.com", analysis)

    assert len(pool.conn.queries) == 1
    query, args = pool.conn.queries[0]
    assert "SET analyses = analyses || $2::jsonb" in query
    assert args[0] == "ada@example.com"
    assert [doc["_id"] for doc in args[1]] == [analysis.id]


async def test_unique_violation_is_conflict(pool):
    pg = PostgresUserStore(pool)
    await pg.create_user(make_user())
    with pytest.raises(ConflictError):
        await pg.create_user(make_user())


async def test_connected_until_closed(pool):
    pg = PostgresUserStore(pool)
    assert pg.kind == "postgres"
    assert pg.connected
    await pg.close()
    assert pool.closed
    assert not pg.connected
