"""
User Store
===========
Credential store and persistence layer.

One record per user, with that user's analyses embedded as an ordered
array. Two implementations share the same async interface:

- PostgresUserStore  → asyncpg pool, analyses kept in a JSONB column
- InMemoryUserStore  → dict keyed by email (degraded mode and tests)

Every operation is scoped by the caller's email; there is no lookup that
crosses users.
"""

import json
import logging
import time
from typing import Dict, List, Optional

import asyncpg

from .errors import ConflictError, NotFoundError
from .models import Analysis, User

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id          TEXT PRIMARY KEY,
    first_name  TEXT NOT NULL,
    last_name   TEXT NOT NULL,
    email       TEXT NOT NULL UNIQUE,
    phone_num   TEXT NOT NULL,
    password    TEXT NOT NULL,
    analyses    JSONB NOT NULL DEFAULT '[]'::jsonb
)
"""


class UserStore:
    """Interface shared by both stores."""

    kind = "abstract"

    async def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    async def create_user(self, user: User) -> User:
        raise NotImplementedError

    async def append_analysis(self, email: str, analysis: Analysis) -> str:
        raise NotImplementedError

    async def list_analyses(self, email: str) -> List[Analysis]:
        raise NotImplementedError

    @property
    def connected(self) -> bool:
        return True


class InMemoryUserStore(UserStore):
    kind = "memory"

    def __init__(self):
        self._users: Dict[str, User] = {}

    async def get_by_email(self, email: str) -> Optional[User]:
        user = self._users.get(email)
        return user.model_copy(deep=True) if user else None

    async def create_user(self, user: User) -> User:
        if user.email in self._users:
            raise ConflictError()
        self._users[user.email] = user.model_copy(deep=True)
        logger.info(f"Created user {user.id[:8]}...")
        return user

    async def append_analysis(self, email: str, analysis: Analysis) -> str:
        user = self._users.get(email)
        if user is None:
            raise NotFoundError()
        user.analyses.append(analysis.model_copy(deep=True))
        return analysis.id

    async def list_analyses(self, email: str) -> List[Analysis]:
        user = self._users.get(email)
        if user is None:
            raise NotFoundError()
        return [a.model_copy(deep=True) for a in user.analyses]

    def __len__(self) -> int:
        return len(self._users)


async def _init_connection(conn: asyncpg.Connection):
    await conn.set_type_codec(
        "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )


async def create_pool(dsn: str) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=dsn,
        min_size=2,
        max_size=10,
        command_timeout=30,
        statement_cache_size=0,  # PgBouncer compatibility
        init=_init_connection,
    )


class PostgresUserStore(UserStore):
    """
    asyncpg-backed store.

    Appends are a single UPDATE that concatenates onto the JSONB array, so a
    write never rewrites other users' rows. Two concurrent appends for the
    same user both land; ordering between them is whatever Postgres commits.
    """

    kind = "postgres"

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def ensure_schema(self):
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("✅ users table ready")

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT id, first_name, last_name, email, phone_num, password, analyses
                FROM users
                WHERE email = $1
            """, email)
        if not row:
            return None
        return User(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            phone_num=row["phone_num"],
            password=row["password"],
            analyses=[Analysis.model_validate(a) for a in row["analyses"] or []],
        )

    async def create_user(self, user: User) -> User:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO users (id, first_name, last_name, email, phone_num, password)
                    VALUES ($1, $2, $3, $4, $5, $6)
                """, user.id, user.first_name, user.last_name, user.email,
                    user.phone_num, user.password)
        except asyncpg.UniqueViolationError:
            raise ConflictError()
        logger.info(f"Created user {user.id[:8]}...")
        return user

    async def append_analysis(self, email: str, analysis: Analysis) -> str:
        start = time.monotonic()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                UPDATE users
                SET analyses = analyses || $2::jsonb
                WHERE email = $1
                RETURNING id
            """, email, [analysis.to_document()])
        if not row:
            raise NotFoundError()
        dt = (time.monotonic() - start) * 1000
        logger.debug(f"append_analysis {analysis.id[:8]} ({dt:.1f}ms)")
        return analysis.id

    async def list_analyses(self, email: str) -> List[Analysis]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT analyses FROM users WHERE email = $1", email
            )
        if not row:
            raise NotFoundError()
        return [Analysis.model_validate(a) for a in row["analyses"] or []]

    @property
    def connected(self) -> bool:
        return not self.pool.is_closing()

    async def close(self):
        await self.pool.close()
