from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis
from .settings import LOCK_SECONDS, LOCK_WAIT_SECONDS, REDIS_URL

r = redis.from_url(REDIS_URL, decode_responses=True)

# delete only if the caller still owns the lock
_RELEASE = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class LockTimeout(RuntimeError):
    def __init__(self, project_id: str):
        super().__init__(f"Timed out waiting for the lifecycle lock of project {project_id!r}")
        self.project_id = project_id


def project_lock_key(project_id: str) -> str:
    return f"pipegen:project_lock:{project_id}"


@asynccontextmanager
async def project_lock(project_id: str) -> AsyncIterator[None]:
    """Serialise lifecycle transitions for one project across API workers."""
    key = project_lock_key(project_id)
    token = uuid.uuid4().hex
    deadline = time.monotonic() + LOCK_WAIT_SECONDS
    while not await r.set(key, token, nx=True, ex=LOCK_SECONDS):
        if time.monotonic() >= deadline:
            raise LockTimeout(project_id)
        await asyncio.sleep(0.05)
    try:
        yield
    finally:
        await r.eval(_RELEASE, 1, key, token)
