import asyncio
from typing import Optional


class TaskLock:
    """An asyncio lock the owning task may re-acquire.

    The sale coordinator holds both store locks while it calls the stores'
    own mutating methods, which take the same locks again.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None
        self._depth = 0

    async def acquire(self) -> None:
        task = asyncio.current_task()
        if self._owner is task and task is not None:
            self._depth += 1
            return
        await self._lock.acquire()
        self._owner = task
        self._depth = 1

    def release(self) -> None:
        if self._owner is not asyncio.current_task():
            raise RuntimeError("TaskLock released by a task that does not own it")
        self._depth -= 1
        if self._depth == 0:
            self._owner = None
            self._lock.release()

    async def __aenter__(self) -> "TaskLock":
        await self.acquire()
        return self

    async def __aexit__(self, *exc) -> None:
        self.release()
