"""Small async helpers."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable


async def gather_or_raise(*aws: Awaitable[Any]) -> list[Any]:
    """Run concurrently; once all finish, re-raise the first failure."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
