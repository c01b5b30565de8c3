"""
Basic cached batch loader: same-tick loads become one upstream call,
later loads are served from the cache until the TTL runs out.
"""

import asyncio
import logging

from cachedloader import CachedBatchLoader

USERS = {1: "ada", 2: "grace", 3: "linus"}


async def fetch_users(ids: list[int]) -> list[object]:
    print(f"fetching {ids}")
    return [USERS.get(i, KeyError(f"user {i} not found")) for i in ids]


async def main() -> None:
    loader = CachedBatchLoader(fetch_users, ttl_ms=30_000)

    print(await asyncio.gather(loader.load(1), loader.load(2)))
    print(await loader.load_many([1, 2, 3, 4]))

    await (await loader.clear(3)).prime(3, "linus t.")
    print(await loader.load(3))


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main())
