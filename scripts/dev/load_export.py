"""Load a blocks/validators JSON export into a SQL database.

One-shot script for local testing: takes the files a FilesystemStore reads
and writes them through SQLStore so the same range can be computed with
--database-url.

Usage:
    DATABASE_URL="sqlite+aiosqlite:///uptime.db" \
      python scripts/dev/load_export.py path/to/export_dir
"""

import asyncio
import os
import sys

# Ensure project root on sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))


async def main(data_dir: str) -> None:
    import bittensor as bt

    from valuptime.store.filesystem import FilesystemStore
    from valuptime.store.sql import SQLStore

    db_url = os.environ.get("DATABASE_URL")
    if not db_url:
        print("ERROR: DATABASE_URL not set")
        sys.exit(1)

    bt.logging.info({"load_export": "starting", "data_dir": data_dir})

    source = FilesystemStore(data_dir)
    store = SQLStore(db_url)
    try:
        await store.create_schema()

        blocks = await source.fetch_blocks(0, sys.maxsize)
        n_blocks = await store.put_blocks(blocks)
        n_validators = await store.put_validators(await source.list_validators())

        bt.logging.info({
            "load_export": "done",
            "blocks": n_blocks,
            "first_height": blocks[0].height if blocks else None,
            "last_height": blocks[-1].height if blocks else None,
            "validators": n_validators,
        })
    finally:
        await store.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    asyncio.run(main(sys.argv[1]))
