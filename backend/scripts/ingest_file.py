#!/usr/bin/env python3
"""
Ingest a local CSV/XLSX file without going through the HTTP API.

The file is copied first, since ingestion deletes what it processes.

Usage:
    cd backend
    python -m scripts.ingest_file path/to/policies.csv [more files...]
"""

import asyncio
import json
import os
import shutil
import sys
import tempfile

from app.core.logging import setup_logging
from app.db.session import async_session, engine
from app.ingestion.service import ingest_file


async def main(paths: list[str]) -> int:
    setup_logging("INFO")
    failures = 0
    try:
        for path in paths:
            name = os.path.basename(path)
            work_dir = tempfile.mkdtemp(prefix="ingest-")
            copy_path = os.path.join(work_dir, name)
            shutil.copyfile(path, copy_path)

            outcome = await ingest_file(copy_path, name, async_session)
            shutil.rmtree(work_dir, ignore_errors=True)

            print("\n" + "=" * 70)
            print(f"  {name}: {'OK' if outcome.success else 'FAILED'}  {outcome.summary}")
            print("=" * 70)
            if outcome.error:
                print(f"  error: {outcome.error}")
            print(json.dumps(outcome.stats.to_dict(), indent=2))
            failures += 0 if outcome.success else 1
    finally:
        await engine.dispose()
    return failures


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(1 if asyncio.run(main(sys.argv[1:])) else 0)
