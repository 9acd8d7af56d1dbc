from __future__ import annotations
import os

DATABASE_URL = os.environ["DATABASE_URL"]
REDIS_URL = os.environ["REDIS_URL"]
LOCK_SECONDS = int(os.environ.get("LOCK_SECONDS", "30"))
LOCK_WAIT_SECONDS = float(os.environ.get("LOCK_WAIT_SECONDS", "10"))
