"""Runtime configuration read from environment variables."""

import os

DATABASE_URL = os.getenv("ATTEMPT_ENGINE_DATABASE_URL", "sqlite:///./attempt_engine.db")

LOG_LEVEL = os.getenv("ATTEMPT_ENGINE_LOG_LEVEL", "INFO").upper()

# How many times admission re-evaluates after losing an insert race
ADMISSION_MAX_RETRIES = int(os.getenv("ATTEMPT_ENGINE_ADMISSION_RETRIES", "1"))

SQL_ECHO = os.getenv("ATTEMPT_ENGINE_SQL_ECHO", "0") in ("1", "true", "yes")
