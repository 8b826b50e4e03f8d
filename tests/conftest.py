"""Root conftest — shared test configuration."""

import os

# Ensure tests never pick up real credentials or a developer's .env settings
os.environ.setdefault("API_KEY", "")
os.environ.setdefault("API_SECRET", "")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("BAZI_INSTANCES", "1")
