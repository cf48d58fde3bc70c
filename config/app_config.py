"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    CONFIG_PATH      = os.getenv("CONFIG_PATH", "config.json")
    LOG_LEVEL        = os.getenv("LOG_LEVEL", "INFO").upper()
