"""Configuration constants for the allowance tracker web service."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(
    os.environ.get("ALLOWANCE_DATA_DIR", str(Path.home() / "Documents" / "Allowance Tracker"))
).expanduser()
STORAGE_BACKEND = os.environ.get("ALLOWANCE_STORAGE", "csv").strip().lower()
SQLITE_FILE_NAME = os.environ.get("ALLOWANCE_SQLITE", str(DATA_DIR / "allowance_tracker.db"))
PARENTAL_ANSWER = os.environ.get("ALLOWANCE_PARENTAL_ANSWER", "ice cold")
UTC_OFFSET_HOURS = float(os.environ.get("ALLOWANCE_UTC_OFFSET_HOURS", "-5"))
CORS_ORIGINS: Tuple[str, ...] = tuple(
    origin.strip()
    for origin in os.environ.get("ALLOWANCE_CORS_ORIGINS", "http://localhost:8080").split(",")
    if origin.strip()
)
LOG_FILE = os.environ.get("ALLOWANCE_LOG_FILE", str(DATA_DIR / "logs" / "allowance_tracker.jsonl"))
HOST = os.environ.get("ALLOWANCE_HOST", "127.0.0.1")
PORT = int(os.environ.get("ALLOWANCE_PORT", "3000"))

__all__ = [
    "CORS_ORIGINS",
    "DATA_DIR",
    "HOST",
    "LOG_FILE",
    "PARENTAL_ANSWER",
    "PORT",
    "SQLITE_FILE_NAME",
    "STORAGE_BACKEND",
    "UTC_OFFSET_HOURS",
]
