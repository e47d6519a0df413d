"""Allowance tracker web service package."""
from __future__ import annotations

from .application import app, build_tracker, get_tracker

__all__ = ["app", "build_tracker", "get_tracker"]
