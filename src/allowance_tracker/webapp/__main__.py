"""Run the allowance tracker API with ``python -m allowance_tracker.webapp``."""
from __future__ import annotations

import uvicorn

from .application import app
from .config import HOST, PORT


def main() -> None:
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
