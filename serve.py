"""Serve the plan structure API.

Run with:  python3 serve.py
"""

from __future__ import annotations

import os

API_PORT = int(os.getenv("API_PORT", "8000"))


def main() -> None:
    os.environ.setdefault("DATABASE_URL", "postgresql+psycopg2://postgres@localhost:5432/trainplan")
    import uvicorn

    from api.main import create_app

    app = create_app()
    uvicorn.run(app, host=os.getenv("API_HOST", "127.0.0.1"), port=API_PORT, log_level="warning")


if __name__ == "__main__":
    main()
