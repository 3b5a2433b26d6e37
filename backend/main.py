"""Entrypoint: `python -m backend.main` serves the FastAPI app from `backend.src.app.main:app`."""

import logging

from backend.src import config
from backend.src.app.main import app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8001)
