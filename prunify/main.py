"""Entry: start the local API server; the session controller runs in its lifespan."""
import logging

import uvicorn

from prunify.config import API_HOST, API_PORT, LOG_LEVEL

if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "prunify.api.app:app",
        host=API_HOST,
        port=API_PORT,
    )
