"""Container entry point: serve the Census Atlas API with uvicorn."""
import logging

import uvicorn

from censusatlas import config
from censusatlas.core.logging import configure_logging

if __name__ == "__main__":
    configure_logging(secrets=[config.CENSUS_API_KEY])
    logging.getLogger("censusatlas.server").info("Serving Census Atlas on port %d", config.PORT)
    uvicorn.run(
        "censusatlas.app:app",
        host="0.0.0.0",
        port=config.PORT,
        log_level="info",
    )
