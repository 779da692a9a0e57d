import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from docuarchive.api.archives import router as archives_router
from docuarchive.logging_config import configure_logging

configure_logging()

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="DocuArchive API")
app.include_router(archives_router)


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"
