import logging

from fastapi import FastAPI

from upload_quarantine.logging_config import setup_logging
from upload_quarantine.routers import events

logger = logging.getLogger("quarantine")

app = FastAPI(title="Upload Quarantine")

app.include_router(events.router)


@app.on_event("startup")
def startup():
    setup_logging()
    logger.info("Upload quarantine ready")


@app.get("/health")
def health():
    return {"status": "ok"}
