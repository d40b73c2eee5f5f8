from fastapi import FastAPI

from cvtailor.api.cvs import router as cvs_router
from cvtailor.api.debug import router as debug_router
from cvtailor.api.profiles import router as profiles_router
from cvtailor.core.config import get_settings
from cvtailor.core.database import init_db
from cvtailor.core.logging import setup_logging
from cvtailor.core.middleware import log_requests
from cvtailor.services.file_storage import ensure_uploads_dir

app = FastAPI(title="CV Tailor Service")

app.middleware("http")(log_requests)
app.include_router(profiles_router)
app.include_router(cvs_router)
app.include_router(debug_router)


@app.on_event("startup")
def _startup() -> None:
    # Fail fast if required env vars are missing.
    settings = get_settings()
    setup_logging(level=settings.log_level)
    init_db()
    ensure_uploads_dir()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
