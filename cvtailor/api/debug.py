from fastapi import APIRouter

from cvtailor.core.config import reset_settings
from cvtailor.services.llm_client import reset_client as reset_llm_client

router = APIRouter(prefix="/v1/debug", tags=["debug"])


@router.post("/reset")
def reset_cached_clients() -> dict:
    """Reset cached settings and the LLM client. Use after changing API keys."""
    reset_settings()
    reset_llm_client()
    return {"status": "ok", "message": "Cached settings and LLM client cleared"}
