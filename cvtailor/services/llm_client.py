"""Chat-completions client for the CV-writing LLM."""

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from cvtailor.core.config import get_settings
from cvtailor.core.logging import get_logger

logger = get_logger(__name__)

_client: httpx.Client | None = None

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

CV_SYSTEM_PROMPT = (
    "You are an expert resume writer. You tailor candidate profiles to job "
    "descriptions and reply with strict JSON only."
)

CV_JSON_SCHEMA = """{
  "full_name": "string",
  "title": "string",
  "email": "string",
  "phone": "string",
  "location": "string",
  "summary": "string",
  "skills": ["string"],
  "links": [{"label": "string", "url": "string"}],
  "experiences": [{"company": "string", "position": "string", "start_date": "string", "end_date": "string", "highlights": ["string"]}],
  "education": [{"institution": "string", "degree": "string", "start_date": "string", "end_date": "string", "description": "string"}],
  "projects": [{"name": "string", "description": "string", "technologies": ["string"], "start_date": "string", "end_date": "string"}],
  "activities": [{"name": "string", "description": "string"}],
  "volunteering": [{"organization": "string", "role": "string", "start_date": "string", "end_date": "string", "description": "string"}]
}"""


class LLMError(RuntimeError):
    """The text-generation service failed or returned nothing usable."""


def reset_client() -> None:
    """Reset the cached HTTP client. Call this after changing API keys."""
    global _client
    if _client is not None:
        _client.close()
    _client = None


def _get_client() -> httpx.Client:
    """Lazy initialization of the LLM HTTP client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.llm_api_key.strip():
            raise LLMError("Missing LLM API key.")
        _client = httpx.Client(
            base_url=settings.llm_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {settings.llm_api_key}",
                "Accept": "application/json",
            },
            timeout=settings.llm_timeout,
        )
    return _client


def build_cv_prompt(job_description: str, profile_json: str) -> str:
    """Build the prompt asking for a job-tailored CV as JSON."""
    return f"""Rewrite the candidate profile below into a CV tailored to the job description.

Rules:
- Highlight the skills, experience and achievements most relevant to the job.
- Rephrase descriptions into concise, results-oriented bullet points.
- Leave out information that adds nothing for this job.
- Keep personal details (name, email, phone, location, links) unchanged.
- Never invent employers, degrees, dates, skills or achievements that are not in the profile.
- Reply with ONLY a JSON object following this schema, no commentary and no markdown:

{CV_JSON_SCHEMA}

Job description:
{job_description}

Candidate profile (JSON):
{profile_json}"""


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


@retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=1, max=20),
    reraise=True,
)
def _post_chat(payload: dict) -> dict:
    client = _get_client()
    response = client.post("/chat/completions", json=payload)
    response.raise_for_status()
    return response.json()


def chat(prompt: str, *, system: str | None = None) -> str:
    """Send a single-turn chat and return the assistant's reply.

    Args:
        prompt: User message
        system: Optional system message

    Returns:
        The first choice's message content, stripped

    Raises:
        LLMError: If the request fails after retries or the reply is empty
    """
    settings = get_settings()
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    payload = {
        "model": settings.llm_model,
        "messages": messages,
        "temperature": settings.llm_temperature,
        "stream": False,
    }

    logger.info("Requesting completion from model %s", settings.llm_model)
    try:
        body = _post_chat(payload)
    except httpx.TimeoutException as e:
        logger.error("LLM request timed out: %s", e)
        raise LLMError("LLM request timed out.") from e
    except httpx.HTTPStatusError as e:
        logger.error(
            "LLM HTTP error %s: %s",
            e.response.status_code,
            e.response.text[:200] if e.response.text else "no body",
        )
        raise LLMError(f"LLM service returned HTTP {e.response.status_code}.") from e
    except httpx.HTTPError as e:
        logger.error("LLM request failed: %s", e)
        raise LLMError(f"LLM request failed: {e}") from e
    except ValueError as e:
        logger.error("Failed to decode LLM response: %s", e)
        raise LLMError("LLM response body is not JSON.") from e

    content = _extract_message_content(body)
    if not content:
        logger.warning("Empty completion from LLM")
        raise LLMError("Failed to generate CV data: empty response from LLM.")
    return content


def get_cv_as_json(job_description: str, profile_json: str) -> str:
    """Ask the LLM for a tailored CV; returns the raw reply text."""
    return chat(build_cv_prompt(job_description, profile_json), system=CV_SYSTEM_PROMPT)


def _extract_message_content(payload: dict) -> str:
    """Safely extract the assistant message content from a completions payload."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") if isinstance(first, dict) else {}
    content = message.get("content") if isinstance(message, dict) else ""
    return str(content or "").strip()
