"""CV generator: one AI call per CV, strict JSON decoding, plus the advisory job analysis."""

import asyncio
import json
import logging
import re

from pydantic import ValidationError

from cvgen.config import settings
from cvgen.errors import GenerationError
from cvgen.schemas.generated_cv import GeneratedCVContent, JobAnalysis
from cvgen.services.ai_client import chat
from cvgen.services.prompt_builder import SYSTEM_PROMPT, build_job_analysis_prompt

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM = (
    "You are a recruitment analyst. You extract structured requirements from job "
    "descriptions and answer with a single JSON object only."
)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_json_object(raw: str) -> dict:
    """Decode the model reply into a dict.

    Accepts a bare object, an object wrapped in markdown fences, or an object
    surrounded by stray prose. Raises ValueError when no object can be decoded.
    """
    text = raw.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(text)
        if not match:
            raise ValueError("no JSON object found in AI response")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"AI response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _describe(exc: ValidationError, limit: int = 5) -> str:
    problems = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(part) for part in err["loc"])
        problems.append(f"{loc}: {err['msg']}")
    more = len(exc.errors()) - limit
    if more > 0:
        problems.append(f"... and {more} more")
    return "; ".join(problems)


async def generate_cv_content(instruction: str) -> GeneratedCVContent:
    """Run the CV instruction through the model and return the validated document.

    Raises GenerationError when the call fails or times out, the reply is empty,
    or the reply does not decode into the required structure.
    """
    try:
        raw = await asyncio.wait_for(
            chat(
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": instruction}],
                max_tokens=settings.CV_MAX_TOKENS,
                temperature=settings.CV_TEMPERATURE,
                json_mode=True,
            ),
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        raise GenerationError(
            f"CV generation failed: AI call timed out after {settings.AI_TIMEOUT_SECONDS:.0f}s"
        ) from e
    except Exception as e:
        logger.error("AI call for CV generation failed: %s", e)
        raise GenerationError(f"CV generation failed: {e}") from e

    if not raw or not raw.strip():
        raise GenerationError("CV generation failed: AI returned an empty response")

    try:
        data = parse_json_object(raw)
    except ValueError as e:
        raise GenerationError(f"CV generation failed: {e}") from e

    try:
        return GeneratedCVContent.model_validate(data)
    except ValidationError as e:
        raise GenerationError(
            f"CV generation failed: AI response does not match the CV structure ({_describe(e)})"
        ) from e


async def analyze_job(job_description: str, profile: dict | None = None) -> JobAnalysis:
    """Extract requirements from a job description, optionally scoring a profile against it.

    Advisory only: any failure is logged and an empty analysis is returned.
    """
    prompt = build_job_analysis_prompt(job_description, profile)
    try:
        raw = await asyncio.wait_for(
            chat(
                system=ANALYSIS_SYSTEM,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=settings.ANALYSIS_MAX_TOKENS,
                temperature=settings.ANALYSIS_TEMPERATURE,
                json_mode=True,
            ),
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
        analysis = JobAnalysis.model_validate(parse_json_object(raw or ""))
    except Exception as e:
        logger.warning("Job analysis failed, returning empty analysis: %s", e)
        return JobAnalysis()

    if profile is None:
        analysis.matchAnalysis = None
    return analysis
