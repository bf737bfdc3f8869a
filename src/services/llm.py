"""Vertex AI Gemini LLM service for CivicDesk.

Wraps the ``vertexai`` SDK for the three generation tasks the portal
uses: department routing, resolution-action suggestions and
conversational status summaries.  Callers own their prompts; this
module owns the model handle, generation settings, retry policy and
JSON decoding.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Final

import structlog
import vertexai
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from vertexai.generative_models import (
    Content,
    GenerationConfig,
    GenerativeModel,
    Part,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

CIVICDESK_SYSTEM_PROMPT: Final[str] = """\
You are the assistant of a civic services portal in India that receives \
citizen complaints about municipal problems such as potholes, water \
leakage, streetlight outages and garbage collection.

- Be accurate and brief. Never invent complaint details, dates or \
reference numbers that were not given to you.
- When asked for JSON, return only a single JSON object with exactly the \
requested keys and no surrounding text or markdown.
- When asked for a message to a citizen, use plain, friendly language \
without markdown, because the text may be read aloud.\
"""

class LLMResponseError(ValueError):
    """The model answered, but not with the structure that was asked for."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LLMResult:
    """Result returned by :meth:`LLMService.generate`."""

    answer: str
    input_tokens: int = 0
    output_tokens: int = 0
    elapsed_ms: float = 0.0


# ---------------------------------------------------------------------------
# LLMService
# ---------------------------------------------------------------------------


class LLMService:
    """Async interface to Vertex AI Gemini.

    * **generate** -- free-form text (status summaries)
    * **generate_json** -- a single JSON object (routing, suggestions)

    ``max_attempts`` bounds the tenacity retry loop around each model
    call; the default of one attempt means failures surface immediately.
    """

    def __init__(
        self,
        project_id: str,
        region: str = "asia-south1",
        model_name: str = "gemini-2.0-flash",
        *,
        max_attempts: int = 1,
    ) -> None:
        self._project_id = project_id
        self._region = region
        self._model_name = model_name
        self._max_attempts = max_attempts
        self._model: GenerativeModel | None = None
        self._initialized = False

    # -- lifecycle ----------------------------------------------------------

    def _initialize(self) -> None:
        """Lazily initialize the Vertex AI SDK and model handle."""
        if self._initialized:
            return
        vertexai.init(project=self._project_id, location=self._region)
        self._model = GenerativeModel(
            model_name=self._model_name,
            system_instruction=[Part.from_text(CIVICDESK_SYSTEM_PROMPT)],
        )
        self._initialized = True
        logger.info(
            "llm.initialised",
            project=self._project_id,
            region=self._region,
            model=self._model_name,
        )

    def _get_model(self) -> GenerativeModel:
        self._initialize()
        assert self._model is not None  # noqa: S101
        return self._model

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def parse_json_object(raw_text: str) -> dict[str, Any]:
        """Decode a JSON object from model output.

        Tolerates a surrounding markdown code fence.  Raises
        :class:`LLMResponseError` for anything that is not an object.
        """
        text = raw_text.strip()
        if text.startswith("```"):
            text = text.strip("`")
            if text.lower().startswith("json"):
                text = text[4:]
            text = text.strip()
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LLMResponseError(f"model output is not valid JSON: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise LLMResponseError("model output is not a JSON object")
        return parsed

    async def _call_model(self, prompt: str, generation_config: GenerationConfig) -> Any:
        model = self._get_model()
        contents = [Content(role="user", parts=[Part.from_text(prompt)])]
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            reraise=True,
        ):
            with attempt:
                return await model.generate_content_async(
                    contents=contents,
                    generation_config=generation_config,
                )
        raise RuntimeError("retry loop exited without a result")  # pragma: no cover

    # -- public API ---------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_output_tokens: int = 512,
    ) -> LLMResult:
        """Generate a free-form text response for *prompt*."""
        start = time.perf_counter()

        generation_config = GenerationConfig(
            temperature=temperature,
            top_p=0.95,
            top_k=40,
            max_output_tokens=max_output_tokens,
        )
        response = await self._call_model(prompt, generation_config)

        usage = response.usage_metadata
        result = LLMResult(
            answer=response.text or "",
            input_tokens=usage.prompt_token_count if usage else 0,
            output_tokens=usage.candidates_token_count if usage else 0,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        logger.info(
            "llm.generated",
            prompt_chars=len(prompt),
            answer_chars=len(result.answer),
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            elapsed_ms=result.elapsed_ms,
        )
        return result

    async def generate_json(
        self,
        prompt: str,
        max_output_tokens: int = 512,
    ) -> dict[str, Any]:
        """Generate a single JSON object for *prompt*.

        Uses a low-temperature structured-output configuration so the
        model returns a clean JSON blob.  Raises :class:`LLMResponseError`
        when the output cannot be decoded as a JSON object.
        """
        start = time.perf_counter()

        generation_config = GenerationConfig(
            temperature=0.1,
            top_p=0.8,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        )
        response = await self._call_model(prompt, generation_config)

        elapsed_ms = (time.perf_counter() - start) * 1000
        raw_text = (response.text or "").strip()
        try:
            parsed = self.parse_json_object(raw_text)
        except LLMResponseError:
            logger.warning("llm.json_undecodable", raw=raw_text[:200])
            raise

        logger.info(
            "llm.json_generated",
            prompt_length=len(prompt),
            keys=sorted(parsed),
            elapsed_ms=round(elapsed_ms, 2),
        )
        return parsed
