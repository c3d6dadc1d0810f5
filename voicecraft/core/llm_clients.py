"""
Gemini client for the writing assistant.
Provides schema-constrained and plain-text generation with a call timeout,
retry on transport errors and an optional fallback model.
"""

import asyncio
from typing import Any, Optional, Protocol

import google.generativeai as genai
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from voicecraft.core.config import settings
from voicecraft.core.exceptions import ConfigurationError
from voicecraft.core.observability import observe_llm_call

logger = structlog.get_logger(__name__)


class TextGenerator(Protocol):
    """Interface every model client used by the services satisfies."""

    async def generate(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        schema: Optional[dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        fallback_model: Optional[str] = None,
    ) -> str:
        ...


_SCHEMA_TYPES = {
    "string": genai.protos.Type.STRING,
    "number": genai.protos.Type.NUMBER,
    "integer": genai.protos.Type.INTEGER,
    "boolean": genai.protos.Type.BOOLEAN,
    "array": genai.protos.Type.ARRAY,
    "object": genai.protos.Type.OBJECT,
}


def to_gemini_schema(schema: dict[str, Any]) -> genai.protos.Schema:
    """Convert a JSON-schema style dict into a Gemini response schema."""
    kwargs: dict[str, Any] = {"type_": _SCHEMA_TYPES[schema["type"]]}

    if "description" in schema:
        kwargs["description"] = schema["description"]
    if "enum" in schema:
        kwargs["enum"] = list(schema["enum"])
    if schema.get("nullable"):
        kwargs["nullable"] = True
    if "items" in schema:
        kwargs["items"] = to_gemini_schema(schema["items"])
    if "properties" in schema:
        kwargs["properties"] = {
            name: to_gemini_schema(sub) for name, sub in schema["properties"].items()
        }
    if "required" in schema:
        kwargs["required"] = list(schema["required"])

    return genai.protos.Schema(**kwargs)


class GeminiClient:
    """Google Gemini API client with retry logic."""

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key
        self._configured = False

    def _ensure_configured(self) -> None:
        """Configure the SDK lazily so a missing key fails at call time."""
        api_key = self._api_key or settings.gemini_api_key
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        if not self._configured:
            genai.configure(api_key=api_key)
            self._configured = True

    @observe_llm_call(name="gemini_generate")
    async def generate(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        schema: Optional[dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        fallback_model: Optional[str] = None,
    ) -> str:
        """
        Generate text, falling back to a second model if the first fails.

        Returns the stripped response text. When ``schema`` is given the
        response is constrained to JSON matching it.
        """
        self._ensure_configured()
        model_name = model or settings.gemini_model_default

        params = dict(
            prompt=prompt,
            schema=schema,
            system_instruction=system_instruction,
            temperature=temperature,
            top_p=top_p,
            max_output_tokens=max_output_tokens,
        )

        try:
            return await self._generate_once(model_name=model_name, **params)
        except Exception as e:
            if not fallback_model or fallback_model == model_name:
                raise

            logger.warning(
                "Primary model failed, falling back",
                primary=model_name,
                fallback=fallback_model,
                error=str(e),
            )
            return await self._generate_once(model_name=fallback_model, **params)

    @retry(
        retry=retry_if_exception_type((TimeoutError, asyncio.TimeoutError, ConnectionError)),
        stop=stop_after_attempt(settings.llm_max_retries),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate_once(
        self,
        model_name: str,
        prompt: str,
        schema: Optional[dict[str, Any]],
        system_instruction: Optional[str],
        temperature: Optional[float],
        top_p: Optional[float],
        max_output_tokens: Optional[int],
    ) -> str:
        """Single Gemini call with timeout."""
        generation_config = genai.GenerationConfig(
            temperature=temperature if temperature is not None else settings.llm_temperature,
            top_p=top_p if top_p is not None else settings.llm_top_p,
            max_output_tokens=max_output_tokens or settings.llm_max_tokens,
        )

        if schema is not None:
            generation_config.response_mime_type = "application/json"
            generation_config.response_schema = to_gemini_schema(schema)

        model_instance = genai.GenerativeModel(
            model_name=model_name,
            system_instruction=system_instruction if system_instruction else None,
            generation_config=generation_config,
        )

        logger.debug(
            "Gemini request",
            model=model_name,
            json_mode=schema is not None,
            prompt_chars=len(prompt),
        )

        # Run in executor since genai is sync
        loop = asyncio.get_running_loop()
        response = await asyncio.wait_for(
            loop.run_in_executor(None, model_instance.generate_content, prompt),
            timeout=settings.llm_timeout,
        )

        return response.text.strip()


# Global Gemini client instance
gemini_client = GeminiClient()
