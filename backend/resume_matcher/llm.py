"""
External model client.

One call per request against the configured provider. There is no
cross-provider fallback and no retry here; callers that want regeneration
go through `retry.regenerate_until_valid`.
"""

import logging
import time
from typing import Optional

import httpx
from groq import AsyncGroq

from .config import GEMINI_URL, Settings
from .errors import ExternalServiceError
from .metrics import MetricsCollector

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Usage:
        llm = LLMClient(settings)
        text = await llm.complete(prompt)
    """

    def __init__(self, settings: Settings, metrics: Optional[MetricsCollector] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.metrics = metrics
        self._http = http_client

    @property
    def provider(self) -> str:
        return self.settings.llm_provider

    @property
    def configured(self) -> bool:
        if self.provider == "groq":
            return bool(self.settings.groq_api_key)
        return bool(self.settings.gemini_api_key)

    async def complete(self, prompt: str, json_mode: bool = True) -> str:
        """Send one prompt, return the raw reply text."""
        if not self.configured:
            logger.warning(f"{self.provider} API key not set — cannot call model")
            raise ExternalServiceError("AI service is not configured")

        start = time.monotonic()
        success = False
        try:
            if self.provider == "groq":
                text = await self._call_groq(prompt, json_mode)
            else:
                text = await self._call_gemini(prompt, json_mode)
            success = True
            return text
        finally:
            latency_ms = (time.monotonic() - start) * 1000
            if self.metrics:
                self.metrics.record_llm_call(latency_ms, success)
            logger.info(f"{self.provider} call {'ok' if success else 'failed'} ({latency_ms:.0f}ms)")

    async def _call_gemini(self, prompt: str, json_mode: bool) -> str:
        gen_config = {"temperature": self.settings.llm_temperature}
        if json_mode:
            gen_config["responseMimeType"] = "application/json"
        url = GEMINI_URL.format(model=self.settings.gemini_model)
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": gen_config,
        }
        try:
            if self._http is not None:
                resp = await self._http.post(url, params={"key": self.settings.gemini_api_key}, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.settings.llm_timeout_seconds) as client:
                    resp = await client.post(url, params={"key": self.settings.gemini_api_key}, json=body)
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport error: {e}")
            raise ExternalServiceError()

        if resp.status_code != 200:
            logger.error(f"Gemini error {resp.status_code}: {resp.text[:200]}")
            raise ExternalServiceError()
        try:
            data = resp.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.error("Gemini reply missing candidates[0].content.parts[0].text")
            raise ExternalServiceError("Invalid response format from AI service")

    async def _call_groq(self, prompt: str, json_mode: bool) -> str:
        kwargs = dict(
            messages=[{"role": "user", "content": prompt}],
            model=self.settings.groq_model,
            temperature=self.settings.llm_temperature,
        )
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            async with AsyncGroq(api_key=self.settings.groq_api_key,
                                 timeout=self.settings.llm_timeout_seconds) as client:
                completion = await client.chat.completions.create(**kwargs)
        except Exception as e:
            logger.error(f"Groq error: {e}")
            raise ExternalServiceError()
        content = completion.choices[0].message.content
        if content is None:
            raise ExternalServiceError("Empty response from AI service")
        return content
