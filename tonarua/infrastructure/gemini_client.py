"""
Gemini ``generateContent`` REST client.

Only what the estimation oracle needs: send one prompt, ask for a JSON
response, and hand back the decoded object.  Every way this can go wrong is
raised as ``OracleUnavailable`` so the oracle has a single thing to catch.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """Base class for estimation oracle errors."""


class EmptyQuery(OracleError):
    """A place lookup was asked for an empty query."""


class OracleUnavailable(OracleError):
    """Network, quota, auth or malformed-response failure talking to Gemini."""


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 15.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def generate_json(
        self,
        prompt: str,
        *,
        grounded: bool = False,
        thinking_budget: Optional[int] = None,
    ) -> dict[str, Any]:
        """Run *prompt* and return the JSON object the model answered with."""
        if not self.api_key:
            raise OracleUnavailable("Gemini API key not configured")

        generation_config: dict[str, Any] = {"responseMimeType": "application/json"}
        if thinking_budget is not None:
            generation_config["thinkingConfig"] = {"thinkingBudget": thinking_budget}

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if grounded:
            payload["tools"] = [{"googleMaps": {}}]

        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

        logger.debug("Gemini request (model=%s, grounded=%s)", self.model, grounded)
        try:
            response = await self._http.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise OracleUnavailable(f"Gemini request failed: {exc}") from exc

        if response.status_code != 200:
            raise OracleUnavailable(
                f"Gemini returned {response.status_code}: {response.text[:200]}"
            )

        text = _response_text(response)
        if not text:
            raise OracleUnavailable("No response from AI")
        return _decode_json(text)


def _response_text(response: httpx.Response) -> str:
    try:
        body = response.json()
        parts = body["candidates"][0]["content"]["parts"]
    except (ValueError, KeyError, IndexError, TypeError):
        return ""
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


def _decode_json(text: str) -> dict[str, Any]:
    # Grounded answers sometimes come wrapped in a markdown fence
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise OracleUnavailable(f"Malformed JSON from AI: {exc}") from exc
    if not isinstance(data, dict):
        raise OracleUnavailable("Expected a JSON object from AI")
    return data
