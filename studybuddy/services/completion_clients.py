import json
import logging
from typing import Any, Dict, Protocol

import httpx

from studybuddy.core.errors import AIServiceError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    def complete(self, prompt: str, api_key: str, *, max_tokens: int, temperature: float) -> Dict[str, Any]:
        """Renvoie la réponse brute ({"completion": ..., "questions": ...})."""
        ...


class HttpCompletionClient:
    """
    POST {prompt, max_tokens, temperature} vers un endpoint de complétion,
    authentifié par Bearer token. Pas de retry.
    """

    def __init__(self, endpoint: str, timeout: float = 60.0, transport: httpx.BaseTransport | None = None):
        self.endpoint = endpoint
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def complete(self, prompt: str, api_key: str, *, max_tokens: int, temperature: float) -> Dict[str, Any]:
        try:
            resp = self._client.post(
                self.endpoint,
                json={"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature},
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {api_key}",
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise AIServiceError(
                f"AI request rejected: {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise AIServiceError(f"AI request failed: {e}") from e

        if not isinstance(data, dict):
            raise AIServiceError("AI response is not a JSON object")
        return data

    def close(self) -> None:
        self._client.close()


class OpenAICompletionClient:
    """
    Même contrat via le SDK OpenAI (chat.completions).
    Si la réponse est un objet JSON avec "questions", la liste est remontée telle quelle.
    """

    def __init__(self, model: str = "gpt-4o-mini", timeout: float = 60.0):
        self.model = model
        self.timeout = timeout

    def complete(self, prompt: str, api_key: str, *, max_tokens: int, temperature: float) -> Dict[str, Any]:
        from openai import OpenAI, OpenAIError

        try:
            client = OpenAI(api_key=api_key, timeout=self.timeout)
            comp = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
            text = (comp.choices[0].message.content or "").strip()
        except OpenAIError as e:
            raise AIServiceError(f"OpenAI error: {e}") from e

        out: Dict[str, Any] = {"completion": text}
        try:
            parsed = json.loads(text)
        except ValueError:
            return out
        if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
            out["questions"] = parsed["questions"]
        return out


def build_completion_client(provider: str, *, endpoint: str, model: str, timeout: float) -> CompletionClient:
    provider = (provider or "http").strip().lower()
    if provider == "openai":
        return OpenAICompletionClient(model=model, timeout=timeout)
    if provider == "http":
        return HttpCompletionClient(endpoint, timeout=timeout)
    raise ValueError(f"Unknown AI provider: {provider}")
