from __future__ import annotations

import asyncio
import json
import ssl
import urllib.error
import urllib.request
from typing import Any

import certifi

from video_qa.domain.errors import ApiError


class HuggingFaceAnswerModel:
    """Text generation through the Hugging Face inference API.

    Decoding parameters are fixed per instance. Failures surface as ApiError
    straight away; there is no retry.
    """

    def __init__(
        self,
        api_token: str,
        model: str,
        base_url: str = "https://api-inference.huggingface.co/models",
        max_length: int = 1000,
        temperature: float = 0.7,
        top_p: float = 0.9,
        do_sample: bool = True,
        timeout_sec: int = 90,
    ) -> None:
        self.api_token = api_token.strip()
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.parameters = {
            "max_length": max_length,
            "temperature": temperature,
            "top_p": top_p,
            "do_sample": do_sample,
        }
        self.timeout_sec = timeout_sec
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.model}"

    async def generate(self, prompt: str) -> str:
        payload = {"inputs": prompt, "parameters": dict(self.parameters)}
        response_json = await asyncio.to_thread(self._request_json, payload)
        return self._extract_text(response_json)

    def _request_json(self, payload: dict[str, Any]) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        req = urllib.request.Request(
            self.url,
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec, context=self.ssl_context) as res:
                body = res.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise ApiError(f"Hugging Face HTTP {exc.code}: {self._error_detail(exc)}", status=exc.code) from exc
        except (urllib.error.URLError, TimeoutError) as exc:
            raise ApiError(f"Hugging Face request failed: {exc}") from exc

        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise ApiError("Hugging Face response was not valid JSON") from exc

    def _error_detail(self, exc: urllib.error.HTTPError) -> str:
        try:
            error_body = exc.read().decode("utf-8")
        except OSError:
            return str(exc)
        try:
            parsed = json.loads(error_body)
        except json.JSONDecodeError:
            return error_body or str(exc)
        if isinstance(parsed, dict) and parsed.get("error"):
            return str(parsed["error"])
        return error_body

    def _extract_text(self, response_json: Any) -> str:
        if not isinstance(response_json, list) or not response_json:
            raise ApiError("Hugging Face response must be a non-empty list of generations")
        first = response_json[0]
        text = first.get("generated_text") if isinstance(first, dict) else None
        if not isinstance(text, str):
            raise ApiError("Hugging Face response has no generated_text")
        return text.strip()
