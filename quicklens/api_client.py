#!/usr/bin/env python3
"""
API client for OpenRouter, Google Gemini, and custom OpenAI-compatible APIs

Requests run on daemon worker threads; results re-enter the host loop via
call_soon() so callers never see a callback on a foreign thread. The result
handed to callbacks is the response text (str) on success and a
TransportError otherwise.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

import requests

from .config import GOOGLE_URL, OPENROUTER_URL
from .errors import TransportError
from .loop import HostLoop
from .utils import is_invalid_key_error, is_rate_limit_error, is_retryable_status


def extract_text_from_response(response_json, backend):
    """Extract text from API response"""
    if not isinstance(response_json, dict):
        return None
    if backend in ["openrouter", "custom"]:
        choices = response_json.get("choices") or []
        if choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"] or None
    elif backend == "google":
        candidates = response_json.get("candidates") or []
        if candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            parts = (content.get("parts") if isinstance(content, dict) else None) or []
            text = "".join(part.get("text") or "" for part in parts if isinstance(part, dict))
            return text or None
    return None


def to_google_payload(messages: List[Dict], ai_params: Dict, max_tokens: Optional[int]) -> Dict:
    """Convert OpenAI-style messages to a Gemini generateContent payload"""
    system_parts = []
    contents = []
    for msg in messages:
        if msg["role"] == "system":
            system_parts.append({"text": msg["content"]})
            continue
        role = "user" if msg["role"] == "user" else "model"
        contents.append({"role": role, "parts": [{"text": msg["content"]}]})

    payload = {"contents": contents, "generationConfig": {}}
    if system_parts:
        payload["systemInstruction"] = {"parts": system_parts}
    for param, value in ai_params.items():
        if value is not None:
            payload["generationConfig"][param] = value
    if max_tokens:
        payload["generationConfig"]["maxOutputTokens"] = max_tokens
    return payload


class LLMClient:
    """
    Transport to the configured LLM backends.

    Retries on rate limits, server errors and timeouts are this class's
    policy; callers never retry.
    """

    def __init__(self, config: Dict, ai_params: Dict, keys: Dict[str, List[str]], loop: HostLoop):
        """
        Args:
            config: Main configuration dictionary
            ai_params: Extra parameters forwarded to the API (temperature, ...)
            keys: API keys per backend
            loop: Host loop that receives completion callbacks
        """
        self.config = config
        self.ai_params = ai_params
        self.keys = keys
        self.loop = loop

    def resolve_model(self, backend: str, model: Optional[str] = None) -> Optional[str]:
        if model:
            return model
        return self.config.get(f"{backend}_model")

    def _api_key(self, backend: str) -> str:
        backend_keys = [k for k in self.keys.get(backend, []) if k]
        if not backend_keys:
            raise TransportError(f"No API keys configured for backend: {backend}")
        return backend_keys[0]

    def _post(self, backend: str, model: str, messages: List[Dict], max_tokens: Optional[int]):
        timeout = self.config.get("request_timeout", 60)
        key = self._api_key(backend)

        if backend == "google":
            url = GOOGLE_URL.format(model=model)
            headers = {"x-goog-api-key": key, "Content-Type": "application/json"}
            payload = to_google_payload(messages, self.ai_params, max_tokens)
        elif backend in ("openrouter", "custom"):
            if backend == "openrouter":
                url = OPENROUTER_URL
            else:
                url = self.config.get("custom_url")
                if not url:
                    raise TransportError("Custom API URL not configured")
                if not url.endswith("/chat/completions"):
                    url = url.rstrip("/") + "/chat/completions"
            headers = {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}
            payload = {"model": model, "messages": messages}
            for param, value in self.ai_params.items():
                if value is not None:
                    payload[param] = value
            if max_tokens:
                payload["max_tokens"] = max_tokens
        else:
            raise TransportError(f"Unknown backend: {backend}")

        return requests.post(url, headers=headers, json=payload, timeout=timeout)

    def complete(
        self,
        messages: List[Dict],
        backend: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Blocking call with retries.

        Returns:
            The response text

        Raises:
            TransportError: when every attempt failed
        """
        backend = backend or self.config.get("default_provider", "google")
        model = self.resolve_model(backend, model)
        if not model:
            raise TransportError(f"No model configured for backend: {backend}")

        attempts = max(1, int(self.config.get("max_retries", 2)) + 1)
        retry_delay = self.config.get("retry_delay", 2)
        last_error = None

        for attempt in range(attempts):
            logging.debug(f'Calling {backend} ({model}), attempt {attempt + 1}/{attempts}')
            try:
                response = self._post(backend, model, messages, max_tokens)
            except requests.exceptions.Timeout:
                last_error = TransportError(f"Request timeout after {self.config.get('request_timeout', 60)}s")
            except requests.exceptions.RequestException as e:
                last_error = TransportError(f"Request failed: {e}")
            else:
                if response.status_code == 200:
                    try:
                        text = extract_text_from_response(response.json(), backend)
                    except ValueError:
                        text = None
                    if text:
                        return text
                    last_error = TransportError("Empty response from API", response.status_code)
                elif is_invalid_key_error(response.text, response.status_code):
                    raise TransportError(f"Invalid API key for {backend}", response.status_code)
                elif is_retryable_status(response.status_code) or is_rate_limit_error(response.text):
                    last_error = TransportError(
                        f"API error {response.status_code}: {response.text[:300]}", response.status_code
                    )
                else:
                    raise TransportError(
                        f"API error {response.status_code}: {response.text[:300]}", response.status_code
                    )

            logging.warning(f'{backend} attempt {attempt + 1} failed: {last_error}')
            if attempt < attempts - 1:
                time.sleep(retry_delay)

        raise last_error

    def _run_async(self, messages, deliver, backend, model, max_tokens) -> threading.Thread:
        def worker():
            try:
                result = self.complete(messages, backend=backend, model=model, max_tokens=max_tokens)
            except TransportError as e:
                result = e
            except Exception as e:
                logging.exception('Request worker failed')
                result = TransportError(f"Request failed: {e}")
            self.loop.call_soon(lambda: deliver(result))

        thread = threading.Thread(target=worker, daemon=True)
        thread.start()
        return thread

    def request(
        self,
        payload: str,
        system_instruction: str = "",
        context_blocks: Optional[List[str]] = None,
        callback: Optional[Callable] = None,
        backend: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        context=None
    ) -> threading.Thread:
        """
        Send a single-turn request without blocking the caller.

        Context blocks are sent as system messages, separate from the payload.
        The callback is invoked on the host loop as callback(result, context),
        with context passed back untouched.
        """
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        for block in context_blocks or []:
            messages.append({"role": "system", "content": block})
        messages.append({"role": "user", "content": payload})

        def deliver(result):
            if callback:
                callback(result, context)

        return self._run_async(messages, deliver, backend, model, max_tokens)

    def chat(
        self,
        messages: List[Dict],
        callback: Callable,
        system_instruction: Optional[str] = None,
        backend: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None
    ) -> threading.Thread:
        """Send a multi-message conversation without blocking the caller."""
        full_messages = []
        if system_instruction:
            full_messages.append({"role": "system", "content": system_instruction})
        full_messages.extend({"role": m["role"], "content": m["content"]} for m in messages)
        return self._run_async(full_messages, callback, backend, model, max_tokens)
