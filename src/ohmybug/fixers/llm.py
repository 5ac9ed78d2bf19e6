"""Chat-completion client that asks an LLM to rewrite a file."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import httpx

from ohmybug.config.schema import DEFAULT_AI_ENDPOINT, DEFAULT_AI_MODEL
from ohmybug.findings.models import Issue

SYSTEM_PROMPT = (
    "You are a code quality fixer. Given a lint/build issue and the file content, "
    "return ONLY the corrected file content. No explanations, no markdown fences, "
    "just the complete corrected file."
)

_FENCE = re.compile(r"^```[\w+-]*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


class LLMError(Exception):
    """Raised when the LLM API call fails or returns something unusable."""


def build_prompt(issue: Issue, file_content: str) -> str:
    lines = [
        "Fix this issue in the file:",
        "",
        f"Rule: {issue.rule}",
        f"Message: {issue.message}",
        f"File: {issue.file_path}",
    ]
    if issue.line is not None:
        lines.append(f"Line: {issue.line}")
    lines.extend(["", "File content:", file_content])
    return "\n".join(lines)


def strip_fences(content: str) -> str:
    """Remove a markdown code fence wrapped around the whole reply, if any."""
    m = _FENCE.match(content.strip())
    return m.group("body") + "\n" if m else content


class LLMClient:
    """OpenAI-compatible ``/chat/completions`` client."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_AI_ENDPOINT,
        model: str = DEFAULT_AI_MODEL,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def http(self) -> httpx.Client:
        """The pooled HTTP client, opened on first use."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, transport=self._transport)
        return self._client

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def close(self) -> None:
        """Release pooled connections. The next request opens a fresh pool."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request_fix(self, issue: Issue, file_content: str) -> str:
        """Return the corrected file content proposed for *issue*."""
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(issue, file_content)},
            ],
            "temperature": 0.1,
            "max_tokens": 4096,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = self.http.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise LLMError(f"LLM request failed: {exc}") from exc

        if not response.is_success:
            raise LLMError(f"LLM API error ({response.status_code}): {response.text[:500]}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError("Failed to parse LLM response") from exc
        if not isinstance(content, str) or not content.strip():
            raise LLMError("LLM did not generate a fix")
        return strip_fences(content)
