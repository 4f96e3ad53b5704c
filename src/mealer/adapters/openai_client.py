"""OpenAI Responses API client for structured outputs."""

import json
from dataclasses import dataclass

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from mealer.services.llm import ExternalServiceError, StructuredLLMClient

_AUTH_FAILURES = {401, 403}
TOO_MANY_REQUESTS = 429
SERVER_ERROR = 500


@dataclass
class OpenAIStructuredClient(StructuredLLMClient):
    """Structured-output client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIStructuredClient":
        """Create an OpenAI structured-output client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with a strict JSON schema."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except APIStatusError as exc:
            raise ExternalServiceError(
                _status_message(exc.status_code), status_code=exc.status_code
            ) from exc
        except APIConnectionError as exc:
            raise ExternalServiceError("AI service temporarily unavailable") from exc

        output_text = response.output_text
        if not output_text:
            raise ExternalServiceError("AI service returned an empty response")
        try:
            return json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise ExternalServiceError("AI service returned invalid JSON") from exc


def _status_message(status_code: int) -> str:
    """Map provider HTTP status codes to user-facing messages."""
    if status_code in _AUTH_FAILURES:
        return "AI service authentication failed"
    if status_code == TOO_MANY_REQUESTS:
        return "AI service rate limit exceeded"
    if status_code >= SERVER_ERROR:
        return "AI service temporarily unavailable"
    return "AI service request failed"
