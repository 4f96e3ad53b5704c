"""Interface for structured-output LLM calls."""

from typing import Protocol


class ExternalServiceError(Exception):
    """Raised when the LLM provider fails or returns unusable output."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StructuredLLMClient(Protocol):
    """Interface for LLM calls constrained to a JSON schema."""

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
        """Return the JSON object produced by the model."""
