from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for the upstream generator producing structured JSON."""

	@abstractmethod
	async def generate_json(
		self,
		prompt: str,
		*,
		system: str | None = None,
		**kwargs: Any,
	) -> dict[str, Any]:
		"""Generate a JSON object for a tool request.

		Args:
			prompt: User prompt describing the tool request.
			system: Optional system prompt.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			dict[str, Any]: Parsed JSON object returned by the model.

		Raises:
			LLMAppError: If the provider call fails or the response is not a JSON object.
		"""
		...
