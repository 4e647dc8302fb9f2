"""Lists the chat models an API key can use."""
import logging
from typing import Any, Dict, List

import httpx

from models.provider import ProviderKind
from services.errors import AuthenticationError, InvalidRequestError, ModelCatalogError
from config import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

OPENAI_MODELS_URL = "https://api.openai.com/v1/models"
ANTHROPIC_MODELS_URL = "https://api.anthropic.com/v1/models"
ANTHROPIC_VERSION = "2023-06-01"

# Model id fragments that mark OpenAI models unsuited to document chat
OPENAI_EXCLUDED_FRAGMENTS = (
    "instruct", "embedding", "-if-", "vision", "audio", "whisper",
    "dalle", "tts", "transcribe", "realtime", "search",
)


class ModelCatalog:
    """Fetches and orders the chat models available to a provider key."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT):
        self.timeout = timeout

    def list_models(self, provider: ProviderKind, api_key: str) -> List[Dict[str, str]]:
        """
        List chat models as {"id", "name"} dicts, preferred models first.

        Raises:
            InvalidRequestError: If the provider has no model listing
            AuthenticationError: If the key is rejected
            ModelCatalogError: On any other failure
        """
        if not api_key:
            raise AuthenticationError("API key is required to fetch available models")

        if provider == ProviderKind.OPENAI:
            return self._openai_models(api_key)
        if provider == ProviderKind.ANTHROPIC:
            return self._anthropic_models(api_key)

        raise InvalidRequestError(
            f"Model listing is not supported for provider {provider.value}",
            {"provider": provider.value}
        )

    def _openai_models(self, api_key: str) -> List[Dict[str, str]]:
        data = self._fetch(
            OPENAI_MODELS_URL,
            {"Authorization": f"Bearer {api_key}"},
            "OpenAI"
        )

        chat_models = [
            {"id": model["id"], "name": model["id"]}
            for model in data
            if "gpt" in model["id"].lower()
            and not any(fragment in model["id"].lower() for fragment in OPENAI_EXCLUDED_FRAGMENTS)
        ]
        if not chat_models:
            raise ModelCatalogError("No compatible chat models found in your OpenAI account")

        # Newest ids first, with the GPT-4 family ahead of everything else
        chat_models.sort(key=lambda model: model["id"], reverse=True)
        chat_models.sort(key=lambda model: "gpt-4" not in model["id"])
        return chat_models

    def _anthropic_models(self, api_key: str) -> List[Dict[str, str]]:
        data = self._fetch(
            ANTHROPIC_MODELS_URL,
            {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION},
            "Anthropic"
        )

        models = [
            {"id": model["id"], "name": model.get("display_name") or model["id"]}
            for model in data
            if model.get("type") == "model"
        ]

        # Newest ids first, with Claude 3 models ahead of older families
        models.sort(key=lambda model: model["id"], reverse=True)
        models.sort(key=lambda model: "claude-3" not in model["id"])
        return models

    def _fetch(self, url: str, headers: Dict[str, str], vendor: str) -> List[Dict[str, Any]]:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Error fetching {vendor} models: {str(e)}")
            raise ModelCatalogError(f"{vendor} API request failed: {str(e)}")

        if response.status_code == 401:
            raise AuthenticationError(f"{vendor} rejected the API key", provider=vendor.lower())

        if response.status_code != 200:
            logger.error(f"Error fetching {vendor} models: status {response.status_code}")
            raise ModelCatalogError(
                f"{vendor} API error ({response.status_code}): {response.text}",
                status=response.status_code
            )

        try:
            data = response.json()["data"]
        except (KeyError, TypeError, ValueError):
            raise ModelCatalogError(f"Unexpected response format from {vendor} API")

        if not isinstance(data, list):
            raise ModelCatalogError(f"Unexpected response format from {vendor} API")
        return data
