"""Unit tests for ModelCatalog."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock, patch, MagicMock
import httpx
from models.provider import ProviderKind
from services.errors import AuthenticationError, InvalidRequestError, ModelCatalogError
from services.model_catalog import ModelCatalog


def models_response(data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.text = "error body"
    response.json.return_value = {"data": data}
    return response


def mock_http_client(mock_client_class, response=None, side_effect=None):
    mock_client = MagicMock()
    client = mock_client.__enter__.return_value
    if side_effect is not None:
        client.get.side_effect = side_effect
    else:
        client.get.return_value = response
    mock_client_class.return_value = mock_client
    return client


class TestModelCatalog:
    """Test suite for ModelCatalog."""

    @patch('httpx.Client')
    def test_openai_filters_and_orders(self, mock_client_class):
        """Test only chat GPT models are listed, GPT-4 family first."""
        client = mock_http_client(mock_client_class, models_response([
            {"id": "gpt-3.5-turbo"},
            {"id": "text-embedding-3-small"},
            {"id": "gpt-4o"},
            {"id": "gpt-3.5-turbo-instruct"},
            {"id": "gpt-4-turbo"},
            {"id": "whisper-1"},
            {"id": "gpt-4o-audio-preview"},
        ]))

        models = ModelCatalog().list_models(ProviderKind.OPENAI, "sk-test")

        assert [model["id"] for model in models] == ["gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"]
        assert models[0] == {"id": "gpt-4o", "name": "gpt-4o"}
        assert client.get.call_args.kwargs["headers"] == {"Authorization": "Bearer sk-test"}

    @patch('httpx.Client')
    def test_openai_without_chat_models(self, mock_client_class):
        mock_http_client(mock_client_class, models_response([{"id": "whisper-1"}]))

        with pytest.raises(ModelCatalogError, match="No compatible chat models"):
            ModelCatalog().list_models(ProviderKind.OPENAI, "sk-test")

    @patch('httpx.Client')
    def test_anthropic_uses_display_names(self, mock_client_class):
        client = mock_http_client(mock_client_class, models_response([
            {"type": "model", "id": "claude-2.1", "display_name": "Claude 2.1"},
            {"type": "model", "id": "claude-3-opus-20240229", "display_name": "Claude 3 Opus"},
            {"type": "model", "id": "claude-3-haiku-20240307", "display_name": "Claude 3 Haiku"},
        ]))

        models = ModelCatalog().list_models(ProviderKind.ANTHROPIC, "sk-ant")

        assert [model["name"] for model in models] == ["Claude 3 Opus", "Claude 3 Haiku", "Claude 2.1"]
        headers = client.get.call_args.kwargs["headers"]
        assert headers["x-api-key"] == "sk-ant"
        assert headers["anthropic-version"] == "2023-06-01"

    def test_missing_key(self):
        with pytest.raises(AuthenticationError):
            ModelCatalog().list_models(ProviderKind.OPENAI, "")

    def test_groq_not_supported(self):
        with pytest.raises(InvalidRequestError):
            ModelCatalog().list_models(ProviderKind.GROQ, "gsk-test")

    @patch('httpx.Client')
    def test_rejected_key(self, mock_client_class):
        mock_http_client(mock_client_class, models_response([], status_code=401))

        with pytest.raises(AuthenticationError):
            ModelCatalog().list_models(ProviderKind.OPENAI, "sk-bad")

    @patch('httpx.Client')
    def test_server_error(self, mock_client_class):
        mock_http_client(mock_client_class, models_response([], status_code=503))

        with pytest.raises(ModelCatalogError) as exc_info:
            ModelCatalog().list_models(ProviderKind.ANTHROPIC, "sk-ant")

        assert exc_info.value.status == 503

    @patch('httpx.Client')
    def test_network_error(self, mock_client_class):
        mock_http_client(mock_client_class, side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(ModelCatalogError, match="request failed"):
            ModelCatalog().list_models(ProviderKind.OPENAI, "sk-test")
