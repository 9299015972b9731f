"""Tests for the Gemini backend (mocked SDK)."""

import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kakeibo_ocr.services.gemini import GeminiClassificationService


def _mock_sdk(text):
    mock_response = MagicMock()
    mock_response.text = text

    mock_model = MagicMock()
    mock_model.generate_content_async = AsyncMock(return_value=mock_response)

    mock_genai = MagicMock()
    mock_genai.GenerativeModel.return_value = mock_model

    mock_google = MagicMock()
    mock_google.generativeai = mock_genai
    return mock_google, mock_genai, mock_model


class TestGeminiClassificationService:
    @pytest.mark.asyncio
    async def test_generate_requires_api_key(self):
        service = GeminiClassificationService(api_key="")

        with pytest.raises(ValueError, match="API key"):
            await service.generate("prompt")

    @pytest.mark.asyncio
    async def test_generate_mocked(self):
        mock_google, mock_genai, mock_model = _mock_sdk('  {"category": "食費", "confidence": 0.9}\n')

        with patch.dict(sys.modules, {"google": mock_google, "google.generativeai": mock_genai}):
            service = GeminiClassificationService(api_key="test-key", model="gemini-test")
            text = await service.generate("分類してください")

        assert text == '{"category": "食費", "confidence": 0.9}'
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        mock_genai.GenerativeModel.assert_called_once_with("gemini-test")
        mock_model.generate_content_async.assert_awaited_once_with("分類してください")

    @pytest.mark.asyncio
    async def test_model_created_once(self):
        mock_google, mock_genai, _ = _mock_sdk("{}")

        with patch.dict(sys.modules, {"google": mock_google, "google.generativeai": mock_genai}):
            service = GeminiClassificationService(api_key="test-key")
            await service.generate("a")
            await service.generate("b")

        assert mock_genai.GenerativeModel.call_count == 1
