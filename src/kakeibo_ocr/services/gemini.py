"""Google Gemini backend for expense category classification."""

import logging

from . import ClassificationService

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"


class GeminiClassificationService(ClassificationService):
    """Send classification prompts to Google Gemini."""

    def __init__(self, api_key: str = "", model: str = DEFAULT_MODEL):
        self._api_key = api_key
        self._model = model
        self._client = None

    def _get_model(self):
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not configured. "
                "Set it in the config file or the GEMINI_API_KEY environment variable."
            )

        if self._client is None:
            try:
                import google.generativeai as genai
            except ImportError:
                raise ImportError(
                    "google-generativeai SDK is required: pip install google-generativeai"
                ) from None

            genai.configure(api_key=self._api_key)
            self._client = genai.GenerativeModel(self._model)
            logger.info(f"Initialized Gemini model {self._model}")

        return self._client

    async def generate(self, prompt: str) -> str:
        model = self._get_model()
        response = await model.generate_content_async(prompt)
        return response.text.strip()
