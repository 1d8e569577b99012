import google.generativeai as genai
from src.core.config import settings
import logging

logger = logging.getLogger(__name__)

class GeminiClient:
    def __init__(self):
        if not settings.GOOGLE_GEMINI_API_KEY:
            logger.warning("GOOGLE_GEMINI_API_KEY not set")
            self.model = None
            return

        genai.configure(api_key=settings.GOOGLE_GEMINI_API_KEY)
        self.model = genai.GenerativeModel(settings.GEMINI_MODEL_FLASH)
        self.generation_config = genai.GenerationConfig(
            temperature=settings.GEMINI_TEMPERATURE,
            max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
        )

    async def generate_content(self, prompt: str) -> str:
        if not self.model:
            raise ValueError("Gemini API key not configured")
        
        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config=self.generation_config
            )
            return response.text
        except Exception as e:
            logger.error(f"Error calling Gemini: {e}")
            raise

gemini_client = GeminiClient()
