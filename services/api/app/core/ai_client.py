import io
import base64
import logging
from typing import Optional, Any, Type, TypeVar
from datetime import datetime, timezone
from pydantic import BaseModel, ValidationError
from google import genai
from google.genai import types

from ..settings import settings
from ..ai.utils import normalize_model_id

logger = logging.getLogger("dishwise.ai")

T = TypeVar("T", bound=BaseModel)

TRANSCRIBE_INSTRUCTION = (
    "Transcribe this audio recording verbatim in English. "
    "Return only the spoken words, no commentary."
)


class AIClient:
    _instance = None

    def __init__(self):
        self.api_key = settings.gemini_api_key
        self.mode = settings.ai_mode  # "mock" or "gemini"
        self._client: Optional[genai.Client] = None
        self.last_error: Optional[str] = None
        self.last_error_at: Optional[datetime] = None

        if self.mode == "gemini" and self.api_key:
            self._client = genai.Client(api_key=self.api_key)

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def is_available(self) -> bool:
        return self.mode == "gemini" and self._client is not None

    def _record_error(self, e: Exception) -> None:
        self.last_error = f"{e.__class__.__name__}: {str(e)}"
        self.last_error_at = datetime.now(timezone.utc)

    def generate_content_sync(
        self,
        prompt: str,
        response_model: Optional[Type[T]] = None,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None
    ) -> Any:
        """
        Blocking call to Gemini. With a response_model the JSON reply is parsed
        into it; returns None when AI is unavailable, the call fails, or the
        reply does not match the schema.
        """
        if not self.is_available():
            logger.warning("AI is not available (mode=%s), skipping generation", self.mode)
            return None

        model_id = normalize_model_id(model or settings.gemini_text_model)
        config = types.GenerateContentConfig(
            response_mime_type="application/json" if response_model else "text/plain",
            response_schema=response_model if response_model else None,
            system_instruction=system_instruction
        )

        try:
            response = self._client.models.generate_content(
                model=model_id,
                contents=prompt,
                config=config
            )
        except Exception as e:
            self._record_error(e)
            logger.error(f"Gemini generation failed: {e}")
            return None

        if not response_model:
            return response.text

        if response.parsed is not None:
            return response.parsed

        # SDK could not coerce the reply; validate the raw text ourselves
        if not response.text:
            logger.warning("Gemini returned empty response")
            return None
        try:
            return response_model.model_validate_json(response.text)
        except ValidationError as e:
            self._record_error(e)
            logger.error(f"Gemini reply did not match {response_model.__name__}: {e}")
            return None

    def generate_image(
        self,
        prompt: str,
        model: Optional[str] = None
    ) -> Optional[bytes]:
        """Generate one image and return its bytes. Raises on provider errors."""
        if not self.is_available():
            logger.warning("AI is not available, skipping image generation")
            return None

        target_model = normalize_model_id(model or settings.gemini_image_model)

        try:
            logger.info(f"Generating image with model={target_model} prompt='{prompt[:50]}...'")
            response = self._client.models.generate_content(
                model=target_model,
                contents=prompt,
                config=types.GenerateContentConfig(response_modalities=["IMAGE"])
            )
        except Exception as e:
            self._record_error(e)
            logger.error(f"Image generation failed: {e}")
            raise

        if response.candidates and response.candidates[0].content.parts:
            for part in response.candidates[0].content.parts:
                if part.inline_data:
                    # inline_data.data is bytes in most SDK versions, or base64 string
                    data = part.inline_data.data
                    if isinstance(data, str):
                        data = base64.b64decode(data)
                    return data

        logger.warning("Gemini returned no images")
        return None

    def transcribe_audio(
        self,
        audio: bytes,
        mime_type: str,
        model: Optional[str] = None
    ) -> str:
        """Primary transcription: audio sent inline with the request."""
        if not self.is_available():
            raise RuntimeError("AI transcription is not available")

        response = self._client.models.generate_content(
            model=normalize_model_id(model or settings.gemini_transcription_model),
            contents=[
                types.Part.from_bytes(data=audio, mime_type=mime_type),
                TRANSCRIBE_INSTRUCTION,
            ],
        )
        return (response.text or "").strip()

    def transcribe_audio_via_upload(
        self,
        audio: bytes,
        mime_type: str,
        model: Optional[str] = None
    ) -> str:
        """Fallback transcription: upload through the Files API, then reference it."""
        if not self.is_available():
            raise RuntimeError("AI transcription is not available")

        uploaded = self._client.files.upload(
            file=io.BytesIO(audio),
            config=types.UploadFileConfig(mime_type=mime_type),
        )
        response = self._client.models.generate_content(
            model=normalize_model_id(model or settings.gemini_fallback_transcription_model),
            contents=[uploaded, TRANSCRIBE_INSTRUCTION],
        )
        return (response.text or "").strip()

# Singleton instance access
ai_client = AIClient.get_instance()
