import io
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from ..core.ai_client import ai_client
from ..services.storage import storage
from ..settings import settings

logger = logging.getLogger("dishwise.images")


@dataclass
class GeneratedImage:
    image_bytes: bytes
    model: str
    prompt: str


def build_recipe_prompt(name: str, cuisine: Optional[str], description: Optional[str] = None) -> str:
    # recipe-card look, no overlays
    base = f"A professional overhead food photograph of {name}"
    if cuisine:
        base += f", {cuisine} cuisine"
    if description:
        base += f". {description.strip().rstrip('.')}"
    base += ". Soft natural light, on a white plate, clean plating, no text, no logos, no watermark, appetizing."
    return base


def generate_image_for_recipe(*, name: str, cuisine: Optional[str], description: Optional[str] = None) -> Optional[GeneratedImage]:
    """Returns None when images are disabled or the model produced nothing.

    Provider errors propagate; callers decide whether they are fatal.
    """
    if not settings.ai_images_enabled or not ai_client.is_available():
        return None

    prompt = build_recipe_prompt(name, cuisine, description)
    image_bytes = ai_client.generate_image(prompt=prompt)
    if not image_bytes:
        return None
    return GeneratedImage(image_bytes=image_bytes, model=settings.gemini_image_model, prompt=prompt)


def to_webp(image_bytes: bytes) -> bytes:
    img = Image.open(io.BytesIO(image_bytes))
    buffer = io.BytesIO()
    img.save(buffer, format="WEBP", quality=85)
    return buffer.getvalue()


def try_recipe_image_url(*, name: str, cuisine: Optional[str], description: Optional[str] = None) -> Optional[str]:
    """Best-effort: generate and store an image, returning its public URL or None."""
    try:
        image = generate_image_for_recipe(name=name, cuisine=cuisine, description=description)
        if image is None:
            return None
        key = f"recipes/generated/{uuid.uuid4()}.webp"
        return storage.put_bytes(key, to_webp(image.image_bytes), content_type="image/webp")
    except Exception as e:
        logger.warning(f"Image generation skipped for '{name}': {e}")
        return None
