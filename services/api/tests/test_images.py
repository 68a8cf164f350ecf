import io
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from app.ai import gemini_image
from app.services.storage import LocalStorage


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 80, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def images_on(monkeypatch, tmp_path):
    monkeypatch.setattr(gemini_image.settings, "ai_images_enabled", True)
    monkeypatch.setattr(gemini_image, "storage", LocalStorage(root=tmp_path))
    with patch("app.ai.gemini_image.ai_client") as mock_client:
        mock_client.is_available.return_value = True
        yield mock_client, tmp_path


def test_prompt_mentions_dish_and_cuisine():
    prompt = gemini_image.build_recipe_prompt("Pad Thai", "Thai", "Rice noodles with tamarind.")
    assert prompt.startswith("A professional overhead food photograph of Pad Thai, Thai cuisine. Rice noodles")
    assert "no text" in prompt


def test_generated_image_is_stored_as_webp(images_on):
    mock_client, root = images_on
    mock_client.generate_image.return_value = _png_bytes()

    url = gemini_image.try_recipe_image_url(name="Pad Thai", cuisine="Thai")

    assert url.startswith("/media/recipes/generated/")
    assert url.endswith(".webp")
    stored = root / url.removeprefix("/media/")
    assert Image.open(stored).format == "WEBP"


def test_provider_error_yields_no_image(images_on):
    mock_client, _ = images_on
    mock_client.generate_image.side_effect = RuntimeError("quota exceeded")

    assert gemini_image.try_recipe_image_url(name="Pad Thai", cuisine="Thai") is None


def test_disabled_images_skip_provider(monkeypatch):
    monkeypatch.setattr(gemini_image.settings, "ai_images_enabled", False)
    with patch("app.ai.gemini_image.ai_client") as mock_client:
        assert gemini_image.try_recipe_image_url(name="Soup", cuisine=None) is None
        mock_client.generate_image.assert_not_called()


def test_storage_rejects_path_traversal(tmp_path):
    with pytest.raises(ValueError):
        LocalStorage(root=Path(tmp_path)).put_bytes("../escape.webp", b"x")
