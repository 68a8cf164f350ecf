import base64
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.models import Recipe, User
from app.schemas_generation import GeneratedRecipeBatch, IntentCheck
from app.services.recipe_store import mock_recipe_batch, persist_generated_recipe as real_persist
from app.services.voice import voice_recommender

AUDIO = base64.b64encode(b"fake audio bytes").decode()


def _post(client, **body):
    return client.post("/api/voice-suggestions", json=body)


@pytest.fixture
def live_ai(monkeypatch):
    """Voice recommender in gemini mode; intent check passes and generation returns the mock batch."""
    monkeypatch.setattr(voice_recommender, "mode", "gemini")
    with patch("app.services.voice.ai_client") as mock_client:
        def _generate(prompt, response_model=None, model=None, system_instruction=None):
            if response_model is IntentCheck:
                return IntentCheck(is_valid=True)
            return GeneratedRecipeBatch(recipes=mock_recipe_batch())
        mock_client.generate_content_sync.side_effect = _generate
        yield mock_client


def _generation_prompt(mock_client) -> str:
    for call in mock_client.generate_content_sync.call_args_list:
        if call.kwargs.get("response_model") is GeneratedRecipeBatch:
            return call.kwargs["prompt"]
    raise AssertionError("generation was not called")


def test_text_request_returns_ranked_recipes(client, user):
    response = _post(client, userId=user.id, text="Something quick please")

    assert response.status_code == 200
    body = response.json()
    assert body["transcription"] == "Something quick please"
    recipes = body["recipes"]
    assert 1 <= len(recipes) <= 5

    scores = [r["match_percentage"] for r in recipes]
    assert scores == sorted(scores, reverse=True)
    assert all(75 <= s <= 99 for s in scores)
    assert "quick" in recipes[0]["tags"]


def test_dietary_label_from_tags(client, user):
    recipes = _post(client, userId=user.id, text="dinner ideas").json()["recipes"]
    by_name = {r["name"]: r for r in recipes}

    assert by_name["Black Bean Tacos"]["dietary_info"] == "Vegan"
    assert by_name["Tomato Basil Pasta"]["dietary_info"] == "Vegetarian"


def test_missing_user_id_is_400(client):
    assert _post(client, text="pasta").status_code == 400


def test_missing_input_is_400(client, user):
    response = _post(client, userId=user.id)
    assert response.status_code == 400
    assert response.json()["detail"] == "Either audio or text is required"


def test_unknown_user_is_404(client):
    assert _post(client, userId="nobody", text="pasta").status_code == 404


def test_invalid_audio_is_400(client, user):
    assert _post(client, userId=user.id, audio="not base64!!").status_code == 400


def test_transcription_falls_back_to_upload(client, user):
    with patch("app.services.voice.ai_client") as mock_client:
        mock_client.transcribe_audio.side_effect = RuntimeError("inline rejected")
        mock_client.transcribe_audio_via_upload.return_value = "I want pasta"

        response = _post(client, userId=user.id, audio=AUDIO, mimeType="audio/webm")

    assert response.status_code == 200
    assert response.json()["transcription"] == "I want pasta"
    mock_client.transcribe_audio.assert_called_once_with(b"fake audio bytes", "audio/webm")
    mock_client.transcribe_audio_via_upload.assert_called_once()


def test_transcription_failure_is_500(client, user):
    with patch("app.services.voice.ai_client") as mock_client:
        mock_client.transcribe_audio.side_effect = RuntimeError("inline rejected")
        mock_client.transcribe_audio_via_upload.side_effect = RuntimeError("upload rejected")

        response = _post(client, userId=user.id, audio=AUDIO)

    assert response.status_code == 500
    assert "typing" in response.json()["detail"]


def test_empty_transcription_is_400(client, user):
    with patch("app.services.voice.ai_client") as mock_client:
        mock_client.transcribe_audio.return_value = ""

        response = _post(client, userId=user.id, audio=AUDIO)

    assert response.status_code == 400
    assert response.json()["detail"] == "No transcription available"


def test_non_food_request_is_rejected(client, user, live_ai):
    live_ai.generate_content_sync.side_effect = None
    live_ai.generate_content_sync.return_value = IntentCheck(is_valid=False, reason="weather question")

    response = _post(client, userId=user.id, text="what's the weather tomorrow")

    assert response.status_code == 400
    body = response.json()
    assert body["type"] == "invalid"
    assert body["transcription"] == "what's the weather tomorrow"
    assert live_ai.generate_content_sync.call_count == 1


def test_failed_intent_check_does_not_block(client, user, live_ai):
    def _generate(prompt, response_model=None, model=None, system_instruction=None):
        if response_model is IntentCheck:
            return None
        return GeneratedRecipeBatch(recipes=mock_recipe_batch())
    live_ai.generate_content_sync.side_effect = _generate

    assert _post(client, userId=user.id, text="I'm hungry").status_code == 200


def test_generation_failure_is_500(client, user, live_ai):
    def _generate(prompt, response_model=None, model=None, system_instruction=None):
        if response_model is IntentCheck:
            return IntentCheck(is_valid=True)
        return None
    live_ai.generate_content_sync.side_effect = _generate

    response = _post(client, userId=user.id, text="soup")
    assert response.status_code == 500


def test_prompt_respects_assistant_preference_flag(client, db_session, live_ai):
    u = User(
        id="no-prefs",
        allergies=["shrimp"],
        preferred_cuisines=["Thai"],
        apply_preferences_in_assistant=False,
    )
    db_session.add(u)
    db_session.commit()

    assert _post(client, userId="no-prefs", text="dinner").status_code == 200

    prompt = _generation_prompt(live_ai)
    assert "ALLERGIES/INTOLERANCES TO AVOID: shrimp" in prompt
    assert "Preferred cuisines" not in prompt


def test_prompt_uses_imperial_units(client, db_session, live_ai):
    u = User(id="imperial", preferred_cuisines=["Mexican"], measurement_system="imperial")
    db_session.add(u)
    db_session.commit()

    _post(client, userId="imperial", text="tacos")

    prompt = _generation_prompt(live_ai)
    assert "US Imperial units" in prompt
    assert "Preferred cuisines: Mexican" in prompt
    assert 'The user just said: "tacos"' in prompt


def test_whole_batch_is_ranked_before_cut(client, user, db_session):
    spicy = [
        draft.model_copy(update={"name": name, "tags": ["spicy"]})
        for draft, name in zip(mock_recipe_batch(), ["Chili Garlic Noodles", "Spicy Lentil Curry"])
    ]
    with patch.object(voice_recommender, "generate_drafts", return_value=mock_recipe_batch() + spicy):
        response = _post(client, userId=user.id, text="something spicy")

    recipes = response.json()["recipes"]
    assert len(recipes) == 5
    assert {r["name"] for r in recipes[:3]} == {"Black Bean Tacos", "Chili Garlic Noodles", "Spicy Lentil Curry"}
    assert [r["match_percentage"] for r in recipes[:3]] == [95, 95, 95]
    assert db_session.query(Recipe).count() == 7


def test_one_failed_insert_is_skipped(client, user, db_session):
    calls = {"n": 0}

    def flaky(db, user_id, draft):
        calls["n"] += 1
        if calls["n"] == 2:
            raise SQLAlchemyError("disk full")
        return real_persist(db, user_id, draft)

    with patch("app.services.voice.persist_generated_recipe", side_effect=flaky):
        response = _post(client, userId=user.id, text="dinner ideas")

    assert response.status_code == 200
    assert len(response.json()["recipes"]) == 4
    assert db_session.query(Recipe).count() == 4


def test_zero_persisted_is_500(client, user, db_session):
    with patch("app.services.voice.persist_generated_recipe", side_effect=SQLAlchemyError("down")):
        response = _post(client, userId=user.id, text="dinner ideas")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to save any recipes"
    assert db_session.query(Recipe).count() == 0
