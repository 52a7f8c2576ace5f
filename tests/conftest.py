"""Shared fixtures: temporary storage, settings and a fake AI provider."""

import pytest

from jobflow.config import Settings
from jobflow.services import AIService, AIServiceError, JsonStorage
from jobflow.web import create_app


class FakeAIService(AIService):
    """AIService whose provider calls are canned, recording every request."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.calls = []
        self.completion = "Generated text"
        self.structured = "{}"
        self.image = "aW1hZ2U="
        self.chat_reply = "Happy to help!"
        self.fail = False

    def _record(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.fail:
            raise AIServiceError(f"{name} failed")

    def generate_completion(self, prompt, system_prompt=None, model=None, temperature=None, max_tokens=None):
        self._record("completion", prompt=prompt, system_prompt=system_prompt)
        return self.completion

    def generate_structured(self, prompt, image_base64, mime_type, schema, model=None):
        self._record("structured", prompt=prompt, image=image_base64, mime_type=mime_type, schema=schema)
        return self.structured

    def generate_image(self, prompt, image_base64, mime_type="image/jpeg", model=None):
        self._record("image", prompt=prompt, image=image_base64, mime_type=mime_type)
        return self.image

    def chat_completion(self, messages, system_prompt=None, model=None):
        self._record("chat", messages=list(messages), system_prompt=system_prompt)
        return self.chat_reply


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "storage")


@pytest.fixture
def storage(settings):
    return JsonStorage(settings.data_dir)


@pytest.fixture
def fake_ai(settings):
    return FakeAIService(settings)


@pytest.fixture
def app(settings, fake_ai):
    app = create_app(settings, ai_service=fake_ai)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_services(app):
    return app.extensions["jobflow"]
