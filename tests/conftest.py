import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from character_forge import create_app
from character_forge.config import TestConfig
from character_forge.extensions import db


class DummyGenerator:
    """Stands in for the provider client and records every completion request."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.calls = []

    def complete(self, system_prompt, user_prompt, **kwargs):
        self.calls.append({"system": system_prompt, "user": user_prompt, "kwargs": kwargs})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def app_instance():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture
def fake_generator(monkeypatch):
    """Install a :class:`DummyGenerator`; set ``response`` or ``error`` per test."""

    from character_forge.services import character_generation

    generator = DummyGenerator()
    requested = []

    def factory(model, api_key):
        requested.append((model, api_key))
        return generator

    monkeypatch.setattr(character_generation, "_get_generator", factory)
    generator.requested = requested
    return generator
