import io
import json
from types import SimpleNamespace

import pytest
from PIL import Image

from app import app as flask_app
from config import TestingConfig
from extensions import openai_client


class FakeResponses:
    """Stands in for `client.responses`; records every create() call."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.result, Exception):
            raise self.result
        return SimpleNamespace(output_text=self.result)


class FakeOpenAI:
    def __init__(self, result):
        self.responses = FakeResponses(result)


def create_test_image(format="PNG", size=(100, 100)):
    """Return in-memory image bytes."""
    img = Image.new('RGB', size, color='white')
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=format)
    return img_bytes.getvalue()


@pytest.fixture(scope='session')
def app():
    # Configure the app for testing
    flask_app.config.from_object(TestingConfig)
    openai_client.init_app(flask_app)

    with flask_app.app_context():
        yield flask_app


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture
def fake_openai(mocker):
    """
    Install a fake OpenAI client. Call with the model's output: a dict is
    sent as JSON text, a string as-is, an exception is raised from create().
    """
    def install(result):
        if isinstance(result, dict):
            result = json.dumps(result)
        fake = FakeOpenAI(result)
        mocker.patch.object(openai_client, 'get', return_value=fake)
        return fake
    return install


@pytest.fixture
def image_bytes():
    return create_test_image()


@pytest.fixture
def sample_receipt_output():
    return {
        'restaurantName': '  Diner  ',
        'currency': ' usd ',
        'taxCents': 105.9,
        'tipCents': 200.2,
        'items': [
            {'name': ' Burger ', 'quantity': 2.8, 'totalPriceCents': 1599.9},
            {'name': ' ', 'quantity': 1, 'totalPriceCents': 400},
        ],
    }
