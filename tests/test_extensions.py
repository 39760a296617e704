import pytest
from flask import Flask
from openai import OpenAI
from errors import MissingAPIKeyError
from extensions import OpenAIClient


def make_app(api_key):
    app = Flask(__name__)
    app.config['OPENAI_API_KEY'] = api_key
    return app


def test_get_raises_when_api_key_missing():
    client = OpenAIClient(make_app(None))

    with pytest.raises(MissingAPIKeyError, match='Missing OPENAI_API_KEY environment variable'):
        client.get()


def test_get_returns_same_client_instance():
    client = OpenAIClient(make_app('test-key'))

    first = client.get()
    second = client.get()

    assert isinstance(first, OpenAI)
    assert first is second


def test_init_app_registers_extension():
    app = make_app('test-key')
    client = OpenAIClient()
    client.init_app(app)

    assert app.extensions['openai_client'] is client
