from openai import OpenAI

from errors import MissingAPIKeyError


class OpenAIClient:
    """Builds one OpenAI client per process from the app config, on first use."""

    def __init__(self, app=None):
        self.api_key = None
        self._client = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.api_key = app.config.get('OPENAI_API_KEY')
        self._client = None
        app.extensions['openai_client'] = self

    def get(self) -> OpenAI:
        if not self.api_key:
            raise MissingAPIKeyError("Missing OPENAI_API_KEY environment variable.")
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client


openai_client = OpenAIClient()
