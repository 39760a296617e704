import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-5-mini')

    # Uploads
    MAX_CONTENT_LENGTH = int(os.getenv('RECEIPT_SPLIT_MAX_UPLOAD_BYTES', str(20 * 1024 * 1024)))
    MAX_IMAGE_DIMENSION = int(os.getenv('RECEIPT_SPLIT_MAX_IMAGE_DIMENSION', '2048'))

    # Chat claim clarification rounds
    CHAT_CLAIMS_MAX_ROUNDS = int(os.getenv('CHAT_CLAIMS_MAX_ROUNDS', '2'))
    CHAT_CLAIMS_MAX_QUESTIONS = int(os.getenv('CHAT_CLAIMS_MAX_QUESTIONS', '3'))

    DEFAULT_CURRENCY = os.getenv('RECEIPT_SPLIT_DEFAULT_CURRENCY', 'USD')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    OPENAI_API_KEY = 'test-key'
    OPENAI_MODEL = 'test-model'
    LOG_LEVEL = 'DEBUG'
