"""
Errors raised while turning uploads into receipts and claim suggestions.

Each carries the HTTP status the API answers with.
"""


class ParseError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(ParseError):
    status_code = 400


class NoLineItemsError(ParseError):
    status_code = 422


class ModelOutputError(ParseError):
    status_code = 502


class MissingAPIKeyError(ParseError):
    status_code = 500
