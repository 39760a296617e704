import base64
import io
import json
import logging

from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from errors import InvalidRequestError, ModelOutputError, NoLineItemsError
from models import ParsedReceipt
from receipt_normalization import DEFAULT_CURRENCY, normalize_receipt
from schemas import RECEIPT_SCHEMA, RawReceipt

logger = logging.getLogger(__name__)

RECEIPT_SYSTEM_PROMPT = (
    "Extract restaurant receipt details for bill splitting. "
    "Return only valid JSON matching the schema. "
    "Leave discounts, payments and non-food fees out of the items. "
    "Include tax and tip when they are printed on the receipt, otherwise set them to 0."
)

RECEIPT_USER_PROMPT = (
    "Parse this receipt image. For every menu item give the name, the quantity "
    "and the total price of the row in cents."
)


def image_to_data_url(image_bytes: bytes, max_dimension: int = 2048) -> str:
    """
    Re-encode an uploaded image as a JPEG data URL small enough for the model.

    Raises InvalidRequestError when the bytes are not a readable image.
    """
    try:
        image = Image.open(io.BytesIO(image_bytes)).convert('RGB')
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidRequestError("File must be an image.") from e

    image.thumbnail((max_dimension, max_dimension))
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=90)
    encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
    return f'data:image/jpeg;base64,{encoded}'


def decode_model_output(output_text: str, model_cls, what: str):
    """Parse the model's JSON text into `model_cls`, or raise ModelOutputError"""
    if not output_text:
        raise ModelOutputError(f"Model did not return {what} output.")
    try:
        return model_cls.model_validate(json.loads(output_text))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("Model returned malformed %s output: %s", what, e)
        raise ModelOutputError(f"Model returned malformed {what} output.") from e


def extract_receipt_data(client, image_data_url: str, model: str,
                         default_currency: str = DEFAULT_CURRENCY) -> ParsedReceipt:
    """
    Ask the vision model to read a receipt image and return the normalized receipt.

    Raises ModelOutputError when the model gives back nothing usable and
    NoLineItemsError when no billable rows survive normalization.
    """
    logger.info("Parsing receipt image with model %s", model)
    response = client.responses.create(
        model=model,
        input=[
            {
                'role': 'system',
                'content': [{'type': 'input_text', 'text': RECEIPT_SYSTEM_PROMPT}],
            },
            {
                'role': 'user',
                'content': [
                    {'type': 'input_text', 'text': RECEIPT_USER_PROMPT},
                    {'type': 'input_image', 'image_url': image_data_url, 'detail': 'auto'},
                ],
            },
        ],
        text={
            'format': {
                'type': 'json_schema',
                'name': 'receipt_parse',
                'schema': RECEIPT_SCHEMA,
                'strict': True,
            }
        },
    )

    raw = decode_model_output(getattr(response, 'output_text', None), RawReceipt, 'parse')
    receipt = normalize_receipt(raw, default_currency)

    if not receipt.items:
        raise NoLineItemsError("No line items were detected. Try a clearer photo.")

    logger.info("Parsed %d receipt rows", len(receipt.items))
    return receipt
