import json
import logging
import mimetypes

from flask import Flask, request, jsonify
from pydantic import ValidationError

from config import Config
from extensions import openai_client
from errors import InvalidRequestError, ParseError
from models import ParsedReceipt
from bill_splitting_logic import BillSplitter, expand_items_to_units, split_cents_evenly
from currency import money_from_cents
from parse_model import extract_receipt_data, image_to_data_url
from chat_claims import extract_chat_claims
from report import build_html_report
from schemas import FollowUpAnswer, PrefillUnit


app = Flask(__name__)
app.config.from_object(Config)
app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

# Initialize extensions
openai_client.init_app(app)
app.add_template_filter(money_from_cents, 'money')


def _is_image(file) -> bool:
    mime_type, _ = mimetypes.guess_type(file.filename or '')
    mime_type = mime_type or file.mimetype or ''
    return mime_type.startswith('image/')


def _load_json_field(form, field_name, default=None):
    value = form.get(field_name)
    if value is None or value == '':
        if default is not None:
            return default
        raise InvalidRequestError(f"Missing {field_name}.")
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        raise InvalidRequestError(f"Invalid {field_name}.")


def _splitter_from_request(data) -> BillSplitter:
    splitter = BillSplitter()
    splitter.import_from_json(data)
    return splitter


# --------- Routes ---------

@app.route('/api/parse-receipt', methods=['POST'])
def parse_receipt():
    """Read line items, tax and tip from an uploaded receipt photo"""
    file = request.files.get('receipt')

    if file is None or file.filename == '':
        return jsonify({'error': 'Missing receipt image file.'}), 400

    if not _is_image(file):
        return jsonify({'error': 'File must be an image.'}), 400

    try:
        image_url = image_to_data_url(file.read(), app.config['MAX_IMAGE_DIMENSION'])
        receipt = extract_receipt_data(
            openai_client.get(),
            image_url,
            app.config['OPENAI_MODEL'],
            app.config['DEFAULT_CURRENCY']
        )

        return jsonify({
            'success': True,
            'receipt': receipt.to_dict(),
            'units': [unit.to_dict() for unit in expand_items_to_units(receipt)]
        }), 200

    except ParseError as e:
        app.logger.warning(f"Receipt parse failed: {e.message}")
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        app.logger.exception("Unexpected error while parsing receipt")
        return jsonify({'error': str(e) or 'Unknown error'}), 500


@app.route('/api/parse-chat-claims', methods=['POST'])
def parse_chat_claims():
    """Suggest item claims from group-chat screenshots"""
    try:
        people = _load_json_field(request.form, 'people')
        units = [PrefillUnit.model_validate(unit) for unit in _load_json_field(request.form, 'units')]
        extra_context = (request.form.get('extraContext') or '').strip()
        try:
            round_number = max(1, int(request.form.get('round', '1')))
        except ValueError:
            round_number = 1
        follow_up_answers = [
            FollowUpAnswer.model_validate(answer)
            for answer in _load_json_field(request.form, 'followUpAnswers', default=[])
        ]
        screenshots = [f for f in request.files.getlist('screenshots') if f.filename]

        if not people:
            return jsonify({'error': 'Add at least one person before parsing chat claims.'}), 400

        if not units:
            return jsonify({'error': 'Receipt units are missing.'}), 400

        if not screenshots:
            return jsonify({'error': 'Upload at least one screenshot.'}), 400

        if not all(_is_image(screenshot) for screenshot in screenshots):
            return jsonify({'error': 'All screenshots must be image files.'}), 400

        max_dimension = app.config['MAX_IMAGE_DIMENSION']
        screenshot_urls = [image_to_data_url(s.read(), max_dimension) for s in screenshots]

        prefill = extract_chat_claims(
            openai_client.get(),
            app.config['OPENAI_MODEL'],
            people,
            units,
            screenshot_urls,
            extra_context=extra_context,
            round_number=round_number,
            follow_up_answers=follow_up_answers,
            max_rounds=app.config['CHAT_CLAIMS_MAX_ROUNDS'],
            max_questions=app.config['CHAT_CLAIMS_MAX_QUESTIONS']
        )

        return jsonify({
            'success': True,
            'prefill': prefill.to_dict()
        }), 200

    except ParseError as e:
        app.logger.warning(f"Chat claims parse failed: {e.message}")
        return jsonify({'error': e.message}), e.status_code
    except ValidationError as e:
        return jsonify({'error': f'Invalid chat claims request: {e.error_count()} invalid field(s).'}), 400
    except Exception as e:
        app.logger.exception("Unexpected error while parsing chat claims")
        return jsonify({'error': str(e) or 'Unknown error while parsing chat claims.'}), 500


@app.route('/api/expand-units', methods=['POST'])
def expand_units():
    """Expand a receipt's rows into assignable units"""
    data = request.get_json(silent=True)

    if not data or not isinstance(data, dict):
        return jsonify({'error': 'Receipt data is required'}), 400

    try:
        receipt = ParsedReceipt.from_dict(data.get('receipt', data))
        units = expand_items_to_units(receipt)

        return jsonify({
            'success': True,
            'units': [unit.to_dict() for unit in units]
        }), 200

    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid receipt data: {str(e)}'}), 400
    except Exception as e:
        app.logger.exception("Unexpected error while expanding units")
        return jsonify({'error': str(e) or 'Unknown error'}), 500


@app.route('/api/split-bill', methods=['POST'])
def split_bill():
    """Split a bill among participants using the current assignments"""
    data = request.get_json(silent=True)

    if not data or not isinstance(data, dict):
        return jsonify({'error': 'Split data is required'}), 400

    if data.get('units') is None and not data.get('receipt'):
        return jsonify({'error': 'Receipt or units are required'}), 400

    try:
        splitter = _splitter_from_request(data)
        breakdown = splitter.calculate_split()

        return jsonify({
            'success': True,
            'split_result': breakdown.to_dict()
        }), 200

    except (KeyError, TypeError, ValueError) as e:
        return jsonify({
            'success': False,
            'error': f'Invalid split data: {str(e)}'
        }), 400
    except Exception as e:
        app.logger.exception("Unexpected error while splitting bill")
        return jsonify({'success': False, 'error': str(e) or 'Unknown error'}), 500


def _whole_cents(value):
    """Return `value` as int cents, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value)
    return None


@app.route('/api/split-evenly', methods=['POST'])
def split_evenly():
    """Even split of any cent amount between named people"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    total_cents = data.get('totalCents')
    people = data.get('people') or []

    if not isinstance(people, list) or not all(isinstance(name, str) for name in people):
        return jsonify({'error': 'People must be a list of names'}), 400

    people = list(dict.fromkeys(people))

    if total_cents is None or not people:
        return jsonify({'error': 'Total cents and people are required'}), 400

    total_cents = _whole_cents(total_cents)
    if total_cents is None:
        return jsonify({'error': 'Total cents must be a whole number'}), 400

    if total_cents < 0:
        return jsonify({'error': 'Total cents must not be negative'}), 400

    shares = split_cents_evenly(total_cents, people)
    return jsonify({
        'success': True,
        'split_result': [{'name': name, 'amountCents': amount} for name, amount in shares.items()]
    }), 200


@app.route('/api/report', methods=['POST'])
def report():
    """Printable HTML report for the current split"""
    data = request.get_json(silent=True)

    if not data or not isinstance(data, dict) or not data.get('receipt'):
        return jsonify({'error': 'Receipt data is required'}), 400

    try:
        splitter = _splitter_from_request(data)
        html = build_html_report(
            splitter.receipt,
            splitter.calculate_split(),
            tax_cents=splitter.tax_cents,
            tip_cents=splitter.tip_cents
        )
        return html, 200, {'Content-Type': 'text/html; charset=utf-8'}

    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid split data: {str(e)}'}), 400
    except Exception as e:
        app.logger.exception("Unexpected error while building report")
        return jsonify({'error': str(e) or 'Unknown error'}), 500


# Run the app
if __name__ == "__main__":
    app.run(debug=True, host='0.0.0.0', port=5000)
