from receipt_normalization import normalize_receipt
from models import ParsedReceipt, ParsedReceiptItem
from schemas import RawReceipt


def test_normalize_trims_clamps_and_filters_rows():
    raw = RawReceipt.model_validate({
        'restaurantName': '  Tacos Place  ',
        'currency': ' usd ',
        'taxCents': 19.9,
        'tipCents': -7,
        'items': [
            {'name': ' Taco ', 'quantity': 2.8, 'totalPriceCents': 799.9},
            {'name': '   ', 'quantity': 2, 'totalPriceCents': 500},
            {'name': 'Water', 'quantity': 1, 'totalPriceCents': 0},
            {'name': 'Salsa', 'quantity': 0, 'totalPriceCents': 125},
        ],
    })

    assert normalize_receipt(raw) == ParsedReceipt(
        restaurant_name='Tacos Place',
        currency='USD',
        tax_cents=19,
        tip_cents=0,
        items=[
            ParsedReceiptItem('Taco', 2, 799),
            ParsedReceiptItem('Salsa', 1, 125),
        ]
    )


def test_normalize_defaults_missing_values():
    raw = RawReceipt.model_validate({
        'restaurantName': None,
        'currency': '',
        'taxCents': 0,
        'tipCents': 0,
        'items': [],
    })

    assert normalize_receipt(raw) == ParsedReceipt(
        restaurant_name=None,
        currency='USD',
        tax_cents=0,
        tip_cents=0,
        items=[]
    )


def test_normalize_blank_currency_uses_given_default():
    raw = RawReceipt.model_validate({'currency': '   ', 'items': [{'name': 'Tea', 'totalPriceCents': 300}]})
    receipt = normalize_receipt(raw, default_currency='EUR')

    assert receipt.currency == 'EUR'
    assert receipt.items == [ParsedReceiptItem('Tea', 1, 300)]
