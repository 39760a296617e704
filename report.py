from datetime import datetime
from typing import Optional

from flask import render_template

from models import ParsedReceipt, SplitBreakdown


def build_html_report(receipt: ParsedReceipt, breakdown: SplitBreakdown,
                      tax_cents: Optional[int] = None, tip_cents: Optional[int] = None,
                      generated_at: Optional[datetime] = None) -> str:
    """
    Render the printable split report. Tax and tip default to the receipt's.
    Needs an app context for the template lookup.
    """
    generated_at = generated_at or datetime.now()
    return render_template(
        'report.html',
        receipt=receipt,
        breakdown=breakdown,
        generated_at=generated_at.strftime('%Y-%m-%d %H:%M'),
        overall_subtotal=sum(unit.amount_cents for unit in breakdown.unit_allocations),
        tax_cents=receipt.tax_cents if tax_cents is None else tax_cents,
        tip_cents=receipt.tip_cents if tip_cents is None else tip_cents
    )
