import math
from dataclasses import replace
from typing import List, Dict, Any, Optional, Iterable

from models import (
    AssignableUnit,
    NamedCents,
    ParsedReceipt,
    PersonTotal,
    SplitBreakdown,
    UnitAllocation,
)


def _unit_count(quantity: Any) -> int:
    """Number of units a row expands into; anything that is not a finite positive number counts as 1."""
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        return 1
    if not math.isfinite(quantity) or quantity <= 0:
        return 1
    return max(1, math.floor(quantity))


def expand_items_to_units(receipt: ParsedReceipt) -> List[AssignableUnit]:
    """
    Expand every receipt row into `quantity` assignable units.

    The row total is divided with integer cents; the leftover cents go one each
    to the earliest units so a row's units always add back up to its total.
    """
    units = []

    for row_index, item in enumerate(receipt.items):
        quantity = _unit_count(item.quantity)
        base_amount = item.total_price_cents // quantity
        remainder = item.total_price_cents - base_amount * quantity

        for i in range(quantity):
            units.append(AssignableUnit(
                id=f'{row_index}-{i}',
                label=f'{item.name} ({i + 1}/{quantity})' if quantity > 1 else item.name,
                amount_cents=base_amount + (1 if i < remainder else 0),
                source_item_name=item.name,
                source_row_index=row_index,
                unit_index=i
            ))

    return units


def split_cents_evenly(total_cents: int, names: List[str]) -> Dict[str, int]:
    """
    Split `total_cents` across `names` (already de-duplicated).

    Names are sorted first; the first `total % n` of them get one extra cent.
    """
    sorted_names = sorted(names)
    base = total_cents // len(sorted_names)
    remainder = total_cents - base * len(sorted_names)

    return {
        name: base + (1 if i < remainder else 0)
        for i, name in enumerate(sorted_names)
    }


def apportion_by_weight(total_cents: int, weights: Dict[str, int]) -> Dict[str, int]:
    """
    Distribute `total_cents` in proportion to `weights` (largest remainder method).

    Shares are floored, then the leftover cents go to the largest fractional
    remainders, ties broken by name. When every weight is zero the total is
    split evenly instead.
    """
    entries = sorted(weights.items(), key=lambda entry: entry[0])
    total_weight = sum(weight for _, weight in entries)

    if total_cents <= 0 or not entries:
        return {name: 0 for name, _ in entries}

    if total_weight <= 0:
        equal = split_cents_evenly(total_cents, [name for name, _ in entries])
        return {name: equal.get(name, 0) for name, _ in entries}

    # Fractional parts share the denominator total_weight, so compare the integer numerators.
    shares = []
    for name, weight in entries:
        floor_share, remainder_weight = divmod(total_cents * weight, total_weight)
        shares.append((name, floor_share, remainder_weight))

    leftovers = total_cents - sum(floor_share for _, floor_share, _ in shares)

    result = {}
    ranked = sorted(shares, key=lambda share: (-share[2], share[0]))
    for i, (name, floor_share, _) in enumerate(ranked):
        result[name] = floor_share + (1 if i < leftovers else 0)

    return result


def _valid_assignees(assigned: Iterable[str], people: set) -> List[str]:
    seen = set()
    valid = []
    for name in assigned:
        if name in people and name not in seen:
            seen.add(name)
            valid.append(name)
    return valid


def calculate_split_breakdown(
    people: List[str],
    units: List[AssignableUnit],
    assignments: Dict[str, List[str]],
    tax_cents: int = 0,
    tip_cents: int = 0
) -> SplitBreakdown:
    """
    Compute what everyone owes for the given assignment state.

    Unknown or repeated names in `assignments` are ignored; units nobody is
    assigned to are reported with no shares and count toward no one.
    """
    subtotals = {name: 0 for name in people}
    known_people = set(people)
    sorted_people = sorted(subtotals)
    unit_allocations = []

    for unit in units:
        valid_people = _valid_assignees(assignments.get(unit.id) or [], known_people)
        if not valid_people:
            unit_allocations.append(UnitAllocation(
                unit_id=unit.id,
                label=unit.label,
                amount_cents=unit.amount_cents
            ))
            continue

        split = split_cents_evenly(unit.amount_cents, valid_people)
        per_person_shares = [NamedCents(name, amount) for name, amount in sorted(split.items())]

        for name, amount in split.items():
            subtotals[name] += amount

        unit_allocations.append(UnitAllocation(
            unit_id=unit.id,
            label=unit.label,
            amount_cents=unit.amount_cents,
            assigned_people=[share.name for share in per_person_shares],
            per_person_shares=per_person_shares
        ))

    tax_shares = apportion_by_weight(tax_cents, subtotals)
    tip_shares = apportion_by_weight(tip_cents, subtotals)

    person_totals = []
    for name in sorted_people:
        subtotal = subtotals[name]
        tax_share = tax_shares.get(name, 0)
        tip_share = tip_shares.get(name, 0)
        person_totals.append(PersonTotal(
            name=name,
            subtotal_cents=subtotal,
            tax_share_cents=tax_share,
            tip_share_cents=tip_share,
            total_cents=subtotal + tax_share + tip_share
        ))

    return SplitBreakdown(
        person_totals=person_totals,
        unit_allocations=unit_allocations,
        subtotal_shares=[NamedCents(name, subtotals[name]) for name in sorted_people],
        tax_shares=[NamedCents(name, tax_shares.get(name, 0)) for name in sorted_people],
        tip_shares=[NamedCents(name, tip_shares.get(name, 0)) for name in sorted_people]
    )


def calculate_totals(
    people: List[str],
    units: List[AssignableUnit],
    assignments: Dict[str, List[str]],
    tax_cents: int = 0,
    tip_cents: int = 0
) -> List[PersonTotal]:
    """Per-person totals only, sorted by name"""
    return calculate_split_breakdown(people, units, assignments, tax_cents, tip_cents).person_totals


class BillSplitter:
    """
    Interactive split session: people, the current receipt, its units and
    who shares each unit. Every edit leaves the session consistent; the
    numbers are recomputed from scratch by `calculate_split`.
    """

    def __init__(self):
        self.participants = []
        self.receipt = None
        self.units = []
        self.assignments = {}
        self.tax_cents = 0
        self.tip_cents = 0

    def add_participant(self, name: str) -> str:
        """Add a participant; names are trimmed and must be unique ignoring case"""
        trimmed = (name or '').strip()
        if not trimmed:
            raise ValueError("Participant name is required")
        if any(p.lower() == trimmed.lower() for p in self.participants):
            raise ValueError("Names must be unique (case-insensitive).")

        self.participants.append(trimmed)
        return trimmed

    def remove_participant(self, name: str):
        """Remove a participant and every assignment that mentions them"""
        self.participants = [p for p in self.participants if p != name]
        self.assignments = {
            unit_id: [n for n in names if n != name]
            for unit_id, names in self.assignments.items()
        }

    def load_receipt(self, receipt: ParsedReceipt):
        """Start over with a freshly parsed receipt"""
        self.receipt = receipt
        self.units = expand_items_to_units(receipt)
        self.assignments = {}
        self.tax_cents = receipt.tax_cents
        self.tip_cents = receipt.tip_cents

    def update_item(self, row_index: int, name: str = None, quantity: int = None,
                    total_price_cents: int = None):
        """
        Edit one receipt row. Units are regenerated for the whole receipt and
        assignments pointing at units that no longer exist are dropped.
        """
        if self.receipt is None or not 0 <= row_index < len(self.receipt.items):
            raise ValueError(f"Item row {row_index} not found")

        updates = {}
        if name is not None:
            updates['name'] = name
        if quantity is not None:
            updates['quantity'] = quantity
        if total_price_cents is not None:
            updates['total_price_cents'] = total_price_cents

        items = list(self.receipt.items)
        items[row_index] = replace(items[row_index], **updates)
        self.receipt = replace(self.receipt, items=items)
        self.units = expand_items_to_units(self.receipt)

        valid_unit_ids = {unit.id for unit in self.units}
        self.assignments = {
            unit_id: names
            for unit_id, names in self.assignments.items()
            if unit_id in valid_unit_ids
        }

    def toggle_assignment(self, unit_id: str, name: str):
        selected = self.assignments.get(unit_id, [])
        if name in selected:
            self.assignments[unit_id] = [n for n in selected if n != name]
        else:
            self.assignments[unit_id] = selected + [name]

    def assign_everyone(self, unit_id: str):
        self.assignments[unit_id] = list(self.participants)

    def clear_unit(self, unit_id: str):
        self.assignments[unit_id] = []

    def assign_all_units_to(self, name: str):
        """Add `name` to every unit they are not already on"""
        for unit in self.units:
            selected = self.assignments.get(unit.id, [])
            if name not in selected:
                self.assignments[unit.id] = selected + [name]

    def clear_person(self, name: str):
        for unit in self.units:
            self.assignments[unit.id] = [n for n in self.assignments.get(unit.id, []) if n != name]

    def set_tax_and_tip(self, tax_cents: int = 0, tip_cents: int = 0):
        """Set tax and tip in cents"""
        self.tax_cents = max(0, int(tax_cents or 0))
        self.tip_cents = max(0, int(tip_cents or 0))

    def apply_claim_suggestions(self, prefill, kept_confidence_levels: Optional[Iterable[str]] = None) -> int:
        """
        Copy AI claim suggestions into the assignment map.

        Only `suggested` assignments for known units and people, at a kept
        confidence level, are used. Each touched unit's list is replaced by the
        suggested people. Returns how many person/unit pairs were applied.
        """
        kept = set(kept_confidence_levels) if kept_confidence_levels is not None else {'high', 'medium', 'low'}
        valid_unit_ids = {unit.id for unit in self.units}
        valid_people = set(self.participants)

        people_by_unit = {}
        for suggestion in prefill.suggestions:
            if suggestion.unit_id not in valid_unit_ids:
                continue
            for assignment in suggestion.assignments:
                if (assignment.status != 'suggested' or assignment.person not in valid_people
                        or assignment.confidence not in kept):
                    continue
                names = people_by_unit.setdefault(suggestion.unit_id, [])
                if assignment.person not in names:
                    names.append(assignment.person)

        applied = 0
        for unit_id, names in people_by_unit.items():
            self.assignments[unit_id] = names
            applied += len(names)
        return applied

    @property
    def overall_subtotal_cents(self) -> int:
        return sum(unit.amount_cents for unit in self.units)

    def calculate_split(self) -> SplitBreakdown:
        """Calculate the final bill split"""
        return calculate_split_breakdown(
            self.participants,
            self.units,
            self.assignments,
            self.tax_cents,
            self.tip_cents
        )

    def export_to_json(self) -> Dict[str, Any]:
        """Export the current bill split state to JSON"""
        return {
            'people': list(self.participants),
            'receipt': self.receipt.to_dict() if self.receipt else None,
            'units': [unit.to_dict() for unit in self.units],
            'assignments': {unit_id: list(names) for unit_id, names in self.assignments.items()},
            'taxCents': self.tax_cents,
            'tipCents': self.tip_cents,
            'calculation': self.calculate_split().to_dict()
        }

    def import_from_json(self, data: Dict[str, Any]):
        """Import bill split state from JSON"""
        if not isinstance(data, dict):
            raise TypeError('Split data must be an object')
        people = data.get('people') or []
        if not isinstance(people, list) or not all(isinstance(name, str) for name in people):
            raise TypeError('People must be a list of names')
        assignments = data.get('assignments') or {}
        if not isinstance(assignments, dict):
            raise TypeError('Assignments must map unit ids to names')
        units = data.get('units')
        if units is not None and not isinstance(units, list):
            raise TypeError('Units must be a list')

        self.participants = list(people)
        receipt = data.get('receipt')
        self.receipt = ParsedReceipt.from_dict(receipt) if receipt else None
        if units is not None:
            self.units = [AssignableUnit.from_dict(unit) for unit in units]
        else:
            self.units = expand_items_to_units(self.receipt) if self.receipt else []
        self.assignments = {}
        for unit_id, names in assignments.items():
            if names and not isinstance(names, list):
                raise TypeError(f'Assignees for unit {unit_id} must be a list')
            self.assignments[unit_id] = list(names or [])

        default_tax = self.receipt.tax_cents if self.receipt else 0
        default_tip = self.receipt.tip_cents if self.receipt else 0
        tax_cents = data.get('taxCents')
        tip_cents = data.get('tipCents')
        self.set_tax_and_tip(
            default_tax if tax_cents is None else tax_cents,
            default_tip if tip_cents is None else tip_cents
        )
