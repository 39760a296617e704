from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _require_mapping(data, what):
    if not isinstance(data, dict):
        raise TypeError(f'{what} must be an object')
    return data


@dataclass(frozen=True)
class ParsedReceiptItem:
    name: str
    quantity: int
    total_price_cents: int

    def to_dict(self):
        return {
            'name': self.name,
            'quantity': self.quantity,
            'totalPriceCents': self.total_price_cents
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParsedReceiptItem':
        _require_mapping(data, 'Receipt item')
        return cls(
            name=data.get('name', ''),
            quantity=data.get('quantity', 1),
            total_price_cents=int(data.get('totalPriceCents', 0) or 0)
        )


@dataclass(frozen=True)
class ParsedReceipt:
    currency: str
    items: List[ParsedReceiptItem] = field(default_factory=list)
    tax_cents: int = 0
    tip_cents: int = 0
    restaurant_name: Optional[str] = None

    def to_dict(self):
        """Convert receipt to dictionary for JSON response"""
        return {
            'restaurantName': self.restaurant_name,
            'currency': self.currency,
            'items': [item.to_dict() for item in self.items],
            'taxCents': self.tax_cents,
            'tipCents': self.tip_cents
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParsedReceipt':
        _require_mapping(data, 'Receipt')
        if not isinstance(data.get('items', []), list):
            raise TypeError('Receipt items must be a list')
        return cls(
            restaurant_name=data.get('restaurantName'),
            currency=data.get('currency', 'USD'),
            items=[ParsedReceiptItem.from_dict(item) for item in data.get('items', [])],
            tax_cents=int(data.get('taxCents', 0) or 0),
            tip_cents=int(data.get('tipCents', 0) or 0)
        )

    def __repr__(self):
        return f'<ParsedReceipt {self.restaurant_name or "?"} - {len(self.items)} items>'


@dataclass(frozen=True)
class AssignableUnit:
    """One indivisible share of a receipt row."""
    id: str
    label: str
    amount_cents: int
    source_item_name: str
    source_row_index: int
    unit_index: int

    def to_dict(self):
        return {
            'id': self.id,
            'label': self.label,
            'amountCents': self.amount_cents,
            'sourceItemName': self.source_item_name,
            'sourceRowIndex': self.source_row_index,
            'unitIndex': self.unit_index
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssignableUnit':
        _require_mapping(data, 'Unit')
        label = data.get('label', '')
        return cls(
            id=str(data['id']),
            label=label,
            amount_cents=int(data.get('amountCents', 0) or 0),
            source_item_name=data.get('sourceItemName', label),
            source_row_index=int(data.get('sourceRowIndex', 0)),
            unit_index=int(data.get('unitIndex', 0))
        )


@dataclass(frozen=True)
class NamedCents:
    name: str
    amount_cents: int

    def to_dict(self):
        return {'name': self.name, 'amountCents': self.amount_cents}


@dataclass(frozen=True)
class PersonTotal:
    name: str
    subtotal_cents: int
    tax_share_cents: int
    tip_share_cents: int
    total_cents: int

    def to_dict(self):
        return {
            'name': self.name,
            'subtotalCents': self.subtotal_cents,
            'taxShareCents': self.tax_share_cents,
            'tipShareCents': self.tip_share_cents,
            'totalCents': self.total_cents
        }


@dataclass(frozen=True)
class UnitAllocation:
    unit_id: str
    label: str
    amount_cents: int
    assigned_people: List[str] = field(default_factory=list)
    per_person_shares: List[NamedCents] = field(default_factory=list)

    @property
    def is_unassigned(self) -> bool:
        return not self.assigned_people

    def to_dict(self):
        return {
            'unitId': self.unit_id,
            'label': self.label,
            'amountCents': self.amount_cents,
            'assignedPeople': list(self.assigned_people),
            'perPersonShares': [share.to_dict() for share in self.per_person_shares],
            'unassigned': self.is_unassigned
        }


@dataclass(frozen=True)
class SplitBreakdown:
    person_totals: List[PersonTotal]
    unit_allocations: List[UnitAllocation]
    subtotal_shares: List[NamedCents]
    tax_shares: List[NamedCents]
    tip_shares: List[NamedCents]

    @property
    def unassigned_unit_ids(self) -> List[str]:
        return [unit.unit_id for unit in self.unit_allocations if unit.is_unassigned]

    def to_dict(self):
        """Convert breakdown to dictionary for JSON response"""
        return {
            'personTotals': [person.to_dict() for person in self.person_totals],
            'unitAllocations': [unit.to_dict() for unit in self.unit_allocations],
            'subtotalShares': [share.to_dict() for share in self.subtotal_shares],
            'taxShares': [share.to_dict() for share in self.tax_shares],
            'tipShares': [share.to_dict() for share in self.tip_shares],
            'unassignedUnitIds': self.unassigned_unit_ids
        }
