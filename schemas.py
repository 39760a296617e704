"""
Shapes of the JSON the vision model returns, plus the strict JSON schemas
sent along with each request so the model answers in that shape.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class RawReceiptItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ''
    quantity: Optional[float] = 1
    total_price_cents: Optional[float] = Field(default=0, alias='totalPriceCents')


class RawReceipt(BaseModel):
    """Receipt exactly as the model returned it; see receipt_normalization"""
    model_config = ConfigDict(populate_by_name=True)

    restaurant_name: Optional[str] = Field(default=None, alias='restaurantName')
    currency: Optional[str] = None
    items: List[RawReceiptItem] = Field(default_factory=list)
    tax_cents: Optional[float] = Field(default=0, alias='taxCents')
    tip_cents: Optional[float] = Field(default=0, alias='tipCents')


Confidence = Literal['high', 'medium', 'low']
AssignmentStatus = Literal['suggested', 'missing_context']


class ClaimAssignment(BaseModel):
    person: Optional[str] = None
    confidence: Confidence
    status: AssignmentStatus
    reason: str


class ClaimSuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unit_id: str = Field(alias='unitId')
    assignments: List[ClaimAssignment] = Field(default_factory=list)
    reason: str = ''


class FollowUpQuestion(BaseModel):
    id: str
    question: str
    why: str


class FollowUpAnswer(BaseModel):
    id: str
    question: str
    answer: str


class PrefillUnit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    amount_cents: int = Field(alias='amountCents')


class ModelChatClaims(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    suggestions: List[ClaimSuggestion] = Field(default_factory=list)
    unmatched_notes: List[str] = Field(default_factory=list, alias='unmatchedNotes')
    follow_up_questions: List[FollowUpQuestion] = Field(default_factory=list, alias='followUpQuestions')


class ChatClaimsPrefill(ModelChatClaims):
    is_complete: bool = Field(alias='isComplete')
    stop_reason: str = Field(alias='stopReason')
    round: int
    max_rounds: int = Field(alias='maxRounds')

    def to_dict(self):
        return self.model_dump(by_alias=True)


RECEIPT_SCHEMA = {
    'type': 'object',
    'additionalProperties': False,
    'required': ['restaurantName', 'currency', 'items', 'taxCents', 'tipCents'],
    'properties': {
        'restaurantName': {'type': ['string', 'null']},
        'currency': {'type': 'string'},
        'taxCents': {'type': 'integer', 'minimum': 0},
        'tipCents': {'type': 'integer', 'minimum': 0},
        'items': {
            'type': 'array',
            'items': {
                'type': 'object',
                'additionalProperties': False,
                'required': ['name', 'quantity', 'totalPriceCents'],
                'properties': {
                    'name': {'type': 'string'},
                    'quantity': {'type': 'integer', 'minimum': 1},
                    'totalPriceCents': {'type': 'integer', 'minimum': 0},
                },
            },
        },
    },
}


def chat_claims_schema(max_questions: int):
    return {
        'type': 'object',
        'additionalProperties': False,
        'required': ['suggestions', 'unmatchedNotes', 'followUpQuestions'],
        'properties': {
            'suggestions': {
                'type': 'array',
                'items': {
                    'type': 'object',
                    'additionalProperties': False,
                    'required': ['unitId', 'assignments', 'reason'],
                    'properties': {
                        'unitId': {'type': 'string'},
                        'assignments': {
                            'type': 'array',
                            'items': {
                                'type': 'object',
                                'additionalProperties': False,
                                'required': ['person', 'confidence', 'status', 'reason'],
                                'properties': {
                                    'person': {'type': ['string', 'null']},
                                    'confidence': {'type': 'string', 'enum': ['high', 'medium', 'low']},
                                    'status': {'type': 'string', 'enum': ['suggested', 'missing_context']},
                                    'reason': {'type': 'string'},
                                },
                            },
                        },
                        'reason': {'type': 'string'},
                    },
                },
            },
            'unmatchedNotes': {'type': 'array', 'items': {'type': 'string'}},
            'followUpQuestions': {
                'type': 'array',
                'maxItems': max_questions,
                'items': {
                    'type': 'object',
                    'additionalProperties': False,
                    'required': ['id', 'question', 'why'],
                    'properties': {
                        'id': {'type': 'string'},
                        'question': {'type': 'string'},
                        'why': {'type': 'string'},
                    },
                },
            },
        },
    }
