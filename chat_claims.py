import json
import logging
from typing import List, Optional

from parse_model import decode_model_output
from schemas import (
    ChatClaimsPrefill,
    ClaimAssignment,
    ClaimSuggestion,
    FollowUpAnswer,
    FollowUpQuestion,
    ModelChatClaims,
    PrefillUnit,
    chat_claims_schema,
)

logger = logging.getLogger(__name__)

CHAT_CLAIMS_SYSTEM_PROMPT = " ".join([
    "You extract restaurant item claims from group-chat screenshots.",
    "Return only JSON matching the schema.",
    "Prefer assignment quality over coverage: include only explicit or strongly implied claims.",
    "Never invent people or items that are not in the provided lists.",
])


def build_chat_claims_prompt(people: List[str], units: List[PrefillUnit], extra_context: str = '',
                             round_number: int = 1, follow_up_answers: Optional[List[FollowUpAnswer]] = None,
                             max_rounds: int = 2, max_questions: int = 3) -> str:
    follow_up_answers = follow_up_answers or []
    lines = [
        "Use only the provided people and units.",
        "Interpret common phrasing for claims and sharing:",
        "- 'I got X' => assign X to the message sender.",
        "- 'Person got X' => assign X to that named person.",
        "- 'split/shared X with Person' or 'Person and I got X' => assign X to every named participant, "
        "including the sender when implied.",
        "- Treat sides, drinks and desserts as separate claims when clearly stated.",
        "Resolve light wording variation and aliases (abbreviations, singular/plural, reordered words, "
        "nearby menu wording).",
        "If a claimed item is missing from the receipt units, do not force a match; add a short unmatchedNotes entry.",
        "Ignore chatter that is not an item claim, such as reminders about tip or payment.",
        "Confidence rubric:",
        "- high: explicit person-to-item claim with a clear unit match.",
        "- medium: likely match with minor wording ambiguity.",
        "- low: only weakly implied; use sparingly.",
        "Reason field rules:",
        "- brief, factual mapping summary.",
        "- no private or sensitive commentary.",
        "If uncertain, skip that unit and add a brief note in unmatchedNotes.",
        "Give confidence per person-unit assignment, not per unit row.",
        "Use assignment status 'missing_context' when identity or context is missing.",
        f"You may ask up to {max_questions} follow-up questions in followUpQuestions.",
        "Each question should unlock several unresolved assignments when possible.",
        "Ask follow-up questions only when the answers would materially improve assignments.",
        "If no high-value follow-up questions remain, return an empty followUpQuestions list.",
        f"Current clarification round: {round_number} of {max_rounds}.",
    ]
    if round_number >= max_rounds:
        lines.append("Do not ask follow-up questions in this round. Leave followUpQuestions empty.")
    if extra_context:
        lines.append(f"Additional user context (treat as authoritative when mapping names/aliases): {extra_context}")
    if follow_up_answers:
        answers = json.dumps([answer.model_dump() for answer in follow_up_answers])
        lines.append(f"Resolved follow-up answers (treat as authoritative): {answers}")
    lines.append(f"People: {json.dumps(people)}")
    lines.append(f"Units: {json.dumps([unit.model_dump(by_alias=True) for unit in units])}")
    return "\n".join(lines)


def normalize_assignments(assignments: List[ClaimAssignment], valid_people: set) -> List[ClaimAssignment]:
    seen = set()
    normalized = []

    for assignment in assignments:
        reason = assignment.reason.strip()
        if not reason:
            continue

        person = assignment.person.strip() if isinstance(assignment.person, str) else None
        if assignment.status == 'suggested':
            if not person or person not in valid_people:
                continue
        elif person and person not in valid_people:
            continue

        dedupe_key = (assignment.status, person or 'unknown', reason.lower())
        if dedupe_key in seen:
            continue
        seen.add(dedupe_key)
        normalized.append(assignment.model_copy(update={'person': person, 'reason': reason}))

    return normalized


def normalize_suggestions(suggestions: List[ClaimSuggestion], valid_unit_ids: set,
                          valid_people: set) -> List[ClaimSuggestion]:
    normalized = []
    for suggestion in suggestions:
        if suggestion.unit_id not in valid_unit_ids:
            continue
        assignments = normalize_assignments(suggestion.assignments, valid_people)
        reason = suggestion.reason.strip()
        if assignments and reason:
            normalized.append(suggestion.model_copy(update={'assignments': assignments, 'reason': reason}))
    return normalized


def _normalize_questions(questions: List[FollowUpQuestion], max_questions: int) -> List[FollowUpQuestion]:
    cleaned = []
    for entry in questions:
        question = FollowUpQuestion(id=entry.id.strip(), question=entry.question.strip(), why=entry.why.strip())
        if question.id and question.question and question.why:
            cleaned.append(question)
    return cleaned[:max_questions]


def extract_chat_claims(client, model: str, people: List[str], units: List[PrefillUnit],
                        screenshot_urls: List[str], extra_context: str = '', round_number: int = 1,
                        follow_up_answers: Optional[List[FollowUpAnswer]] = None,
                        max_rounds: int = 2, max_questions: int = 3) -> ChatClaimsPrefill:
    """
    Suggest who claimed which receipt unit from group-chat screenshots.

    The model may ask follow-up questions; they are dropped once the round
    limit is reached. Suggestions naming unknown units or people are removed.
    """
    logger.info("Parsing %d chat screenshots with model %s (round %d of %d)",
                len(screenshot_urls), model, round_number, max_rounds)
    prompt = build_chat_claims_prompt(people, units, extra_context, round_number,
                                      follow_up_answers, max_rounds, max_questions)
    image_content = [
        {'type': 'input_image', 'image_url': url, 'detail': 'auto'}
        for url in screenshot_urls
    ]

    response = client.responses.create(
        model=model,
        input=[
            {
                'role': 'system',
                'content': [{'type': 'input_text', 'text': CHAT_CLAIMS_SYSTEM_PROMPT}],
            },
            {
                'role': 'user',
                'content': [{'type': 'input_text', 'text': prompt}] + image_content,
            },
        ],
        text={
            'format': {
                'type': 'json_schema',
                'name': 'chat_claims_prefill',
                'schema': chat_claims_schema(max_questions),
                'strict': True,
            }
        },
    )

    parsed = decode_model_output(getattr(response, 'output_text', None), ModelChatClaims, 'chat claims')

    at_round_limit = round_number >= max_rounds
    follow_up_questions = [] if at_round_limit else _normalize_questions(parsed.follow_up_questions, max_questions)

    if at_round_limit:
        stop_reason = "Reached the follow-up question round limit."
    elif not follow_up_questions:
        stop_reason = "No additional clarifications needed."
    else:
        stop_reason = "Waiting for follow-up answers."

    suggestions = normalize_suggestions(parsed.suggestions, {unit.id for unit in units}, set(people))
    logger.info("Model suggested claims for %d units", len(suggestions))

    return ChatClaimsPrefill(
        suggestions=suggestions,
        unmatched_notes=[note.strip() for note in parsed.unmatched_notes if note.strip()],
        follow_up_questions=follow_up_questions,
        is_complete=not follow_up_questions or at_round_limit,
        stop_reason=stop_reason,
        round=round_number,
        max_rounds=max_rounds
    )
