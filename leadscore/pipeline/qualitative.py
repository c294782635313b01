"""
Qualitative Scorer — asks the classifier oracle for a High/Medium/Low
buying-intent verdict and maps it to a 0-50 sub-score.

One oracle call per lead, no retry here. Any failure (no client configured,
network error, timeout, quota, empty answer) becomes a fixed
fallback outcome so a single bad call never stops a batch.
"""
import logging

from leadscore.config import OPENAI_MODEL, CLASSIFIER_MAX_TOKENS
from leadscore.errors import ExternalServiceError
from leadscore.pipeline.base import ScoreOutcome
from leadscore.services.circuit_breaker import get_breaker

logger = logging.getLogger('pipeline.qualitative')

HIGH_SCORE = 50
MEDIUM_SCORE = 30
LOW_SCORE = 10

REASON_PREFIX = 'AI Analysis: '
FALLBACK_OUTCOME = ScoreOutcome(score=LOW_SCORE, reason='AI analysis unavailable. Default score assigned.')


def _or_na(value) -> str:
    value = (value or '').strip()
    return value or 'N/A'


def build_prompt(lead, offer) -> str:
    """Fixed-structure prompt embedding the lead profile and the offer."""
    value_props = ', '.join(getattr(offer, 'value_props', None) or [])
    use_cases = ', '.join(getattr(offer, 'ideal_use_cases', None) or [])
    return '\n'.join([
        'Given the following lead and offer details, analyze the potential buying intent '
        'and provide a score (High/Medium/Low) with a brief explanation (1-2 sentences).',
        '',
        'Lead:',
        f'- Name: {_or_na(lead.name)}',
        f'- Role: {_or_na(lead.role)}',
        f'- Company: {_or_na(lead.company)}',
        f'- Industry: {_or_na(lead.industry)}',
        f'- LinkedIn: {_or_na(lead.linkedin)}',
        '',
        'Offer:',
        f'- Name: {offer.name}',
        f'- Value Propositions: {value_props}',
        f'- Ideal Use Cases: {use_cases}',
        '',
        'Analysis (be concise):',
    ])


def classify_intent(text: str) -> int:
    """Map free text to a sub-score: "high" beats "medium" beats everything else."""
    lowered = (text or '').lower()
    if 'high' in lowered:
        return HIGH_SCORE
    if 'medium' in lowered:
        return MEDIUM_SCORE
    return LOW_SCORE


def _ask_classifier(client, prompt: str) -> str:
    """One chat completion; the classifier breaker records the outcome."""
    if client is None:
        raise ExternalServiceError('Classifier client is not configured')

    try:
        response = get_breaker('classifier').call(
            client.chat.completions.create,
            model=OPENAI_MODEL,
            messages=[{'role': 'user', 'content': prompt}],
            max_tokens=CLASSIFIER_MAX_TOKENS,
            temperature=0.0,
        )
    except Exception as e:
        raise ExternalServiceError(f'Classifier call failed: {e}') from e

    try:
        text = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise ExternalServiceError('Classifier returned a malformed response') from e

    if not isinstance(text, str) or not text.strip():
        raise ExternalServiceError('Classifier returned an empty response')
    return text.strip()


def assess_lead(lead, offer, client) -> ScoreOutcome:
    """Qualitative sub-score (10, 30 or 50) for one lead; never raises."""
    try:
        text = _ask_classifier(client, build_prompt(lead, offer))
    except ExternalServiceError as e:
        logger.warning("Qualitative assessment fell back to default: %s", e,
                       extra={'lead_id': getattr(lead, 'id', None)})
        return FALLBACK_OUTCOME

    return ScoreOutcome(score=classify_intent(text), reason=f'{REASON_PREFIX}{text}')
