"""
Rule Scorer — deterministic 0-50 sub-score of a lead against an offer.

Three additive factors, each capped on its own, evaluated in a fixed order:
role relevance (20), industry match (20), data completeness (10). Rationale
fragments carry their point delta and are joined with " | ".

Leads and offers are read through attributes, so ORM rows and LeadRecords
both work.
"""
import os
import logging
from typing import List, Tuple

import yaml

from leadscore.pipeline.base import ScoreOutcome

logger = logging.getLogger('pipeline.rules')

SEPARATOR = ' | '


# ── Scoring config (YAML with hardcoded fallback) ────────────────────────────

_scoring_config = None


def _default_config():
    """Hardcoded fallback if YAML is missing."""
    return {
        'version': 'default',
        'max_score': 50,
        'role': {
            'decision_maker': {'keywords': ['ceo', 'founder', 'owner'], 'points': 20},
            'influencer': {'keywords': ['manager', 'director', 'vp', 'head of'], 'points': 10},
        },
        'industry': {
            'exact_points': 20,
            'adjacent_points': 10,
            'adjacent_keywords': ['tech', 'saas', 'software', 'enterprise', 'startup', 'technology'],
        },
        'completeness': {
            'fields': ['name', 'email', 'role', 'company', 'industry'],
            'complete_points': 10,
            'partial_points': 5,
        },
    }


def load_scoring_config():
    """Load rule tables from YAML, cached per process."""
    global _scoring_config
    if _scoring_config is not None:
        return _scoring_config

    config_path = os.path.join(os.path.dirname(__file__), 'scoring_config.yaml')
    try:
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Rule config YAML unavailable (%s), using defaults", e)
        loaded = None
    else:
        if not isinstance(loaded, dict):
            logger.warning("Rule config YAML is not a mapping (%s), using defaults",
                           type(loaded).__name__)
            loaded = None

    if loaded is None:
        _scoring_config = _default_config()
    else:
        _scoring_config = loaded
        logger.info("Rule config loaded from YAML (version=%s)", loaded.get('version', '?'))

    return _scoring_config


# ── Factors ──────────────────────────────────────────────────────────────────

def _text(value) -> str:
    return (value or '').strip()


def score_role(role: str, cfg: dict) -> Tuple[int, str]:
    role = _text(role).lower()
    if not role:
        return 0, 'Role: Not provided (0)'

    decision = cfg['decision_maker']
    if any(k in role for k in decision['keywords']):
        return decision['points'], f"Role: Decision maker (+{decision['points']})"

    influencer = cfg['influencer']
    if any(k in role for k in influencer['keywords']):
        return influencer['points'], f"Role: Influencer (+{influencer['points']})"

    return 0, 'Role: No matching role (0)'


def score_industry(industry: str, use_cases: List[str], cfg: dict) -> Tuple[int, str]:
    industry = _text(industry).lower()
    cases = [_text(uc).lower() for uc in (use_cases or []) if _text(uc)]
    if not industry or not cases:
        return 0, 'Industry: Not provided or no ideal use cases defined (0)'

    if any(uc in industry or industry in uc for uc in cases):
        points = cfg['exact_points']
        return points, f'Industry: Exact ICP match (+{points})'

    keywords = cfg['adjacent_keywords']
    if any(k in industry or any(k in uc for uc in cases) for k in keywords):
        points = cfg['adjacent_points']
        return points, f'Industry: Adjacent industry match (+{points})'

    return 0, 'Industry: No match (0)'


def score_completeness(lead, cfg: dict) -> Tuple[int, str]:
    fields = cfg['fields']
    present = sum(1 for name in fields if _text(getattr(lead, name, '')))

    if present == len(fields):
        points = cfg['complete_points']
        return points, f'Data: Complete (+{points})'
    if present:
        points = cfg['partial_points']
        return points, f'Data: Partially complete ({present}/{len(fields)} fields, +{points})'
    return 0, 'Data: Incomplete (0)'


def score_rules(lead, offer) -> ScoreOutcome:
    """Rule-based sub-score (0-50) and rationale for one lead."""
    cfg = load_scoring_config()

    factors = [
        score_role(getattr(lead, 'role', ''), cfg['role']),
        score_industry(getattr(lead, 'industry', ''), getattr(offer, 'ideal_use_cases', None), cfg['industry']),
        score_completeness(lead, cfg['completeness']),
    ]

    total = min(sum(points for points, _ in factors), cfg.get('max_score', 50))
    return ScoreOutcome(
        score=max(total, 0),
        reason=SEPARATOR.join(reason for _, reason in factors),
    )
