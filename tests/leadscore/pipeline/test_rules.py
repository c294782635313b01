"""Tests for leadscore.pipeline.rules — deterministic rule sub-score."""
import pytest
from types import SimpleNamespace
from unittest.mock import mock_open, patch

from leadscore.pipeline.base import LeadRecord
from leadscore.pipeline.rules import (
    _default_config,
    load_scoring_config,
    score_completeness,
    score_industry,
    score_role,
    score_rules,
)


# ── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config_cache():
    """Reset the module-level config cache so each test starts clean."""
    import leadscore.pipeline.rules as mod
    mod._scoring_config = None
    yield
    mod._scoring_config = None


@pytest.fixture
def cfg():
    return _default_config()


def _offer(use_cases=('B2B SaaS mid-market',)):
    return SimpleNamespace(name='AI Outreach', value_props=['x'], ideal_use_cases=list(use_cases))


def _lead(**overrides):
    fields = dict(
        name='Ava Patel', email='ava@flowmetrics.com', role='CEO',
        industry='B2B SaaS', company='FlowMetrics',
    )
    fields.update(overrides)
    return LeadRecord(**fields)


# ── Config ───────────────────────────────────────────────────────────────────

class TestLoadScoringConfig:

    def test_yaml_matches_defaults(self):
        loaded = load_scoring_config()
        default = _default_config()
        for section in ('role', 'industry', 'completeness'):
            assert loaded[section] == default[section]
        assert loaded['max_score'] == 50

    def test_cached(self):
        assert load_scoring_config() is load_scoring_config()

    def test_missing_file_falls_back(self):
        with patch('builtins.open', side_effect=FileNotFoundError('gone')):
            cfg = load_scoring_config()
        assert cfg['version'] == 'default'

    @pytest.mark.parametrize('content', ['', '- just\n- a list\n', 'plain text'])
    def test_non_mapping_yaml_falls_back(self, content):
        with patch('builtins.open', mock_open(read_data=content)):
            cfg = load_scoring_config()
        assert cfg['version'] == 'default'
        assert score_rules(_lead(), _offer()).score == 50


# ── Factors ──────────────────────────────────────────────────────────────────

class TestScoreRole:

    @pytest.mark.parametrize('role', ['CEO', 'Co-Founder', 'Business Owner', 'ceo & chair'])
    def test_decision_maker(self, cfg, role):
        assert score_role(role, cfg['role']) == (20, 'Role: Decision maker (+20)')

    @pytest.mark.parametrize('role', ['Marketing Manager', 'Director of Ops', 'VP Sales', 'Head of Growth'])
    def test_influencer(self, cfg, role):
        assert score_role(role, cfg['role']) == (10, 'Role: Influencer (+10)')

    def test_no_match(self, cfg):
        assert score_role('Engineer', cfg['role']) == (0, 'Role: No matching role (0)')

    def test_not_provided(self, cfg):
        assert score_role('  ', cfg['role']) == (0, 'Role: Not provided (0)')


class TestScoreIndustry:

    def test_exact_match_industry_within_use_case(self, cfg):
        assert score_industry('SaaS', ['B2B SaaS mid-market'], cfg['industry']) == (
            20, 'Industry: Exact ICP match (+20)')

    def test_exact_match_use_case_within_industry(self, cfg):
        assert score_industry('Fintech Payments', ['fintech'], cfg['industry'])[0] == 20

    def test_adjacent_keyword_in_industry(self, cfg):
        assert score_industry('Enterprise Software', ['Healthcare'], cfg['industry']) == (
            10, 'Industry: Adjacent industry match (+10)')

    def test_adjacent_keyword_in_use_case(self, cfg):
        assert score_industry('Retail', ['tech startups'], cfg['industry'])[0] == 10

    def test_no_match(self, cfg):
        assert score_industry('Agriculture', ['Healthcare'], cfg['industry']) == (
            0, 'Industry: No match (0)')

    def test_missing_industry(self, cfg):
        assert score_industry('', ['SaaS'], cfg['industry']) == (
            0, 'Industry: Not provided or no ideal use cases defined (0)')

    def test_empty_use_cases(self, cfg):
        assert score_industry('SaaS', [], cfg['industry'])[0] == 0


class TestScoreCompleteness:

    def test_complete(self, cfg):
        assert score_completeness(_lead(), cfg['completeness']) == (10, 'Data: Complete (+10)')

    def test_partial(self, cfg):
        lead = _lead(company='', industry='')
        assert score_completeness(lead, cfg['completeness']) == (
            5, 'Data: Partially complete (3/5 fields, +5)')

    def test_incomplete(self, cfg):
        lead = SimpleNamespace(name='', email='', role='', company='', industry='')
        assert score_completeness(lead, cfg['completeness']) == (0, 'Data: Incomplete (0)')


# ── score_rules ──────────────────────────────────────────────────────────────

class TestScoreRules:

    def test_ceo_saas_lead_scores_fifty(self):
        outcome = score_rules(_lead(), _offer())
        assert outcome.score == 50
        assert outcome.reason == (
            'Role: Decision maker (+20) | Industry: Exact ICP match (+20) | Data: Complete (+10)'
        )

    def test_missing_company_and_industry(self):
        outcome = score_rules(_lead(role='Head of Growth', company='', industry=''), _offer())
        assert outcome.score == 15
        assert 'Data: Partially complete (3/5 fields, +5)' in outcome.reason

    def test_deterministic(self):
        lead, offer = _lead(role='VP Sales'), _offer()
        assert score_rules(lead, offer) == score_rules(lead, offer)

    def test_bounds(self):
        lead = SimpleNamespace(name='', email='', role='', company='', industry='')
        outcome = score_rules(lead, _offer(use_cases=()))
        assert outcome.score == 0
        assert outcome.reason.count(' | ') == 2

    def test_capped_at_max_score(self):
        cfg = _default_config()
        cfg['role']['decision_maker']['points'] = 40
        with patch('leadscore.pipeline.rules.load_scoring_config', return_value=cfg):
            assert score_rules(_lead(), _offer()).score == 50

    def test_works_with_orm_rows(self, make_lead, make_offer):
        outcome = score_rules(make_lead(role='Founder'), make_offer())
        assert outcome.score == 50
