"""Tests for leadscore.services.summary — aggregate statistics."""
from datetime import datetime, timedelta, timezone

from leadscore.services.summary import get_scoring_summary


def _processed(make_lead, offer, score, minutes):
    return make_lead(
        is_processed=True,
        score=score,
        score_reason='r',
        offer_id=offer.id,
        processed_at=datetime(2026, 2, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


class TestScoringSummary:

    def test_empty(self, db_session):
        summary = get_scoring_summary(db_session)
        assert summary['totals'] == {'all': 0, 'processed': 0, 'unprocessed': 0, 'processedPercentage': 0}
        assert summary['scores']['average'] == 0
        assert summary['scores']['high'] == {'count': 0, 'percentage': 0}
        assert summary['recentLeads'] == []

    def test_buckets_and_average(self, db_session, make_lead, make_offer):
        offer = make_offer()
        _processed(make_lead, offer, 80, 1)
        _processed(make_lead, offer, 45, 2)
        _processed(make_lead, offer, 20, 3)

        scores = get_scoring_summary(db_session)['scores']
        assert scores['high'] == {'count': 1, 'percentage': 33}
        assert scores['medium'] == {'count': 1, 'percentage': 33}
        assert scores['low'] == {'count': 1, 'percentage': 33}
        assert scores['average'] == 48.33

    def test_bucket_boundaries(self, db_session, make_lead, make_offer):
        offer = make_offer()
        _processed(make_lead, offer, 70, 1)
        _processed(make_lead, offer, 40, 2)
        _processed(make_lead, offer, 39, 3)
        _processed(make_lead, offer, 69, 4)

        scores = get_scoring_summary(db_session)['scores']
        assert scores['high']['count'] == 1
        assert scores['medium']['count'] == 2
        assert scores['low']['count'] == 1

    def test_totals_count_unprocessed(self, db_session, make_lead, make_offer):
        offer = make_offer()
        _processed(make_lead, offer, 50, 1)
        make_lead()
        make_lead()

        totals = get_scoring_summary(db_session)['totals']
        assert totals == {'all': 3, 'processed': 1, 'unprocessed': 2, 'processedPercentage': 33}

    def test_percentages_round_half_up(self, db_session, make_lead, make_offer):
        offer = make_offer()
        for i in range(7):
            _processed(make_lead, offer, 80 if i < 1 else 10, i)
        make_lead()
        # processed 7 of 8 → 87.5 → 88; high 1 of 7 → 14.29 → 14
        summary = get_scoring_summary(db_session)
        assert summary['totals']['processedPercentage'] == 88
        assert summary['scores']['high']['percentage'] == 14

    def test_recent_leads_newest_first_capped(self, db_session, make_lead, make_offer):
        offer = make_offer()
        leads = [_processed(make_lead, offer, 50, i) for i in range(7)]

        recent = get_scoring_summary(db_session)['recentLeads']
        assert [r['id'] for r in recent] == [l.id for l in reversed(leads)][:5]
        assert set(recent[0]) == {'id', 'name', 'email', 'company', 'role', 'score', 'processed_at'}
