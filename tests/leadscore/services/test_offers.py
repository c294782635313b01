"""Tests for leadscore.services.offers — validation and CRUD."""
import pytest

from leadscore.errors import OfferInUseError, OfferNotFoundError, ValidationError
from leadscore.models.lead import Lead
from leadscore.models.offer import Offer
from leadscore.pipeline.batch import process_batch
from leadscore.services.offers import (
    create_offer, delete_offer, get_offer, list_offers, serialize_offer,
    update_offer, validate_offer_payload,
)


def _payload(**overrides):
    payload = {
        'name': '  AI Outreach Automation ',
        'value_props': [' 24/7 outreach ', '6x more meetings'],
        'ideal_use_cases': ['B2B SaaS mid-market'],
    }
    payload.update(overrides)
    return payload


class TestValidateOfferPayload:

    def test_trims_values(self):
        cleaned = validate_offer_payload(_payload())
        assert cleaned == {
            'name': 'AI Outreach Automation',
            'value_props': ['24/7 outreach', '6x more meetings'],
            'ideal_use_cases': ['B2B SaaS mid-market'],
        }

    @pytest.mark.parametrize('name', ['ab', 'x' * 101, '', None, 5])
    def test_bad_name(self, name):
        with pytest.raises(ValidationError):
            validate_offer_payload(_payload(name=name))

    @pytest.mark.parametrize('items', [[], ['ok', '  '], 'not a list', None, [1]])
    def test_bad_lists(self, items):
        with pytest.raises(ValidationError):
            validate_offer_payload(_payload(ideal_use_cases=items))

    def test_lists_every_problem(self):
        with pytest.raises(ValidationError) as exc:
            validate_offer_payload({'name': 'x'})
        assert len(exc.value.details) == 3

    def test_partial_update_only_validates_present_fields(self):
        assert validate_offer_payload({'name': 'New name'}, partial=True) == {'name': 'New name'}

    def test_partial_update_requires_something(self):
        with pytest.raises(ValidationError):
            validate_offer_payload({}, partial=True)

    def test_non_dict_body(self):
        with pytest.raises(ValidationError):
            validate_offer_payload(None)


class TestOfferCrud:

    def test_create_and_get(self, db_session):
        offer = create_offer(db_session, _payload())
        assert get_offer(db_session, offer.id).name == 'AI Outreach Automation'

    def test_get_missing(self, db_session):
        with pytest.raises(OfferNotFoundError):
            get_offer(db_session, 42)

    def test_update_partial(self, db_session, make_offer):
        offer = make_offer()
        updated = update_offer(db_session, offer.id, {'ideal_use_cases': ['Fintech']})
        assert updated.ideal_use_cases == ['Fintech']
        assert updated.name == 'AI Outreach Automation'

    def test_list_includes_lead_count(self, db_session, make_offer, make_lead):
        offer = make_offer()
        make_lead(is_processed=True, score=50, score_reason='r', offer_id=offer.id)
        make_lead()
        (listed, count), = list_offers(db_session)
        assert listed.id == offer.id
        assert count == 1
        assert serialize_offer(listed, lead_count=count)['leadCount'] == 1

    def test_delete_unreferenced_offer(self, db_session, make_offer, make_lead):
        offer = make_offer()
        make_lead()

        delete_offer(db_session, offer.id)

        assert db_session.get(Offer, offer.id) is None
        assert db_session.query(Lead).count() == 1

    def test_delete_refused_after_scoring(self, db_session, make_offer, make_lead):
        offer = make_offer()
        lead = make_lead()
        process_batch(db_session, offer.id, 10, None)

        with pytest.raises(OfferInUseError) as exc:
            delete_offer(db_session, offer.id)

        assert exc.value.status_code == 409
        assert exc.value.lead_count == 1
        assert db_session.get(Offer, offer.id) is not None
        db_session.refresh(lead)
        assert lead.is_processed is True
        assert lead.offer_id == offer.id

    def test_delete_missing(self, db_session):
        with pytest.raises(OfferNotFoundError):
            delete_offer(db_session, 999)
