from decimal import Decimal
import uuid

import pytest
from django.db import DatabaseError
from rest_framework.exceptions import NotAuthenticated

from api.exceptions import domain_exception_handler
from core.exceptions import InsufficientFunds
from ledger.services import add_funds
from missions.events.types import make_template
from missions.models import Mission
from missions.services import create_mission
from stock.models import InventoryRecord


def _unwrap_results(payload):
    if isinstance(payload, dict) and 'results' in payload:
        return payload['results']
    return payload


def _mission(owner, cost=50, title='Port congestion'):
    return create_mission(owner, make_template(title, 'desc', 'logistics', 24, cost, {'sales': -10}))


@pytest.mark.django_db
class TestAuthentication:
    @pytest.mark.parametrize('method,url', [
        ('get', '/api/v1/missions/'),
        ('post', '/api/v1/missions/generate/'),
        ('get', '/api/v1/budget/'),
        ('post', '/api/v1/budget/add-funds/'),
        ('get', '/api/v1/inventory/'),
        ('get', '/api/v1/metrics/'),
        ('get', '/api/v1/auth/me/'),
    ])
    def test_anonymous_requests_are_rejected(self, api_client, method, url):
        response = getattr(api_client, method)(url, {}, format='json')
        assert response.status_code == 401

    def test_anonymous_add_funds_has_no_side_effect(self, api_client, owner):
        api_client.post('/api/v1/budget/add-funds/', {'amount': '50'}, format='json')
        assert not owner.ledger_transactions.exists()

    def test_me(self, owner_client, owner):
        response = owner_client.get('/api/v1/auth/me/')
        assert response.status_code == 200
        assert response.data['email'] == owner.email
        assert response.data['business_name'] == 'Rao Gadgets'


@pytest.mark.django_db
class TestBudgetEndpoints:
    def test_add_funds_then_status(self, owner_client, owner):
        response = owner_client.post('/api/v1/budget/add-funds/', {'amount': '150.00'}, format='json')

        assert response.status_code == 200
        assert Decimal(str(response.data['new_balance'])) == Decimal('150.00')
        assert response.data['transaction']['transaction_type'] == 'deposit'

        status = owner_client.get('/api/v1/budget/')
        assert status.status_code == 200
        assert Decimal(status.data['total']) == Decimal('150.00')
        assert Decimal(status.data['available']) == Decimal('150.00')
        assert len(status.data['recent_transactions']) == 1
        assert 'no-store' in status['Cache-Control']

    def test_add_funds_rejects_zero(self, owner_client):
        response = owner_client.post('/api/v1/budget/add-funds/', {'amount': '0'}, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'validation_error'

    def test_allocate(self, owner_client, owner, product, second_product, foreign_product):
        add_funds(owner, Decimal('150'))

        response = owner_client.post('/api/v1/budget/allocate/', {'allocations': [
            {'product_id': str(product.pk), 'amount': '60'},
            {'product_id': str(second_product.pk), 'amount': '40'},
            {'product_id': str(foreign_product.pk), 'amount': '10'},
        ]}, format='json')

        assert response.status_code == 200
        assert Decimal(str(response.data['remaining_budget'])) == Decimal('50.00')
        assert len(response.data['applied_lines']) == 2

        status = owner_client.get('/api/v1/budget/')
        assert Decimal(status.data['allocated']) == Decimal('100.00')
        assert Decimal(status.data['available']) == Decimal('50.00')
        assert {a['product_name'] for a in status.data['allocations']} == {'Wireless Earbuds', 'Phone Stand'}

    def test_allocate_insufficient_funds(self, owner_client, owner, product):
        add_funds(owner, Decimal('10'))

        response = owner_client.post('/api/v1/budget/allocate/', {'allocations': [
            {'product_id': str(product.pk), 'amount': '60'},
        ]}, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'insufficient_funds'
        assert response.data['requested'] == '60.00'
        assert response.data['available'] == '10.00'

    def test_allocate_empty_batch(self, owner_client, funded_owner):
        response = owner_client.post('/api/v1/budget/allocate/', {'allocations': []}, format='json')
        assert response.status_code == 400

    def test_transactions_are_paginated_and_scoped(self, owner_client, owner, other_owner):
        add_funds(owner, Decimal('5'))
        add_funds(owner, Decimal('7'))
        add_funds(other_owner, Decimal('9'))

        response = owner_client.get('/api/v1/budget/transactions/')

        assert response.status_code == 200
        assert response.data['count'] == 2
        amounts = [Decimal(t['amount']) for t in response.data['results']]
        assert amounts == [Decimal('7.00'), Decimal('5.00')]


@pytest.mark.django_db
class TestMissionEndpoints:
    def test_list_is_owner_scoped(self, owner_client, owner, other_owner):
        mine = _mission(owner)
        _mission(other_owner)

        response = owner_client.get('/api/v1/missions/')

        assert response.status_code == 200
        assert [m['id'] for m in _unwrap_results(response.data)] == [str(mine.pk)]

    def test_list_rejects_unknown_status(self, owner_client):
        response = owner_client.get('/api/v1/missions/?status=archived')
        assert response.status_code == 400

    def test_retrieve_other_owners_mission(self, owner_client, other_owner):
        mission = _mission(other_owner)
        response = owner_client.get(f'/api/v1/missions/{mission.pk}/')
        assert response.status_code == 404

    def test_solve(self, owner_client, owner):
        add_funds(owner, Decimal('100'))
        mission = _mission(owner, cost=50)

        response = owner_client.post(f'/api/v1/missions/{mission.pk}/resolve/', {'action': 'solve'}, format='json')

        assert response.status_code == 200
        assert Decimal(str(response.data['new_balance'])) == Decimal('50.00')
        assert response.data['message'] == 'Mission completed successfully'
        assert response.data['mission']['status'] == 'completed'

    def test_solve_without_funds(self, owner_client, owner):
        add_funds(owner, Decimal('50'))
        mission = _mission(owner, cost=500)

        response = owner_client.post(f'/api/v1/missions/{mission.pk}/resolve/', {'action': 'solve'}, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'insufficient_funds'
        mission.refresh_from_db()
        assert mission.status == Mission.Status.ACTIVE

    def test_resolve_twice(self, owner_client, owner):
        mission = _mission(owner)
        owner_client.post(f'/api/v1/missions/{mission.pk}/resolve/', {'action': 'fail'}, format='json')

        response = owner_client.post(f'/api/v1/missions/{mission.pk}/resolve/', {'action': 'fail'}, format='json')

        assert response.status_code == 409
        assert response.data['code'] == 'conflict'

    def test_resolve_invalid_action(self, owner_client, owner):
        mission = _mission(owner)
        response = owner_client.post(f'/api/v1/missions/{mission.pk}/resolve/', {'action': 'ignore'}, format='json')
        assert response.status_code == 400

    def test_resolve_unknown_mission(self, owner_client):
        response = owner_client.post(f'/api/v1/missions/{uuid.uuid4()}/resolve/', {'action': 'fail'}, format='json')
        assert response.status_code == 404

    def test_generate(self, owner_client, owner, settings):
        settings.MISSIONS_PER_GENERATION = 2
        settings.SYNTHETIC_LABOUR_PROBABILITY = 0
        settings.SYNTHETIC_RESTRICTION_PROBABILITY = 0
        settings.FESTIVAL_LOOKAHEAD_DAYS = -1

        response = owner_client.post('/api/v1/missions/generate/', {'locations': ['Delhi']}, format='json')

        assert response.status_code == 201
        assert len(response.data['missions']) == 2
        assert Mission.objects.filter(owner=owner, status='active').count() == 2

    def test_create_single_mission(self, owner_client, owner):
        response = owner_client.post('/api/v1/missions/', {'auto_generate': False}, format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'active'
        assert Mission.objects.filter(owner=owner).count() == 1

    def test_candidates(self, owner_client, settings):
        settings.SYNTHETIC_LABOUR_PROBABILITY = 1
        settings.SYNTHETIC_RESTRICTION_PROBABILITY = 0
        settings.FESTIVAL_LOOKAHEAD_DAYS = -1

        response = owner_client.get('/api/v1/missions/candidates/?locations=Pune')

        assert response.status_code == 200
        assert [c['title'] for c in response.data['candidates']] == ['Labour Unavailability in Pune']
        assert not Mission.objects.exists()


@pytest.mark.django_db
class TestInventoryEndpoints:
    def test_restock(self, owner_client, funded_owner, product):
        response = owner_client.post('/api/v1/inventory/restock/', {
            'product_id': str(product.pk),
            'sku': 'EAR-BLK',
            'quantity': 4,
        }, format='json')

        assert response.status_code == 200
        assert Decimal(str(response.data['restock_cost'])) == Decimal('100.00')
        assert response.data['new_quantity'] == 4
        assert Decimal(str(response.data['new_balance'])) == Decimal('900.00')

        listing = owner_client.get('/api/v1/inventory/', {'product': str(product.pk)})
        records = _unwrap_results(listing.data)
        assert len(records) == 1
        assert records[0]['available_quantity'] == 4
        assert records[0]['needs_restock'] is True

    def test_restock_without_funds(self, owner_client, owner, product):
        response = owner_client.post('/api/v1/inventory/restock/', {
            'product_id': str(product.pk),
            'sku': 'EAR-BLK',
            'quantity': 4,
        }, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'insufficient_funds'
        assert not InventoryRecord.objects.exists()

    def test_restock_foreign_product(self, owner_client, funded_owner, foreign_product):
        response = owner_client.post('/api/v1/inventory/restock/', {
            'product_id': str(foreign_product.pk),
            'sku': 'YOGA',
            'quantity': 1,
        }, format='json')
        assert response.status_code == 404

    def test_configure(self, owner_client, owner, product):
        response = owner_client.post('/api/v1/inventory/configure/', {
            'product_id': str(product.pk),
            'sku': 'EAR-WHT',
            'reorder_point': 2,
            'reorder_quantity': 30,
        }, format='json')

        assert response.status_code == 200
        assert response.data['quantity'] == 0
        assert response.data['reorder_quantity'] == 30


@pytest.mark.django_db
class TestProductsAndMetrics:
    def test_products_are_owner_scoped(self, owner_client, product, foreign_product):
        response = owner_client.get('/api/v1/products/')
        assert [p['name'] for p in _unwrap_results(response.data)] == ['Wireless Earbuds']

    def test_create_product(self, owner_client, owner):
        response = owner_client.post('/api/v1/products/', {
            'name': 'Desk Lamp',
            'category': 'Home',
            'cost_price': '8.00',
            'selling_price': '20.00',
        }, format='json')

        assert response.status_code == 201
        assert owner.products.get().name == 'Desk Lamp'
        assert Decimal(response.data['margin']) == Decimal('12.00')

    def test_stocked_product_cannot_be_deleted(self, owner_client, funded_owner, product):
        owner_client.post('/api/v1/inventory/restock/', {
            'product_id': str(product.pk), 'sku': 'EAR-BLK', 'quantity': 1,
        }, format='json')

        response = owner_client.delete(f'/api/v1/products/{product.pk}/')

        assert response.status_code == 409

    def test_metrics_after_failed_mission(self, owner_client, owner):
        mission = create_mission(owner, make_template('Viral review', 'desc', 'reputation', 8, 150, {'reputation': -30}))
        owner_client.post(f'/api/v1/missions/{mission.pk}/resolve/', {'action': 'fail'}, format='json')

        response = owner_client.get('/api/v1/metrics/')

        assert response.status_code == 200
        assert response.data['informational'] == {'reputation': -30}
        assert response.data['financial_pressure'] == {}
        assert response.data['expenses'] == '0.00'


class TestExceptionHandler:
    def test_domain_error_payload(self):
        response = domain_exception_handler(
            InsufficientFunds(requested=Decimal('5.00'), available=Decimal('1.00')), {},
        )
        assert response.status_code == 400
        assert response.data['code'] == 'insufficient_funds'
        assert response.data['requested'] == '5.00'

    def test_database_error_is_a_generic_503(self):
        response = domain_exception_handler(DatabaseError('disk I/O error at /var/lib'), {'view': None})

        assert response.status_code == 503
        assert response.data['code'] == 'service_unavailable'
        assert 'disk' not in response.data['detail']

    def test_other_errors_use_drf_default(self):
        response = domain_exception_handler(NotAuthenticated(), {'view': None, 'request': None})
        assert response.status_code == 401
