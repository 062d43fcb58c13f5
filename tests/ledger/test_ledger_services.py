from decimal import Decimal
import uuid

import pytest
from django.db import IntegrityError, transaction

from core.exceptions import InsufficientFunds, ValidationFailed
from core.models import AuditLog
from ledger.models import LedgerTransaction, ProductAllocation, Wallet
from ledger.services import (
    add_funds,
    allocate_budget,
    credit,
    debit,
    get_budget_status,
    get_or_create_wallet,
    record_allocation_usage,
    replay_balance,
)


@pytest.mark.django_db
class TestWallet:
    def test_wallet_starts_empty(self, owner):
        wallet = get_or_create_wallet(owner)
        assert wallet.balance == Decimal('0.00')
        assert get_or_create_wallet(owner).pk == wallet.pk

    def test_add_funds_records_one_deposit(self, owner):
        add_funds(owner, Decimal('100'))

        entry = add_funds(owner, Decimal('50'))

        wallet = Wallet.objects.get(owner=owner)
        assert wallet.balance == Decimal('150.00')
        assert entry.transaction_type == LedgerTransaction.TransactionType.DEPOSIT
        assert entry.amount == Decimal('50.00')
        assert entry.balance_after == Decimal('150.00')
        assert entry.metadata == {'source': 'add_funds'}
        assert LedgerTransaction.objects.filter(owner=owner).count() == 2

    @pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-5'), 'abc', None])
    def test_add_funds_rejects_non_positive_amounts(self, owner, amount):
        with pytest.raises(ValidationFailed):
            add_funds(owner, amount)
        assert not LedgerTransaction.objects.filter(owner=owner).exists()

    def test_debit_writes_spend_entry(self, funded_owner):
        entry = debit(funded_owner, Decimal('40'), 'Test spend', {'ref': 'X-1'})

        assert entry.transaction_type == LedgerTransaction.TransactionType.SPEND
        assert entry.balance_after == Decimal('960.00')
        assert entry.signed_amount == Decimal('-40.00')
        assert entry.metadata == {'ref': 'X-1'}

    def test_debit_beyond_balance_changes_nothing(self, funded_owner):
        with pytest.raises(InsufficientFunds) as excinfo:
            debit(funded_owner, Decimal('1000.01'), 'Too much')

        assert excinfo.value.requested == Decimal('1000.01')
        assert excinfo.value.available == Decimal('1000.00')
        assert Wallet.objects.get(owner=funded_owner).balance == Decimal('1000.00')
        assert LedgerTransaction.objects.filter(
            owner=funded_owner,
            transaction_type=LedgerTransaction.TransactionType.SPEND,
        ).count() == 0

    def test_debit_can_empty_the_wallet(self, funded_owner):
        entry = debit(funded_owner, Decimal('1000.00'), 'Everything')
        assert entry.balance_after == Decimal('0.00')

    def test_replay_matches_stored_balance(self, funded_owner):
        credit(funded_owner, Decimal('20.25'), 'Refund')
        debit(funded_owner, Decimal('300'), 'Ads')
        debit(funded_owner, Decimal('0.25'), 'Fee')

        wallet = Wallet.objects.get(owner=funded_owner)
        assert wallet.balance == Decimal('720.00')
        assert replay_balance(funded_owner) == wallet.balance

    def test_database_refuses_a_negative_balance(self, funded_owner):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Wallet.objects.filter(owner=funded_owner).update(balance=Decimal('-0.01'))

        assert Wallet.objects.get(owner=funded_owner).balance == Decimal('1000.00')


@pytest.mark.django_db
class TestAllocateBudget:
    def test_allocation_moves_money_out_of_available(self, owner, product, second_product):
        add_funds(owner, Decimal('150'))

        result = allocate_budget(owner, [
            {'product_id': str(product.pk), 'amount': Decimal('60')},
            {'product_id': str(second_product.pk), 'amount': Decimal('40')},
        ])

        assert result.remaining_budget == Decimal('50.00')
        assert [line['amount'] for line in result.applied_lines] == ['60.00', '40.00']
        allocations = {
            a.product_id: a.allocated_budget
            for a in ProductAllocation.objects.filter(owner=owner)
        }
        assert allocations == {product.pk: Decimal('60.00'), second_product.pk: Decimal('40.00')}

        status = get_budget_status(owner)
        assert status.available == Decimal('50.00')
        assert status.allocated == Decimal('100.00')
        assert status.total == Decimal('150.00')
        assert status.used == Decimal('0.00')

    def test_allocation_is_one_transaction(self, funded_owner, product, second_product):
        allocate_budget(funded_owner, [
            {'product_id': str(product.pk), 'amount': '10'},
            {'product_id': str(second_product.pk), 'amount': '15.50'},
        ])

        entry = LedgerTransaction.objects.get(
            owner=funded_owner,
            transaction_type=LedgerTransaction.TransactionType.ALLOCATION,
        )
        assert entry.amount == Decimal('25.50')
        assert entry.balance_after == Decimal('974.50')
        assert len(entry.metadata['allocations']) == 2
        assert AuditLog.objects.filter(action='BUDGET_ALLOCATED').count() == 1
        assert replay_balance(funded_owner) == Decimal('974.50')

    def test_foreign_and_unknown_products_are_skipped(self, funded_owner, product, foreign_product):
        result = allocate_budget(funded_owner, [
            {'product_id': str(product.pk), 'amount': '30'},
            {'product_id': str(foreign_product.pk), 'amount': '20'},
            {'product_id': str(uuid.uuid4()), 'amount': '5'},
            {'product_id': 'not-a-uuid', 'amount': '5'},
        ])

        assert [line['product_id'] for line in result.applied_lines] == [str(product.pk)]
        assert result.remaining_budget == Decimal('970.00')
        assert not ProductAllocation.objects.filter(product=foreign_product).exists()

    def test_nothing_applied_writes_no_transaction(self, funded_owner, foreign_product):
        result = allocate_budget(funded_owner, [
            {'product_id': str(foreign_product.pk), 'amount': '20'},
        ])

        assert result.applied_lines == []
        assert result.remaining_budget == Decimal('1000.00')
        assert not LedgerTransaction.objects.filter(
            transaction_type=LedgerTransaction.TransactionType.ALLOCATION,
        ).exists()

    def test_allocation_replaces_previous_amount(self, funded_owner, product):
        allocate_budget(funded_owner, [{'product_id': str(product.pk), 'amount': '100'}])
        allocate_budget(funded_owner, [{'product_id': str(product.pk), 'amount': '40'}])

        allocation = ProductAllocation.objects.get(owner=funded_owner, product=product)
        assert allocation.allocated_budget == Decimal('40.00')
        assert ProductAllocation.objects.filter(owner=funded_owner).count() == 1

    def test_batch_larger_than_balance_is_refused(self, owner, product, second_product):
        add_funds(owner, Decimal('50'))

        with pytest.raises(InsufficientFunds):
            allocate_budget(owner, [
                {'product_id': str(product.pk), 'amount': '30'},
                {'product_id': str(second_product.pk), 'amount': '30'},
            ])

        assert Wallet.objects.get(owner=owner).balance == Decimal('50.00')
        assert not ProductAllocation.objects.filter(owner=owner).exists()

    @pytest.mark.parametrize('lines', [
        [],
        [{'amount': '10'}],
        [{'product_id': 'x', 'amount': '0'}],
        [{'product_id': 'x', 'amount': '-1'}],
    ])
    def test_invalid_batches(self, funded_owner, lines):
        with pytest.raises(ValidationFailed):
            allocate_budget(funded_owner, lines)

    def test_same_product_twice_is_refused(self, owner, product):
        add_funds(owner, Decimal('150'))

        with pytest.raises(ValidationFailed):
            allocate_budget(owner, [
                {'product_id': str(product.pk), 'amount': '60'},
                {'product_id': str(product.pk).upper(), 'amount': '40'},
            ])

        status = get_budget_status(owner)
        assert status.total == Decimal('150.00')
        assert status.available == Decimal('150.00')
        assert status.allocated == Decimal('0.00')
        assert not LedgerTransaction.objects.filter(
            owner=owner,
            transaction_type=LedgerTransaction.TransactionType.ALLOCATION,
        ).exists()

    def test_cannot_allocate_below_used_budget(self, funded_owner, product):
        allocate_budget(funded_owner, [{'product_id': str(product.pk), 'amount': '100'}])
        record_allocation_usage(funded_owner, product, Decimal('70'))

        with pytest.raises(ValidationFailed):
            allocate_budget(funded_owner, [{'product_id': str(product.pk), 'amount': '50'}])

        allocation = ProductAllocation.objects.get(owner=funded_owner, product=product)
        assert allocation.allocated_budget == Decimal('100.00')
        assert Wallet.objects.get(owner=funded_owner).balance == Decimal('900.00')


@pytest.mark.django_db
class TestAllocationUsage:
    def test_usage_accumulates(self, funded_owner, product):
        allocate_budget(funded_owner, [{'product_id': str(product.pk), 'amount': '100'}])

        record_allocation_usage(funded_owner, product, Decimal('30'))
        allocation = record_allocation_usage(funded_owner, product, Decimal('20'))

        assert allocation.used_budget == Decimal('50.00')
        assert allocation.remaining_budget == Decimal('50.00')
        assert get_budget_status(funded_owner).used == Decimal('50.00')

    def test_usage_cannot_exceed_allocation(self, funded_owner, product):
        allocate_budget(funded_owner, [{'product_id': str(product.pk), 'amount': '100'}])

        with pytest.raises(InsufficientFunds):
            record_allocation_usage(funded_owner, product, Decimal('100.01'))

    def test_usage_without_allocation(self, funded_owner, product):
        with pytest.raises(InsufficientFunds):
            record_allocation_usage(funded_owner, product, Decimal('1'))


@pytest.mark.django_db
def test_budget_status_recent_transactions_are_limited(settings, owner):
    settings.RECENT_TRANSACTIONS_LIMIT = 3
    for amount in ('1', '2', '3', '4', '5'):
        add_funds(owner, Decimal(amount))

    status = get_budget_status(owner)

    assert len(status.recent_transactions) == 3
    assert status.total == Decimal('15.00')
    assert status.allocations == []
