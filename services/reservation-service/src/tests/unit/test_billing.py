# services/reservation-service/src/tests/unit/test_billing.py
"""
Unit Tests for the billing preview
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from apps.core.models import MemberProfile, Reservation
from apps.core.services import BillingService, InvalidDateError
from apps.core.services.billing_service import (
    NoDiscountPolicy,
    VolumeDiscountPolicy,
    load_discount_policy,
    to_money,
)
from tests.conftest import FixedClock, local


class TestDiscountPolicies:

    def test_no_discount(self):
        assert NoDiscountPolicy().discount(10, Decimal('1000')) == Decimal('0.00')

    def test_highest_reached_tier_applies(self):
        policy = VolumeDiscountPolicy([(4, 5), (8, 10)])
        assert policy.discount(3, Decimal('1000')) == Decimal('0.00')
        assert policy.discount(4, Decimal('1000')) == Decimal('50.00')
        assert policy.discount(12, Decimal('1000')) == Decimal('100.00')

    def test_tiers_from_settings(self, settings):
        settings.BILLING_VOLUME_DISCOUNT_TIERS = [(2, 20)]
        assert VolumeDiscountPolicy().discount(2, Decimal('100')) == Decimal('20.00')

    def test_load_by_dotted_path(self):
        policy = load_discount_policy('apps.core.services.billing_service.NoDiscountPolicy')
        assert isinstance(policy, NoDiscountPolicy)

    def test_to_money_rounds_half_up(self):
        assert to_money(Decimal('10.005')) == Decimal('10.01')


@pytest.mark.django_db
class TestBillingPreview:

    def setup_method(self):
        # Thursday
        self.clock = FixedClock(local(2025, 6, 12, 15, 0))

    def _service(self, **kwargs):
        return BillingService(clock=self.clock, **kwargs)

    def test_weekly_preview(self, create_reservation, owner_id):
        create_reservation(start_time=local(2025, 6, 9, 10, 0))
        create_reservation(
            start_time=local(2025, 6, 10, 10, 0), end_time=local(2025, 6, 10, 11, 30),
            status=Reservation.Status.USED,
        )
        create_reservation(
            start_time=local(2025, 6, 11, 10, 0),
            status=Reservation.Status.CANCELLED_WITH_PENALTY,
        )
        create_reservation(
            start_time=local(2025, 6, 13, 10, 0),
            status=Reservation.Status.CANCELLED_FREE,
        )
        # Next week
        create_reservation(start_time=local(2025, 6, 16, 10, 0))

        preview = self._service(discount_policy=NoDiscountPolicy()).preview_current_period(
            owner_id, 'weekly'
        )

        assert preview.period_start == local(2025, 6, 9, 0, 0)
        assert preview.period_end == local(2025, 6, 16, 0, 0)
        assert len(preview.bookings) == 3
        assert [b.hours for b in preview.bookings] == [Decimal('1.00'), Decimal('1.50'), Decimal('1.00')]
        assert preview.totals == {
            'base': Decimal('1750.00'),
            'discount': Decimal('0.00'),
            'final': Decimal('1750.00'),
        }

    def test_monthly_preview_uses_room_rates(self, create_consultorio, create_reservation, owner_id):
        premium = create_consultorio(hourly_rate=Decimal('800.00'))
        create_reservation(start_time=local(2025, 6, 2, 10, 0))
        create_reservation(start_time=local(2025, 6, 28, 10, 0), consultorio=premium)
        create_reservation(start_time=local(2025, 7, 1, 10, 0))

        preview = self._service(discount_policy=NoDiscountPolicy()).preview_current_period(
            owner_id, 'monthly'
        )

        assert [b.amount for b in preview.bookings] == [Decimal('500.00'), Decimal('800.00')]
        assert preview.base == Decimal('1300.00')

    def test_discount_is_applied(self, create_reservation, owner_id):
        for day in (9, 10, 11):
            create_reservation(start_time=local(2025, 6, day, 10, 0))

        preview = self._service(
            discount_policy=VolumeDiscountPolicy([(3, 10)])
        ).preview_current_period(owner_id, 'weekly')

        assert preview.base == Decimal('1500.00')
        assert preview.discount == Decimal('150.00')
        assert preview.final == Decimal('1350.00')

    def test_other_members_are_not_billed(self, create_reservation, owner_id, other_owner_id):
        create_reservation(start_time=local(2025, 6, 10, 10, 0), owner_id=other_owner_id)

        preview = self._service().preview_current_period(owner_id, 'weekly')

        assert preview.bookings == []
        assert preview.final == Decimal('0.00')

    def test_billing_mode_from_profile(self, create_profile, create_reservation, owner_id):
        create_profile(user_id=owner_id, billing_mode=MemberProfile.BillingMode.MONTHLY)
        create_reservation(start_time=local(2025, 6, 2, 10, 0))

        preview = self._service().preview_current_period(owner_id)

        assert preview.billing_mode == 'monthly'
        assert len(preview.bookings) == 1

    def test_no_billing_mode(self, create_profile, create_reservation, owner_id):
        create_profile(user_id=owner_id)
        create_reservation(start_time=local(2025, 6, 10, 10, 0))

        preview = self._service().preview_current_period(owner_id)

        assert preview.billing_mode is None
        assert preview.bookings == []
        assert preview.totals == {
            'base': Decimal('0.00'),
            'discount': Decimal('0.00'),
            'final': Decimal('0.00'),
        }

    def test_invalid_billing_mode(self, owner_id):
        with pytest.raises(InvalidDateError):
            self._service().preview_current_period(owner_id, 'daily')

    def test_preview_is_read_only(self, create_reservation, owner_id):
        reservation = create_reservation(start_time=local(2025, 6, 10, 10, 0))
        before = reservation.updated_at

        self._service().preview_current_period(owner_id, 'weekly')

        reservation.refresh_from_db()
        assert reservation.updated_at == before
        assert Reservation.objects.count() == 1
