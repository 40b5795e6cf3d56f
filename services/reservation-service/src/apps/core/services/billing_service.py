# services/reservation-service/src/apps/core/services/billing_service.py
"""
Billing Service

Read-only estimate of a member's invoice for the current billing period.
Never writes an invoice row.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from apps.core.models import Consultorio, MemberProfile, Reservation
from apps.core.repositories import ReservationRepository

from . import InvalidDateError, ReservationNotFoundError
from .timeslots import Granularity, period_bounds

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# Rates and discounts
# =============================================================================

class ConsultorioRateTable:
    """Current hourly rate of each room."""

    def __init__(self):
        self._rates: Dict[str, Decimal] = {}

    def hourly_rate(self, resource_id) -> Decimal:
        key = str(resource_id)
        if key not in self._rates:
            rate = (
                Consultorio.objects.filter(pk=resource_id)
                .values_list('hourly_rate', flat=True)
                .first()
            )
            if rate is None:
                raise ReservationNotFoundError(f"Consultorio {resource_id} no encontrado.")
            self._rates[key] = Decimal(rate)
        return self._rates[key]


class DiscountPolicy:
    """Discount for a period, given the number of billed bookings and their base amount."""

    def discount(self, booking_count: int, base_amount: Decimal) -> Decimal:
        raise NotImplementedError


class NoDiscountPolicy(DiscountPolicy):

    def discount(self, booking_count: int, base_amount: Decimal) -> Decimal:
        return ZERO


class VolumeDiscountPolicy(DiscountPolicy):
    """Highest ``(min_bookings, percent)`` tier reached applies."""

    def __init__(self, tiers: Optional[Sequence[Tuple[int, float]]] = None):
        if tiers is None:
            tiers = getattr(settings, 'BILLING_VOLUME_DISCOUNT_TIERS', [])
        self.tiers = sorted((int(m), Decimal(str(p))) for m, p in tiers)

    def discount(self, booking_count: int, base_amount: Decimal) -> Decimal:
        percent = ZERO
        for min_bookings, tier_percent in self.tiers:
            if booking_count >= min_bookings:
                percent = tier_percent
        return to_money(base_amount * percent / Decimal(100))


def load_discount_policy(path: str = None) -> DiscountPolicy:
    path = path or getattr(
        settings, 'BILLING_DISCOUNT_POLICY',
        'apps.core.services.billing_service.VolumeDiscountPolicy'
    )
    return import_string(path)()


# =============================================================================
# Preview
# =============================================================================

@dataclass
class BookingLineItem:
    reservation_id: uuid.UUID
    consultorio_id: uuid.UUID
    consultorio_name: str
    start_time: datetime
    end_time: datetime
    status: str
    kind: str
    hours: Decimal
    hourly_rate: Decimal
    amount: Decimal


@dataclass
class BillingPreview:
    owner_id: uuid.UUID
    billing_mode: Optional[str]
    period_start: Optional[datetime]
    period_end: Optional[datetime]
    bookings: List[BookingLineItem] = field(default_factory=list)
    base: Decimal = ZERO
    discount: Decimal = ZERO
    final: Decimal = ZERO

    @property
    def totals(self) -> Dict[str, Decimal]:
        return {'base': self.base, 'discount': self.discount, 'final': self.final}


class BillingService:
    """Current-period invoice estimate."""

    def __init__(
        self,
        repository: ReservationRepository = None,
        rate_table: ConsultorioRateTable = None,
        discount_policy: DiscountPolicy = None,
        clock=None,
    ):
        self.repository = repository or ReservationRepository()
        self.rate_table = rate_table or ConsultorioRateTable()
        self.discount_policy = discount_policy or load_discount_policy()
        self.clock = clock or timezone.now

    def preview_current_period(self, owner_id: uuid.UUID, billing_mode: str = None) -> BillingPreview:
        """Billable reservations starting in the current week or month, with totals."""
        if billing_mode is None:
            billing_mode = (
                MemberProfile.objects.filter(user_id=owner_id)
                .values_list('billing_mode', flat=True)
                .first()
            )
        if not billing_mode:
            return BillingPreview(owner_id, None, None, None)
        if billing_mode not in Granularity.choices:
            raise InvalidDateError(f"Modalidad de pago inválida: {billing_mode}")

        period_start, period_end = period_bounds(self.clock(), billing_mode)
        reservations = self.repository.find_for_owner_in_period(
            owner_id, period_start, period_end, Reservation.billable_statuses()
        )

        bookings = [self._line_item(r) for r in reservations]
        base = to_money(sum((b.amount for b in bookings), ZERO))
        discount = min(to_money(self.discount_policy.discount(len(bookings), base)), base)

        preview = BillingPreview(
            owner_id=owner_id,
            billing_mode=billing_mode,
            period_start=period_start,
            period_end=period_end,
            bookings=bookings,
            base=base,
            discount=discount,
            final=base - discount,
        )
        logger.debug(
            f"Billing preview for {owner_id} ({billing_mode}): "
            f"{len(bookings)} bookings, final {preview.final}"
        )
        return preview

    def _line_item(self, reservation: Reservation) -> BookingLineItem:
        rate = self.rate_table.hourly_rate(reservation.consultorio_id)
        hours = reservation.duration_hours
        return BookingLineItem(
            reservation_id=reservation.id,
            consultorio_id=reservation.consultorio_id,
            consultorio_name=reservation.consultorio.name,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            status=reservation.status,
            kind=reservation.kind,
            hours=hours.quantize(CENTS, rounding=ROUND_HALF_UP),
            hourly_rate=to_money(rate),
            amount=to_money(rate * hours),
        )
