# services/reservation-service/src/apps/core/services/access_control_service.py
"""
Access Control Service

Imports the door-access export and reconciles each entry with a member and,
when possible, a reservation covering the entry time.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import openpyxl
from django.db import transaction
from django.db.models import Count, Max
from django.utils import timezone

from apps.core import policy
from apps.core.events import NotificationSink, notification_sink, publish_access_logs_imported
from apps.core.models import AccessLog, AccessNameRule, MemberProfile, Reservation
from apps.core.repositories import ReservationRepository

from . import InvalidDateError, ReservationNotFoundError
from .timeslots import local_midnight, local_date, to_datetime

logger = logging.getLogger(__name__)

TIME_FORMATS = ('%d/%m/%Y %H:%M:%S', '%d/%m/%Y %H:%M', '%Y-%m-%d %H:%M:%S', '%Y/%m/%d %H:%M:%S')


@dataclass
class AccessRecord:
    time: datetime
    user: str
    content: str = ''


@dataclass
class MatchResult:
    access_time: datetime
    access_name: str
    content: str
    status: str
    user_id: Optional[uuid.UUID] = None
    reservation_id: Optional[uuid.UUID] = None


@dataclass
class ReconcileResult:
    results: List[MatchResult] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)


# =============================================================================
# Input
# =============================================================================

def read_workbook_rows(file) -> List[Dict[str, Any]]:
    """First sheet of an .xlsx as dicts keyed by the header row."""
    workbook = openpyxl.load_workbook(file, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return []
        keys = [str(h).strip() if h is not None else '' for h in header]
        return [
            dict(zip(keys, row))
            for row in rows
            if any(cell not in (None, '') for cell in row)
        ]
    finally:
        workbook.close()


def _find_key(keys: Iterable[str], *needles: str) -> Optional[str]:
    for key in keys:
        lowered = key.lower()
        if any(needle in lowered for needle in needles):
            return key
    return None


def parse_access_time(value) -> Optional[datetime]:
    """Local wall time from a cell value; None when unparseable."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        text = value.strip()
        for fmt in TIME_FORMATS:
            try:
                return timezone.make_aware(datetime.strptime(text, fmt))
            except ValueError:
                continue
    try:
        return to_datetime(value)
    except InvalidDateError:
        return None


def normalize_access_rows(rows: Sequence[Mapping[str, Any]]) -> List[AccessRecord]:
    """Locate time / user / content columns by name and drop incomplete rows."""
    records = []
    for row in rows:
        keys = [str(k) for k in row.keys()]
        time_key = _find_key(keys, 'time')
        user_key = _find_key(keys, 'user', 'usuario')
        content_key = _find_key(keys, 'content')
        if not time_key or not user_key:
            continue

        access_time = parse_access_time(row.get(time_key))
        user = row.get(user_key)
        user = str(user).strip() if user is not None else ''
        if access_time is None or not user:
            continue

        content = row.get(content_key) if content_key else ''
        records.append(AccessRecord(access_time, user, '' if content is None else str(content)))
    return records


# =============================================================================
# Matching
# =============================================================================

def _norm(value: Optional[str]) -> str:
    return (value or '').strip().lower()


def find_user(access_name: str, users: Sequence[MemberProfile]) -> Optional[MemberProfile]:
    """Alias, then "first last", then "last first", then first-or-last name."""
    name = _norm(access_name)
    if not name:
        return None
    matchers = (
        lambda u: _norm(u.access_system_name) == name,
        lambda u: _norm(f"{u.first_name} {u.last_name}") == name,
        lambda u: _norm(f"{u.last_name} {u.first_name}") == name,
        lambda u: _norm(u.first_name) == name or _norm(u.last_name) == name,
    )
    for matches in matchers:
        for user in users:
            if matches(user):
                return user
    return None


def reconcile(
    records: Sequence[AccessRecord],
    users: Sequence[MemberProfile],
    reservations: Sequence[Reservation],
    rules: Mapping[str, str],
    tolerance_minutes: int = 50,
) -> ReconcileResult:
    """
    Classify access entries as valid, no_reservation or unmatched.

    ``rules`` maps lower-cased raw names to ``ignore`` (dropped) or ``track``
    (kept as unmatched and never billed). An entry is valid when it falls in
    ``[start - tolerance, end)`` of one of the matched member's reservations.
    """
    tolerance = timedelta(minutes=tolerance_minutes)
    by_owner: Dict[str, List[Reservation]] = {}
    for reservation in reservations:
        by_owner.setdefault(str(reservation.owner_id), []).append(reservation)

    results, tracked = [], []
    ignored = 0
    for record in records:
        action = rules.get(_norm(record.user))
        if action == AccessNameRule.Action.IGNORE:
            ignored += 1
            continue
        if action == AccessNameRule.Action.TRACK:
            tracked.append(MatchResult(record.time, record.user, record.content, AccessLog.Status.UNMATCHED))
            continue

        user = find_user(record.user, users)
        if user is None:
            results.append(MatchResult(record.time, record.user, record.content, AccessLog.Status.UNMATCHED))
            continue

        match = next(
            (
                r for r in by_owner.get(str(user.user_id), [])
                if r.start_time - tolerance <= record.time < r.end_time
            ),
            None,
        )
        results.append(MatchResult(
            record.time,
            record.user,
            record.content,
            AccessLog.Status.VALID if match else AccessLog.Status.NO_RESERVATION,
            user_id=user.user_id,
            reservation_id=match.id if match else None,
        ))

    stats = {
        'total_processed': len(records),
        'inserted': len(results) + len(tracked),
        'ignored': ignored,
        'valid': sum(1 for r in results if r.status == AccessLog.Status.VALID),
        'no_reservation': sum(1 for r in results if r.status == AccessLog.Status.NO_RESERVATION),
        'unmatched': sum(1 for r in results if r.status == AccessLog.Status.UNMATCHED),
    }
    return ReconcileResult(results + tracked, stats)


# =============================================================================
# Service
# =============================================================================

class AccessControlService:
    """Access-log import and the operator tools around it."""

    def __init__(
        self,
        repository: ReservationRepository = None,
        notifier: NotificationSink = None,
    ):
        self.repository = repository or ReservationRepository()
        self.notifier = notifier or notification_sink

    def import_workbook(self, file, operator_id=None) -> Dict[str, int]:
        return self.import_rows(read_workbook_rows(file), operator_id)

    def import_rows(self, rows: Sequence[Mapping[str, Any]], operator_id=None) -> Dict[str, int]:
        """Reconcile and store rows; entries already imported are skipped."""
        records = normalize_access_rows(rows)
        if not records:
            return reconcile([], [], [], {}).stats

        tolerance = policy.get('ACCESS_TOLERANCE_MINUTES')
        first = min(r.time for r in records) - timedelta(minutes=tolerance)
        last = max(r.time for r in records)
        reservations = self.repository.find_in_range(
            local_midnight(local_date(first)),
            local_midnight(local_date(last) + timedelta(days=1)),
            Reservation.blocking_statuses(),
        )
        rules = {_norm(r.access_name): r.action for r in AccessNameRule.objects.all()}
        users = list(MemberProfile.objects.all())

        outcome = reconcile(records, users, reservations, rules, tolerance)

        with transaction.atomic():
            fresh = self._new_entries(outcome.results)
            AccessLog.objects.bulk_create(
                [
                    AccessLog(
                        access_time=r.access_time,
                        access_name=r.access_name,
                        content=r.content,
                        status=r.status,
                        user_id=r.user_id,
                        reservation_id=r.reservation_id,
                    )
                    for r in fresh
                ],
                ignore_conflicts=True,
            )
            outcome.stats['inserted'] = len(fresh)

        logger.info(f"Access log import: {outcome.stats}")
        publish_access_logs_imported(self.notifier, operator_id, outcome.stats)
        return outcome.stats

    @staticmethod
    def _new_entries(results: Sequence[MatchResult]) -> List[MatchResult]:
        """Entries whose (time, name) key is neither stored nor repeated in the batch."""
        if not results:
            return []
        stored = set(
            AccessLog.objects.filter(
                access_time__in={r.access_time for r in results},
                access_name__in={r.access_name for r in results},
            ).values_list('access_time', 'access_name')
        )
        fresh = []
        for result in results:
            key = (result.access_time, result.access_name)
            if key not in stored:
                stored.add(key)
                fresh.append(result)
        return fresh

    def set_name_rule(self, access_name: str, action: str) -> AccessNameRule:
        """Create or change the rule for a raw name (case-insensitive)."""
        access_name = access_name.strip()
        rule = AccessNameRule.objects.filter(access_name__iexact=access_name).first()
        if rule is None:
            rule = AccessNameRule.objects.create(access_name=access_name, action=action)
        else:
            rule.action = action
            rule.save(update_fields=['action'])
        logger.info(f"Access name rule set: {access_name!r} -> {action}")
        return rule

    def assign_alias(self, user_id: uuid.UUID, access_name: str) -> MemberProfile:
        """Link a raw access-system name to a member permanently."""
        profile = MemberProfile.objects.filter(user_id=user_id).first()
        if profile is None:
            raise ReservationNotFoundError(f"Perfil {user_id} no encontrado.")
        profile.access_system_name = access_name.strip()
        profile.save(update_fields=['access_system_name', 'updated_at'])
        logger.info(f"Access alias {access_name!r} assigned to {user_id}")
        return profile

    def unmatched_names(self) -> List[Dict[str, Any]]:
        """Raw names without a member or a rule, most frequent first."""
        ruled = {_norm(name) for name in AccessNameRule.objects.values_list('access_name', flat=True)}
        rows = (
            AccessLog.objects.filter(status=AccessLog.Status.UNMATCHED, user_id__isnull=True)
            .values('access_name')
            .annotate(count=Count('id'), last_seen=Max('access_time'))
            .order_by('-count', 'access_name')
        )
        return [row for row in rows if _norm(row['access_name']) not in ruled]
