"""Time Access Gate - Per-role work schedule enforcement"""
from datetime import datetime, tzinfo
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Union

from ..config.settings import settings
from ..domain.enums import UserRole, DenialReason
from ..domain.models import RoleSchedule, TimeAccessResult
from ..utils.logger import get_logger
from ..utils.time import Clock, utc_now, get_timezone, to_local, sunday_based_weekday

logger = get_logger(__name__)


DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

ALL_DAYS = frozenset(range(7))
ALL_HOURS = frozenset(range(24))
MONDAY_TO_SATURDAY = frozenset(range(1, 7))

# Roles that are never subject to a schedule
UNRESTRICTED_TIME_ROLES = frozenset({UserRole.SUPERADMIN, UserRole.ADMIN})

DEFAULT_SCHEDULES: Mapping[UserRole, RoleSchedule] = MappingProxyType({
    UserRole.PRODUCTION_MANAGER: RoleSchedule(days=ALL_DAYS, hours=ALL_HOURS),
    UserRole.PRODUCTION: RoleSchedule(days=MONDAY_TO_SATURDAY, hours=frozenset(range(6, 23))),
    UserRole.QUALITY_MANAGER: RoleSchedule(days=ALL_DAYS, hours=ALL_HOURS),
    UserRole.QUALITY: RoleSchedule(days=MONDAY_TO_SATURDAY, hours=frozenset(range(7, 20))),
    UserRole.VIEWER: RoleSchedule(days=ALL_DAYS, hours=ALL_HOURS),
})


def _contiguous_runs(values: Iterable[int]) -> List[tuple]:
    """Group sorted integers into (start, end) runs"""
    runs: List[tuple] = []
    for value in sorted(values):
        if runs and value == runs[-1][1] + 1:
            runs[-1] = (runs[-1][0], value)
        else:
            runs.append((value, value))
    return runs


def describe_schedule(schedule: RoleSchedule) -> str:
    """
    Human-readable window for display

    Examples:
        "Monday-Saturday, 06:00-22:59"
        "Every day, all hours"
    """
    if schedule.days == ALL_DAYS:
        days_text = "Every day"
    else:
        days_text = ", ".join(
            DAY_NAMES[start] if start == end else f"{DAY_NAMES[start]}-{DAY_NAMES[end]}"
            for start, end in _contiguous_runs(schedule.days)
        )

    if schedule.hours == ALL_HOURS:
        hours_text = "all hours"
    else:
        hours_text = ", ".join(
            f"{start:02d}:00-{end:02d}:59"
            for start, end in _contiguous_runs(schedule.hours)
        )

    return f"{days_text}, {hours_text}"


class TimeAccessGate:
    """
    Decide whether a role may act at all, given the current time

    Rules:
    - SUPERADMIN and ADMIN are always allowed
    - Every other role must be inside its configured weekdays AND hours
    - The clock is read in the plant timezone; the hour is truncated

    The schedule table is immutable and validated once at construction.
    """

    def __init__(
        self,
        schedules: Optional[Mapping[UserRole, RoleSchedule]] = None,
        timezone: Union[str, tzinfo, None] = None,
        clock: Clock = utc_now
    ):
        schedules = DEFAULT_SCHEDULES if schedules is None else schedules
        missing = [r.value for r in UserRole if r not in UNRESTRICTED_TIME_ROLES and r not in schedules]
        if missing:
            raise ValueError(f"No work schedule configured for roles: {missing}")

        self._schedules: Mapping[UserRole, RoleSchedule] = MappingProxyType(dict(schedules))
        zone = settings.work_schedule_timezone if timezone is None else timezone
        self._timezone = get_timezone(zone) if isinstance(zone, str) else zone
        self._clock = clock

    def schedule_for(self, role: UserRole) -> Optional[RoleSchedule]:
        """Configured schedule, or None for roles with unrestricted access"""
        if role in UNRESTRICTED_TIME_ROLES:
            return None
        return self._schedules[role]

    def check(self, role: UserRole, now: Optional[datetime] = None) -> TimeAccessResult:
        """
        Evaluate the gate for a role

        Args:
            role: Role of the acting user
            now: Instant to evaluate; defaults to the injected clock

        Returns:
            TimeAccessResult with the reason and allowed window on denial
        """
        schedule = self.schedule_for(role)
        if schedule is None:
            return TimeAccessResult(allowed=True)

        local_now = to_local(now or self._clock(), self._timezone)
        weekday = sunday_based_weekday(local_now)
        hour = local_now.hour
        description = describe_schedule(schedule)

        if weekday not in schedule.days:
            logger.info(
                f"Time gate denied {role.value}: {DAY_NAMES[weekday]} is outside work days",
                extra={"role": role.value, "reason_code": DenialReason.OUTSIDE_WORK_DAYS.value}
            )
            return TimeAccessResult(
                allowed=False,
                reason=f"Role {role.value} may not act on {DAY_NAMES[weekday]} (outside work days)",
                reason_code=DenialReason.OUTSIDE_WORK_DAYS,
                allowed_hours_description=description
            )

        if hour not in schedule.hours:
            logger.info(
                f"Time gate denied {role.value}: {hour:02d}:00 is outside work hours",
                extra={"role": role.value, "reason_code": DenialReason.OUTSIDE_WORK_HOURS.value}
            )
            return TimeAccessResult(
                allowed=False,
                reason=f"Role {role.value} may not act at {local_now:%H:%M} (outside work hours)",
                reason_code=DenialReason.OUTSIDE_WORK_HOURS,
                allowed_hours_description=description
            )

        return TimeAccessResult(allowed=True, allowed_hours_description=description)
