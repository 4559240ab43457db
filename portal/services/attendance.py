from datetime import date
from typing import Iterable, List

WEEKDAYS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']


def toggle_attendee(attendee_ids: Iterable[str], profile_id: str) -> List[str]:
    """Return a new attendee list with `profile_id` added or removed.

    Applying the toggle twice for the same id gives back the original set.
    """
    current = list(attendee_ids or [])
    if profile_id in current:
        return [pid for pid in current if pid != profile_id]
    return current + [profile_id]


def is_attending(attendee_ids: Iterable[str], profile_id: str) -> bool:
    return profile_id in (attendee_ids or [])


def attendance_by_weekday(sessions):
    """Sum attendee counts per weekday for sessions whose date starts with an ISO date."""
    totals = {name: 0 for name in WEEKDAYS}
    for session in sessions:
        try:
            day = date.fromisoformat((session.date or '')[:10])
        except ValueError:
            continue
        totals[WEEKDAYS[day.weekday()]] += len(session.attendee_ids)
    return [{'name': name, 'attendees': totals[name]} for name in WEEKDAYS]
