from datetime import datetime

import pytz
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


def get_timezone(name):
    """Return the pytz zone for name, or UTC when the name is unknown."""
    try:
        return pytz.timezone(name)
    except pytz.exceptions.UnknownTimeZoneError:
        return pytz.UTC


def get_user_timezone(request):
    """
    Get the viewer's timezone from the cookie set by the browser.
    Falls back to DEFAULT_VIEWER_TIMEZONE (UTC unless configured).
    """
    default_name = getattr(settings, 'DEFAULT_VIEWER_TIMEZONE', 'UTC')
    user_tz_name = request.COOKIES.get('user_timezone', default_name)
    return get_timezone(user_tz_name)


def get_user_today(request):
    """
    Get today's date in the viewer's timezone.
    Returns both the date object and timezone-aware start/end datetimes.
    """
    user_tz = get_user_timezone(request)
    now_in_user_tz = timezone.now().astimezone(user_tz)
    today = now_in_user_tz.date()

    today_start = user_tz.localize(datetime.combine(today, datetime.min.time()))
    today_end = user_tz.localize(datetime.combine(today, datetime.max.time()))

    return today, today_start, today_end


def parse_user_datetime(value, user_tz):
    """
    Parse a timestamp sent by the browser.

    Values with an offset (or 'Z') are taken as-is. Naive values, such as the
    output of a datetime-local input, are read in the viewer's timezone.
    A bare date means midnight in the viewer's timezone.

    Returns None for empty values; raises ValueError for anything unparseable.
    """
    if value is None or value == '':
        return None
    value = str(value).strip()
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise ValueError(f"Invalid date/time: {value}")
        parsed = datetime.combine(day, datetime.min.time())
    if timezone.is_naive(parsed):
        parsed = user_tz.localize(parsed)
    return parsed
