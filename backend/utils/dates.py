from datetime import date, datetime, timedelta
from calendar import monthrange
from dateutil.relativedelta import relativedelta
from dotenv import load_dotenv
import os
import pytz

load_dotenv()

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Africa/Nairobi")


def local_now() -> datetime:
    """Timezone-aware 'now' in the configured business timezone."""
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def local_today() -> date:
    return local_now().date()


def month_bounds(day: date):
    """Return (first_day, last_day) of the month containing `day`."""
    return day.replace(day=1), day.replace(day=monthrange(day.year, day.month)[1])


def daterange(start: date, end: date):
    """Yield every date from start to end inclusive, ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def previous_range(start: date, end: date):
    """The range of equal length immediately before [start, end]."""
    length = (end - start).days + 1
    return start - timedelta(days=length), start - timedelta(days=1)


def one_year_earlier(day: date) -> date:
    return day - relativedelta(years=1)
