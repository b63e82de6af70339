from datetime import datetime, timedelta, timezone
from typing import Optional


def next_run_time(hour: int = 8, now: Optional[datetime] = None) -> datetime:
    """Next occurrence of `hour`:00 UTC strictly after `now`."""
    now = now or datetime.now(timezone.utc)
    run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if run <= now:
        run += timedelta(days=1)
    return run


def seconds_until(moment: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    return max(0.0, (moment - now).total_seconds())
