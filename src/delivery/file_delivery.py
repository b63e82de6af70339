"""
File delivery channel, used for dry runs
"""
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

import aiofiles

from delivery.base import Mailer


class FileMailer(Mailer):
    name = "file"

    def __init__(self, output_dir: str = "output", **kwargs):
        kwargs.setdefault("min_interval", 0.0)
        super().__init__(**kwargs)
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, to: str, day: Optional[date] = None) -> Path:
        day = day or datetime.now(timezone.utc).date()
        safe = re.sub(r"[^\w.@-]", "_", to)
        return self.output_dir / f"{day.isoformat()}_{safe}.html"

    async def _transmit(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str],
        day: Optional[date],
    ) -> None:
        path = self.path_for(to, day)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(f"<!-- To: {to} | Subject: {subject} -->\n")
            await f.write(html)
