import re
from datetime import date
from typing import Optional

DATE_PATTERN = re.compile(r"([0-9]{2})/([0-9]{2})/([0-9]{4})")

def parse_date(text: str) -> Optional[date]:
    """
    Converte DD/MM/AAAA em date.

    Returns:
        date, ou None se o formato não casar ou a data não existir no calendário (ex: 31/04)
    """
    match = DATE_PATTERN.fullmatch(text)
    if not match:
        return None

    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None
