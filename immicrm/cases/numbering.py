import random
from datetime import date
from typing import Optional

CASE_NUMBER_PREFIX = "IMM"


def generate_case_number(today: Optional[date] = None) -> str:
    """Return ``IMM-<year>-<0000..9999>``.

    Collisions are possible; the unique constraint on ``cases.case_number``
    rejects them and the caller gets a Conflict.
    """
    year = (today or date.today()).year
    return f"{CASE_NUMBER_PREFIX}-{year:04d}-{random.randint(0, 9999):04d}"
