import re

from estate_watch.models import Salutation

MALE_SALUTATIONS = ("Mr.", "Herr")
FEMALE_SALUTATIONS = ("Ms.", "Mrs.", "Frau")


def _pattern(salutations: tuple[str, ...]) -> re.Pattern:
    # only the honorific is case-insensitive, the name tokens are taken as written
    group = "|".join(re.escape(s) for s in salutations)
    return re.compile(rf"^(?i:{group})\s+(\w+)(?:\s+(\w+))?$")


_PATTERNS = (
    ("male", _pattern(MALE_SALUTATIONS)),
    ("female", _pattern(FEMALE_SALUTATIONS)),
)


def parse_salutation(name) -> Salutation | None:
    """Classify a contact name like ``"Frau Erika Musterfrau"``.

    Returns ``None`` when the name does not look like a natural person
    (agencies, companies, empty or non-string input).
    """
    if not name or not isinstance(name, str):
        return None

    trimmed = name.strip()
    for gender, pattern in _PATTERNS:
        match = pattern.match(trimmed)
        if match:
            first, second = match.group(1), match.group(2)
            return Salutation(gender=gender, last_name=second or first)
    return None
