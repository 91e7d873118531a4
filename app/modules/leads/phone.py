import re

NON_DIGITS_RE = re.compile(r"\D")


def normalize_phone(raw, country_code: str = "55") -> str | None:
    """Canonical lead key: country-code-prefixed digits only.

    10/11-digit numbers are national numbers (DDD + number) and get the home
    country code. Returns None when nothing digit-like is left.
    """
    if raw is None:
        return None
    digits = NON_DIGITS_RE.sub("", str(raw))
    if not digits:
        return None
    if len(digits) in (10, 11):
        digits = country_code + digits
    return digits
