from typing import Iterable, List, Optional


def sanitize_string(value: str) -> str:
    """Strip angle brackets and surrounding whitespace from free text."""
    return value.replace('<', '').replace('>', '').strip()


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return sanitize_string(value)


def sanitize_list(values: Iterable[str]) -> List[str]:
    """Sanitize every item and drop the ones left empty."""
    cleaned = (sanitize_string(v) for v in values)
    return [v for v in cleaned if v]
