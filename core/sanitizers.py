# core/sanitizers.py
"""
Input sanitization and validation for the marketplace.

All user-generated content should pass through these functions
before being stored or moderated.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import bleach


# Allowed HTML tags for rich text (project descriptions)
ALLOWED_TAGS = [
    'p', 'br', 'strong', 'em', 'u', 'a', 'ul', 'ol', 'li',
    'h3', 'h4', 'blockquote', 'code', 'pre'
]

ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title'],
}


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text)
    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_html(html: Optional[str], max_length: Optional[int] = None) -> str:
    """Sanitize HTML content, removing dangerous elements."""
    if html is None:
        return ""

    clean = bleach.clean(
        str(html).strip(),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True
    )

    if max_length and len(clean) > max_length:
        clean = clean[:max_length]

    return clean


def sanitize_title(title: Optional[str]) -> str:
    """
    Sanitize project titles.

    - Max 255 characters
    - No HTML
    - Single line (no newlines)
    """
    text = bleach.clean(sanitize_text(title, max_length=255), tags=[], strip=True)
    text = re.sub(r'[\r\n]+', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text


def sanitize_description(description: Optional[str]) -> str:
    """Max 10000 characters, HTML sanitized."""
    return sanitize_html(description, max_length=10000)


def sanitize_tags(values, max_items: int = 30, max_length: int = 60) -> list:
    """Clean a list of short labels (skills), dropping blanks and duplicates, order kept."""
    result = []
    for value in values or []:
        tag = sanitize_title(value)[:max_length]
        if tag and tag not in result:
            result.append(tag)
    return result[:max_items]


# ─────────────────────────────────────────────────────────────
# Numeric Validators
# ─────────────────────────────────────────────────────────────

class InvalidValue(ValueError):
    """Raised when a single value fails validation."""
    pass


def validate_amount(value, min_value: Decimal = Decimal('0'), max_value: Decimal = Decimal('999999999.99')) -> Decimal:
    """
    Validate a money amount (budget, bid price).

    - Must be a valid decimal
    - Must be non-negative
    - Rounded to 2 decimal places
    """
    try:
        if isinstance(value, str):
            value = value.strip().replace(' ', '').replace(',', '.')
        amount = Decimal(str(value))
    except (TypeError, ValueError, InvalidOperation):
        raise InvalidValue("Amount must be a valid number")

    if not amount.is_finite():
        raise InvalidValue("Amount must be a valid number")

    if amount < min_value:
        raise InvalidValue(f"Amount must be at least {min_value}")

    if amount > max_value:
        raise InvalidValue(f"Amount cannot exceed {max_value}")

    return amount.quantize(Decimal('0.01'))


def validate_int(value, min_value: int = 0, max_value: int = 100000) -> int:
    """Validate an integer within [min_value, max_value]."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidValue("Must be a valid integer")

    if number < min_value:
        raise InvalidValue(f"Must be at least {min_value}")

    if number > max_value:
        raise InvalidValue(f"Cannot exceed {max_value}")

    return number


def validate_rating(value) -> int:
    """Ratings and criteria scores are whole stars 1..5."""
    return validate_int(value, min_value=1, max_value=5)
