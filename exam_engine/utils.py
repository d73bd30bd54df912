"""Utility functions for sanitization and validation."""

import bleach


def sanitize_prompt(text: str) -> str:
    """Sanitize question prompt text to prevent XSS attacks.

    Allows basic formatting tags but removes script/dangerous content.
    """
    allowed_tags = ["b", "i", "u", "em", "strong", "p", "br", "code", "pre", "ul", "ol", "li"]
    sanitized = bleach.clean(text or "", tags=allowed_tags, attributes={}, strip=True)
    return sanitized.strip()


def sanitize_plain(text: str) -> str:
    """Strip all HTML, leaving plain text (titles, options, matching items)."""
    return bleach.clean(text or "", tags=[], strip=True).strip()


def validate_marks(marks: int, max_marks: int = 100) -> bool:
    """Validate that a question's marks value is within range.

    Raises:
        ValueError: If marks is not an integer in [1, max_marks]
    """
    if isinstance(marks, bool) or not isinstance(marks, int):
        raise ValueError("marks must be an integer")
    if marks < 1 or marks > max_marks:
        raise ValueError(f"Marks {marks} out of range [1, {max_marks}]")
    return True
