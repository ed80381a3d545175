"""
User input validation

Trigger texts, group names and item texts share one rule set and differ only
in their maximum length. Each validator returns the trimmed text or raises
ValidationError.
"""

import re

from trrbot.core.error_handler import ValidationError

MAX_TRIGGER_TEXT_LENGTH = 100
MAX_GROUP_NAME_LENGTH = 50
MAX_ITEM_TEXT_LENGTH = 200

# C0/C1 control characters except tab, newline and carriage return
CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]')

# Trimmed from both ends. Unlike str.strip(), leaves \x1c-\x1f and \x85 for the control check
WHITESPACE_CHARS = (
    " \t\n\r\x0b\x0c\u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005"
    "\u2006\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def _validate_text(text: str, label: str, max_length: int, field: str) -> str:
    trimmed = text.strip(WHITESPACE_CHARS)

    if not trimmed:
        raise ValidationError(
            f"{field} is empty",
            f"{label}を入力してください",
            field=field
        )

    if len(trimmed) > max_length:
        raise ValidationError(
            f"{field} is too long ({len(trimmed)} > {max_length})",
            f"{label}は{max_length}文字以内で入力してください",
            field=field,
            length=len(trimmed),
            max_length=max_length
        )

    if CONTROL_CHAR_PATTERN.search(trimmed):
        raise ValidationError(
            f"{field} contains control characters",
            f"{label}に不正な制御文字が含まれています",
            field=field
        )

    return trimmed


def validate_trigger_text(text: str) -> str:
    """
    Validate the trigger text of a reaction mapping.

    Args:
        text: Raw trigger text

    Returns:
        The trimmed trigger text

    Raises:
        ValidationError: Empty, longer than 100 characters, or containing control characters
    """
    return _validate_text(text, "トリガーテキスト", MAX_TRIGGER_TEXT_LENGTH, "trigger_text")


def validate_group_name(name: str) -> str:
    """
    Validate a group name.

    Args:
        name: Raw group name

    Returns:
        The trimmed group name

    Raises:
        ValidationError: Empty, longer than 50 characters, or containing control characters
    """
    return _validate_text(name, "グループ名", MAX_GROUP_NAME_LENGTH, "group_name")


def validate_item_text(text: str) -> str:
    """
    Validate a group item.

    Args:
        text: Raw item text

    Returns:
        The trimmed item text

    Raises:
        ValidationError: Empty, longer than 200 characters, or containing control characters
    """
    return _validate_text(text, "アイテムテキスト", MAX_ITEM_TEXT_LENGTH, "item_text")
