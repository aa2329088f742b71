"""
Input validation utilities for cgpt
"""
import re
import logging

logger = logging.getLogger(__name__)

# Conversation IDs become file names, so keep them to a safe alphabet
CHAT_ID_PATTERN = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9._-]{0,127}")


def truncate_text(text: str, max_length: int = 50) -> str:
    """
    Truncate text to maximum length, for log previews
    """
    if not text:
        return ""

    if len(text) <= max_length:
        return text

    return text[:max_length] + "..."


def is_valid_chat_id(chat_id: str) -> bool:
    """
    Check that a conversation ID is usable as a file name
    """
    if not chat_id:
        return False
    return CHAT_ID_PATTERN.fullmatch(chat_id) is not None


def validate_chat_id(chat_id: str) -> str:
    """
    Return the conversation ID unchanged, or raise ValueError if it is not usable
    """
    if not is_valid_chat_id(chat_id):
        raise ValueError(
            f"Invalid conversation ID {chat_id!r}: use letters, digits, '.', '_' or '-' "
            "and do not start with '.'"
        )
    return chat_id


def validate_message_text(text: str) -> str:
    """
    Reject blank messages; anything else is sent exactly as written
    """
    if not text.strip():
        raise ValueError("Message text must not be empty")
    return text
