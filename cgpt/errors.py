"""
Error types for cgpt
Each fatal error kind carries the exit status the CLI reports for it
"""
from typing import Optional


class CgptError(Exception):
    """Base class for all cgpt errors"""
    exit_code = 1


class ConfigError(CgptError):
    """Required configuration or credentials are missing or invalid"""
    exit_code = 3


class StorageReadDegraded(CgptError):
    """
    Stored history could not be read
    Never leaves the history store: the conversation starts empty instead
    """


class StorageCorrupt(CgptError):
    """Stored history exists but cannot be parsed"""
    exit_code = 4


class StorageWriteError(CgptError):
    """Conversation history could not be written"""
    exit_code = 5


class NetworkError(CgptError):
    """The request to the API failed at the transport level"""
    exit_code = 6


class ApiError(CgptError):
    """The API answered with a non-success HTTP status"""
    exit_code = 7

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(CgptError):
    """The API response body is not a valid chat completion"""
    exit_code = 8


class EmptyResponseError(CgptError):
    """The API response contains no choices"""
    exit_code = 9
