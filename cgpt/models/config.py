"""
Persisted CLI state
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cgpt.utils.validation import validate_chat_id


class CliConfig(BaseModel):
    """Where conversations are saved and which one is checked out"""
    save_directory: str = Field(..., description="Directory holding conversation files")
    current_chat_id: Optional[str] = Field(None, description="Conversation used when no ID is given")

    @field_validator("current_chat_id")
    @classmethod
    def validate_current_chat_id(cls, v):
        """The checked-out ID must be usable as a file name"""
        if v is None:
            return v
        return validate_chat_id(v)
