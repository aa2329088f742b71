"""
Chat-related data models
Mirrors the message and response shapes of the chat completion API
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from cgpt.errors import EmptyResponseError


class Role(str, Enum):
    """
    Author of a message
    Compares as its lowercase name; the ordering has no meaning in a conversation
    """
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """Single message of a conversation"""
    model_config = ConfigDict(frozen=True)

    role: Role = Field(..., description="Message role: 'system', 'user' or 'assistant'")
    content: str = Field(..., description="Message content")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)


# A conversation is the ordered list of messages, oldest first
Conversation = List[Message]

_conversation_adapter = TypeAdapter(List[Message])


def dump_conversation(conversation: Conversation) -> str:
    """Serialize a conversation to a JSON array of {role, content} objects"""
    return _conversation_adapter.dump_json(list(conversation), indent=2).decode("utf-8")


def parse_conversation(data) -> Conversation:
    """
    Parse a JSON array of {role, content} objects
    Raises pydantic.ValidationError when the data is not a valid conversation
    """
    return _conversation_adapter.validate_json(data)


class Usage(BaseModel):
    """Token counts reported by the API"""
    completion_tokens: int = Field(..., description="Tokens in the generated completion")
    prompt_tokens: int = Field(..., description="Tokens in the prompt")
    total_tokens: int = Field(..., description="Total tokens used by the request")


class MessageChoice(BaseModel):
    """One candidate completion"""
    index: int = Field(..., description="Position of the choice in the response")
    message: Message = Field(..., description="Generated message")
    finish_reason: Optional[str] = Field(None, description="Why generation stopped")


class MessageResponse(BaseModel):
    """Raw chat completion response"""
    id: str = Field(..., description="Completion ID")
    object: str = Field(..., description="Object type, e.g. 'chat.completion'")
    created: int = Field(..., description="Unix timestamp of creation")
    choices: List[MessageChoice] = Field(..., description="Candidate completions")
    usage: Usage = Field(..., description="Token usage for the request")

    def to_messages(self) -> Conversation:
        """Messages of every choice, in choice order"""
        return [choice.message for choice in self.choices]

    def first_message(self) -> Message:
        """
        Message of the first choice
        Raises EmptyResponseError when the response holds no choices
        """
        messages = self.to_messages()
        if not messages:
            raise EmptyResponseError(f"Response {self.id} contained no choices")
        return messages[0]
