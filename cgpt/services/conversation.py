"""
Conversation service
Runs one turn: load history, ask the API, and hand back the updated conversation
"""
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from cgpt.models.chat import Conversation, Message
from cgpt.services.chat_client import ChatClient, build_messages
from cgpt.services.storage import ConversationStorage
from cgpt.utils.validation import truncate_text

logger = logging.getLogger(__name__)


class Exchange(BaseModel):
    """Result of one turn"""
    conversation: List[Message] = Field(..., description="History followed by the user message and the reply")
    reply: Message = Field(..., description="Assistant message taken from the first choice")


class ConversationService:
    """Ties the history store and the chat client together"""

    def __init__(self, storage: ConversationStorage, client: ChatClient):
        self.storage = storage
        self.client = client

    async def send(self, text: str, chat_id: Optional[str] = None) -> Exchange:
        """
        Send a message in the context of a stored conversation
        The returned conversation is the history followed by the user message and the reply
        """
        logger.info(f"Processing message for conversation {chat_id or '<none>'}: {truncate_text(text)}")

        history = await self.storage.load(chat_id)
        user_message = Message.user(text)
        conversation = build_messages(history, user_message)

        reply = await self.client.complete(history, user_message)
        conversation.append(reply)

        return Exchange(conversation=conversation, reply=reply)

    async def ask(self, text: str, system_prompt: Optional[str] = None) -> Exchange:
        """Send a message with no stored history, optionally after a system prompt"""
        logger.info(f"Processing message without history: {truncate_text(text)}")

        history: Conversation = [Message.system(system_prompt)] if system_prompt else []
        user_message = Message.user(text)
        conversation = build_messages(history, user_message)

        reply = await self.client.complete(history, user_message)
        conversation.append(reply)

        return Exchange(conversation=conversation, reply=reply)

    async def persist(self, chat_id: Optional[str], conversation: Conversation) -> bool:
        """Save the full conversation under chat_id; a no-op without an ID"""
        return await self.storage.save(chat_id, conversation)
