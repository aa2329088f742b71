"""
Storage service for cgpt conversations
Keeps each conversation as a JSON file named after its ID
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from cgpt.errors import StorageCorrupt, StorageReadDegraded, StorageWriteError
from cgpt.models.chat import Conversation, dump_conversation, parse_conversation
from cgpt.utils.validation import validate_chat_id

logger = logging.getLogger(__name__)

HISTORY_SUFFIX = ".json"


class ConversationStorage:
    """
    Base class for conversation storage
    A missing conversation ID means no persistence: loads are empty and saves are skipped
    """

    @staticmethod
    def create_file_storage(base_dir: Union[str, Path]) -> 'FileStorage':
        """Factory method to create file storage"""
        return FileStorage(base_dir)

    @staticmethod
    def create_memory_storage() -> 'InMemoryStorage':
        """Factory method to create in-memory storage"""
        return InMemoryStorage()

    async def load(self, chat_id: Optional[str]) -> Conversation:
        """Get conversation history by ID"""
        raise NotImplementedError("Storage implementation must override load")

    async def save(self, chat_id: Optional[str], conversation: Conversation) -> bool:
        """Save conversation history, returning False when there is no ID to save under"""
        raise NotImplementedError("Storage implementation must override save")

    async def exists(self, chat_id: str) -> bool:
        """Check whether a conversation has been saved"""
        raise NotImplementedError("Storage implementation must override exists")

    async def list_conversations(self) -> List[str]:
        """IDs of all saved conversations, sorted"""
        raise NotImplementedError("Storage implementation must override list_conversations")


class FileStorage(ConversationStorage):
    """File-based persistent storage for conversations"""

    def __init__(self, base_dir: Union[str, Path]):
        """Initialize file storage rooted at base_dir; the directory is not created"""
        self.base_dir = Path(base_dir).expanduser()

    def location_for(self, chat_id: Optional[str]) -> Optional[Path]:
        """File holding the conversation, or None when there is no ID"""
        if not chat_id:
            return None
        return self.base_dir / f"{validate_chat_id(chat_id)}{HISTORY_SUFFIX}"

    def _read_bytes(self, path: Path) -> Optional[bytes]:
        """File content, None when the file does not exist"""
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageReadDegraded(f"Could not read {path}: {e}") from e

    async def load(self, chat_id: Optional[str]) -> Conversation:
        """
        Load conversation history from its file
        Absent or unreadable history starts an empty conversation; unparseable
        content raises StorageCorrupt so a real conversation is never dropped silently
        """
        path = self.location_for(chat_id)
        if path is None:
            return []

        try:
            raw = self._read_bytes(path)
        except StorageReadDegraded as e:
            logger.warning(f"{e}; starting conversation {chat_id} empty")
            return []

        if raw is None:
            logger.info(f"No history for conversation {chat_id} at {path}, starting empty")
            return []

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Error decoding conversation {chat_id}: {e}")
            raise StorageCorrupt(f"History file {path} is not valid UTF-8") from e

        try:
            conversation = parse_conversation(text)
        except ValidationError as e:
            logger.error(f"Error decoding conversation {chat_id}: {e}")
            raise StorageCorrupt(f"History file {path} is corrupt: {e.error_count()} validation error(s)") from e

        logger.info(f"Loaded {len(conversation)} messages for conversation {chat_id}")
        return conversation

    async def save(self, chat_id: Optional[str], conversation: Conversation) -> bool:
        """Overwrite the conversation file with the full history"""
        path = self.location_for(chat_id)
        if path is None:
            logger.info("No conversation ID, history not saved")
            return False

        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(dump_conversation(conversation))
        except OSError as e:
            logger.error(f"Error saving conversation {chat_id}: {e}")
            raise StorageWriteError(f"Could not save conversation to {path}: {e}") from e

        logger.info(f"Saved {len(conversation)} messages for conversation {chat_id} to {path}")
        return True

    async def exists(self, chat_id: str) -> bool:
        path = self.location_for(chat_id)
        return path is not None and path.is_file()

    async def list_conversations(self) -> List[str]:
        if not self.base_dir.is_dir():
            return []
        try:
            return sorted(p.stem for p in self.base_dir.glob(f"*{HISTORY_SUFFIX}") if p.is_file())
        except OSError as e:
            logger.warning(f"Could not list conversations in {self.base_dir}: {e}")
            return []


class InMemoryStorage(ConversationStorage):
    """Process-local storage, used when nothing should touch the disk"""

    def __init__(self):
        self.conversations: Dict[str, Conversation] = {}

    async def load(self, chat_id: Optional[str]) -> Conversation:
        if not chat_id:
            return []
        return list(self.conversations.get(chat_id, []))

    async def save(self, chat_id: Optional[str], conversation: Conversation) -> bool:
        if not chat_id:
            return False
        self.conversations[chat_id] = list(conversation)
        return True

    async def exists(self, chat_id: str) -> bool:
        return chat_id in self.conversations

    async def list_conversations(self) -> List[str]:
        return sorted(self.conversations)
