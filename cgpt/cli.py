#!/usr/bin/env python3
"""
Command-line interface for cgpt

Usage:
    cgpt send -m MESSAGE [-i ID] [--no-save]
    cgpt ask -m MESSAGE [-s SYSTEM_PROMPT]
    cgpt checkout ID
    cgpt show [ID]
    cgpt list
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from cgpt.config import DEFAULT_SAVE_DIRECTORY, ConfigStore, Settings, get_settings
from cgpt.errors import CgptError, StorageWriteError
from cgpt.logging_config import setup_logging
from cgpt.models.config import CliConfig
from cgpt.services.chat_client import ChatClient
from cgpt.services.conversation import ConversationService
from cgpt.services.storage import ConversationStorage
from cgpt.utils.validation import validate_chat_id, validate_message_text

logger = logging.getLogger(__name__)

# Commands that talk to the API and therefore need a token
API_COMMANDS = ("send", "ask")


def chat_id_arg(value: str) -> str:
    """argparse type for conversation IDs"""
    try:
        return validate_chat_id(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def message_arg(value: str) -> str:
    """argparse type for message text"""
    try:
        return validate_message_text(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def create_client(settings: Settings, token: str) -> ChatClient:
    """Build the API client from settings"""
    return ChatClient(token, model=settings.CGPT_MODEL, timeout=settings.CGPT_TIMEOUT)


def create_config_store(settings: Settings) -> ConfigStore:
    return ConfigStore(
        settings.CGPT_CONFIG_PATH,
        default_save_directory=DEFAULT_SAVE_DIRECTORY,
        save_directory_override=settings.SAVE_PATH,
    )


async def send_command(args, settings: Settings, config: CliConfig, token: str) -> int:
    """Send a message within a conversation and save the result"""
    chat_id = args.id or config.current_chat_id
    save = chat_id is not None and not args.no_save

    storage = ConversationStorage.create_file_storage(config.save_directory)
    if save:
        try:
            storage.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageWriteError(f"Could not create save directory {storage.base_dir}: {e}") from e

    service = ConversationService(storage, create_client(settings, token))
    exchange = await service.send(args.message, chat_id)

    # Print first so a failed save never hides the answer
    print(exchange.reply.content, flush=True)

    if save:
        await service.persist(chat_id, exchange.conversation)
    else:
        logger.info("History not saved")
    return 0


async def ask_command(args, settings: Settings, config: CliConfig, token: str) -> int:
    """Send a one-off message without loading or saving history"""
    service = ConversationService(ConversationStorage.create_memory_storage(), create_client(settings, token))
    exchange = await service.ask(args.message, args.system)
    print(exchange.reply.content, flush=True)
    return 0


async def checkout_command(args, settings: Settings, store: ConfigStore) -> int:
    """Make a conversation the default for later sends"""
    stored = store.load(apply_override=False)
    store.save(stored.model_copy(update={"current_chat_id": args.id}))

    storage = ConversationStorage.create_file_storage(store.load().save_directory)
    if await storage.exists(args.id):
        print(f"Switched to conversation {args.id}")
    else:
        print(f"Switched to new conversation {args.id}")
    return 0


async def show_command(args, settings: Settings, config: CliConfig) -> int:
    """Print a stored conversation"""
    chat_id = args.id or config.current_chat_id
    if not chat_id:
        print("error: no conversation ID given and none checked out", file=sys.stderr)
        return 2

    storage = ConversationStorage.create_file_storage(config.save_directory)
    conversation = await storage.load(chat_id)

    print(f"Conversation: {chat_id}")
    print("=" * 60)
    if not conversation:
        print("(no messages)")
    for message in conversation:
        print(f"[{message.role.value}]")
        print(message.content)
        print()
    return 0


async def list_command(args, settings: Settings, config: CliConfig) -> int:
    """List stored conversations, marking the checked-out one"""
    storage = ConversationStorage.create_file_storage(config.save_directory)
    chat_ids = await storage.list_conversations()

    if not chat_ids:
        print(f"No saved conversations in {Path(config.save_directory).expanduser()}")
        return 0

    for chat_id in chat_ids:
        marker = "*" if chat_id == config.current_chat_id else " "
        print(f"{marker} {chat_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cgpt",
        description="Chat with a chat completion API from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    subparsers.required = True

    # Send command
    send_parser = subparsers.add_parser("send", help="Send a message within a conversation")
    send_parser.add_argument("-m", "--message", type=message_arg, required=True, help="Message text")
    send_parser.add_argument(
        "-i", "--id",
        type=chat_id_arg,
        help="Conversation ID (defaults to the checked-out conversation)",
    )
    send_parser.add_argument(
        "--no-save",
        action="store_true",
        help="Use the conversation history but do not save this turn",
    )

    # Ask command
    ask_parser = subparsers.add_parser("ask", help="Send a message without any history")
    ask_parser.add_argument("-m", "--message", type=message_arg, required=True, help="Message text")
    ask_parser.add_argument("-s", "--system", help="System prompt sent before the message")

    # Checkout command
    checkout_parser = subparsers.add_parser("checkout", help="Switch the default conversation")
    checkout_parser.add_argument("id", type=chat_id_arg, help="Conversation ID")

    # Show command
    show_parser = subparsers.add_parser("show", help="Print a stored conversation")
    show_parser.add_argument("id", nargs="?", type=chat_id_arg, help="Conversation ID")

    # List command
    subparsers.add_parser("list", help="List stored conversations")

    return parser


async def dispatch(args, settings: Settings, token: Optional[str]) -> int:
    store = create_config_store(settings)
    if args.command == "checkout":
        return await checkout_command(args, settings, store)

    config = store.load()
    if args.command == "send":
        return await send_command(args, settings, config, token)
    if args.command == "ask":
        return await ask_command(args, settings, config, token)
    if args.command == "show":
        return await show_command(args, settings, config)
    return await list_command(args, settings, config)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point, returns the exit status"""
    load_dotenv(find_dotenv(usecwd=True))

    parser = build_parser()
    args = parser.parse_args(argv)

    logging_ready = False
    try:
        settings = get_settings()

        # Credentials are checked before any file or network activity
        token = settings.require_token() if args.command in API_COMMANDS else None

        setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)
        logging_ready = True

        return asyncio.run(dispatch(args, settings, token))
    except CgptError as e:
        if logging_ready:
            logger.error(f"{type(e).__name__}: {e}", extra={"console": False})
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("\ninterrupted", file=sys.stderr)
        return 130


def run() -> None:
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    run()
