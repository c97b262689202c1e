"""
Bob CLI entry point.

Provides command-line interface for running the bot and utility commands.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from bobbot import __version__
from bobbot.config.logging import get_logger, setup_logging
from bobbot.config.settings import Settings, get_settings, load_settings


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="bobbot",
        description="Discord chat bot backed by a local LLM with tool use",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Bob {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Run the Discord bot")
    subparsers.add_parser("config", help="Show current configuration")

    ask_parser = subparsers.add_parser(
        "ask",
        help="Send one prompt through the agent and print reasoning and answer",
    )
    ask_parser.add_argument("prompt", help='Prompt to send, e.g. "What can you do?"')
    ask_parser.add_argument(
        "--user-id",
        default=None,
        help="Caller id the prompt is attributed to (default: the superuser)",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    from bobbot.storage import JsonStorage

    runtime = JsonStorage(settings.data_dir).load_settings()

    logger.info("\n=== Bob Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"Data Dir: {settings.data_dir}")
    logger.info(f"\nBot Name: {settings.bot.name}")
    logger.info(f"Bot Token: {'Set' if settings.bot.token else 'Not set'}")
    logger.info(f"Superuser: {settings.bot.superuser_id or 'Not set'}")
    logger.info(f"Trigger Word: {settings.bot.trigger_word}")
    logger.info(f"\nAI URL: {runtime.ai_url or 'Not set'}")
    logger.info(f"AI Model: {runtime.ai_model or 'Not set'}")
    logger.info(f"Chat Channel: {runtime.chat_channel_id or 'Not set'}")
    logger.info(f"Admins: {', '.join(sorted(runtime.admin_user_ids)) or 'None'}")
    logger.info(f"Thought Recipients: {', '.join(sorted(runtime.thought_recipient_ids)) or 'None'}")
    logger.info(f"\nLLM Timeout: {settings.llm.timeout_seconds}s")
    logger.info(f"Memory Window: {settings.agent.memory_window}")
    logger.info(
        f"Tool Call Limits: {settings.agent.max_total_tool_calls} total, "
        f"{settings.agent.max_calls_per_signature} per signature"
    )

    return 0


def cmd_run(settings: Settings) -> int:
    """Start the Discord bot."""
    logger = get_logger(__name__)

    if not settings.bot.token:
        logger.error("Discord bot token not set. Add BOT__TOKEN=<your-token> to your .env file.")
        return 1

    if not settings.bot.superuser_id:
        logger.warning(
            "Superuser not set (BOT__SUPERUSER_ID). "
            "Nobody will be able to use /ai until an admin is added to settings.json."
        )

    from bobbot.bot import BobBot

    bot = BobBot(settings)
    logger.info(f"Starting {settings.bot.name}...")
    # log_handler=None: disable discord.py's default logging setup and use ours
    bot.run(settings.bot.token, log_handler=None)
    return 0


async def cmd_ask(args, settings: Settings) -> int:
    """
    Run one generation call outside Discord.

    Uses the same runtime settings, tools and prompt as the bot, so it is a
    quick way to check that the configured endpoint and model answer.
    """
    logger = get_logger(__name__)

    from bobbot.llm import AgentOrchestrator, GenerationStatus
    from bobbot.services import AdminPolicy, PaginationService
    from bobbot.storage import JsonStorage
    from bobbot.tools import ToolRegistry
    from bobbot.tools.builtin import core_tools

    storage = JsonStorage(settings.data_dir)
    admin_policy = AdminPolicy(storage, settings.bot.superuser_id)
    pagination = PaginationService(settings.agent.max_paged_sessions)
    registry = ToolRegistry(settings.agent.tool_workers)
    registry.register_all(
        core_tools(
            storage, pagination, admin_policy,
            page_size=settings.agent.page_size, data_dir=settings.data_dir,
        )
    )

    caller_id = args.user_id or settings.bot.superuser_id or "cli"
    async with registry:
        orchestrator = AgentOrchestrator(
            storage=storage,
            llm_settings=settings.llm,
            agent_settings=settings.agent,
            tool_adapter=registry,
            pagination=pagination,
            admin_policy=admin_policy,
            data_dir=settings.data_dir,
        )
        outcome = await orchestrator.generate(args.prompt, caller_id, conversation_id="cli")

    if outcome.reasoning:
        print("\n--- Reasoning ---")
        print(outcome.reasoning)
    print("\n--- Answer ---")
    print(outcome.content)

    if outcome.pagination_id:
        session = pagination.get(outcome.pagination_id)
        if session is not None:
            print(f"\n--- {session.title} ({session.page_count} pages) ---")
            for number, page in enumerate(session.pages, start=1):
                print(f"[Page {number}]")
                print(page, end="")

    if outcome.tool_calls:
        print("\n--- Tool Calls ---")
        for call in outcome.tool_calls:
            print(f"{call.sequence}. {call.name}({call.arguments}) -> {call.result[:200]}")

    logger.info(
        f"Status: {outcome.status.value}, tokens: {outcome.usage.total_tokens}, "
        f"model: {outcome.model or 'n/a'}"
    )
    return 0 if outcome.status == GenerationStatus.COMPLETED else 1


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    # Load settings
    try:
        if args.env_file:
            load_settings(env_file=args.env_file)
        settings = get_settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "run":
        return cmd_run(settings)
    elif args.command == "ask":
        return asyncio.run(cmd_ask(args, settings))
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
