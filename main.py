#!/usr/bin/env python3
"""
trrbot - Discord bot for random choices, dice, groups and automatic reactions

Entry point: loads configuration, sets up logging, builds the bot and runs it
until it is stopped.
"""
import logging

import yaml

from trrbot.bot import TrrBot
from trrbot.utils.config_manager import ConfigManager
from trrbot.utils.logger import setup_logger


def main() -> int:
    """
    trrbot entry point

    Returns:
        int: Exit code (0 on a clean stop, 1 on error)
    """
    # defaults until the configuration says otherwise
    setup_logger()
    logger = logging.getLogger("trrbot")

    try:
        config = ConfigManager()
    except yaml.YAMLError as e:
        logger.error(f"Configuration file is not valid YAML: {e}")
        return 1

    setup_logger(
        log_level=config.get_log_level(),
        log_file=config.get_log_file(),
        max_size=config.get_log_max_size(),
        backup_count=config.get_log_backup_count()
    )
    logger.info("=" * 60)
    logger.info("trrbot starting...")
    logger.info("=" * 60)
    logger.debug(f"Logging configured - level: {config.get_log_level()}, file: {config.get_log_file()}")

    try:
        try:
            discord_token = config.get_discord_token()
        except ValueError as e:
            logger.error(f"Discord token is not configured: {e}")
            logger.error("Set DISCORD_TOKEN or discord.token in config/config.yaml")
            return 1

        bot = TrrBot(config)
        _log_bot_configuration(logger, config)

        logger.info("Press Ctrl+C to stop the bot")
        bot.run(discord_token)

    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")
        return 0
    except Exception as e:
        logger.error(f"Unexpected error while running the bot: {e}", exc_info=True)
        return 1

    return 0


def _log_bot_configuration(logger: logging.Logger, config: ConfigManager) -> None:
    """
    Log a configuration summary

    Args:
        logger: Logger instance
        config: Configuration manager
    """
    logger.info("Bot configuration:")
    logger.info(f"   Mention name: {config.get_mention_name()}")
    logger.info(f"   Database: {config.get_database_path()}")
    logger.info("=" * 60)


if __name__ == "__main__":
    exit(main())
