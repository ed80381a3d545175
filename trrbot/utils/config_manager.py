"""Configuration for TrrBot: a YAML file overlaid with environment variables."""
import logging
import os
from typing import Any, Dict, Optional
import yaml

TOKEN_PLACEHOLDER = "YOUR_DISCORD_BOT_TOKEN_HERE"

# Environment variable -> dotted config key; a set variable wins over the file
ENV_OVERRIDES = {
    'DISCORD_TOKEN': 'discord.token',
    'LOG_LEVEL': 'logging.level',
    'LOG_FILE': 'logging.file',
    'BOT_MENTION_NAME': 'bot.mention_name',
    'DATABASE_PATH': 'database.path',
}

DEFAULTS: Dict[str, Any] = {
    'bot.mention_name': '@trrbot',
    'database.path': 'data/trrbot.db',
    'logging.level': 'INFO',
    'logging.file': None,
    'logging.max_size': 10 * 1024 * 1024,
    'logging.backup_count': 5,
}


class ConfigManager:
    """
    Read-mostly view of the bot configuration.

    Keys use dot notation (``logging.level``). The file is optional so the
    bot can be deployed with environment variables only.
    """

    def __init__(self, config_path: str = "config/config.yaml"):
        """
        Args:
            config_path: YAML file to load

        Raises:
            yaml.YAMLError: The file exists but is not valid YAML
        """
        self.logger = logging.getLogger("trrbot.config")
        self.config_path = config_path
        self.config: Dict[str, Any] = self._read_file()

        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                self.set(key, value)
                self.logger.debug(f"{key} taken from ${env_name}")

    def _read_file(self) -> Dict[str, Any]:
        if not os.path.isfile(self.config_path):
            hint = f"{self.config_path}.example"
            if os.path.isfile(hint):
                self.logger.warning(
                    f"{self.config_path} is missing; copy {hint} or configure through environment variables"
                )
            else:
                self.logger.info(f"No configuration file at {self.config_path}, using environment and defaults")
            return {}

        try:
            with open(self.config_path, encoding='utf-8') as stream:
                data = yaml.safe_load(stream)
        except yaml.YAMLError as e:
            self.logger.error(f"Invalid YAML in {self.config_path}: {e}")
            raise

        self.logger.debug(f"Configuration read from {self.config_path}")
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted ``key``, or ``default`` when any segment is missing."""
        node: Any = self.config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` at dotted ``key`` in memory, creating sections as needed."""
        *sections, leaf = key.split('.')
        node = self.config
        for section in sections:
            if not isinstance(node.get(section), dict):
                node[section] = {}
            node = node[section]
        node[leaf] = value

    def _get_or_default(self, key: str) -> Any:
        return self.get(key, DEFAULTS[key])

    def get_discord_token(self) -> str:
        """
        Bot token used to log in.

        Raises:
            ValueError: No token configured, or the example placeholder left in place
        """
        token = self.get('discord.token')
        if not token or token == TOKEN_PLACEHOLDER:
            self.logger.error("discord.token is not configured")
            raise ValueError("Discord bot token not set in configuration")
        return token

    def get_log_level(self) -> str:
        return str(self._get_or_default('logging.level')).upper()

    def get_log_file(self) -> Optional[str]:
        return self._get_or_default('logging.file')

    def get_log_max_size(self) -> int:
        """Rotation threshold of the log file, in bytes."""
        return int(self._get_or_default('logging.max_size'))

    def get_log_backup_count(self) -> int:
        return int(self._get_or_default('logging.backup_count'))

    def get_mention_name(self) -> str:
        """How users address the bot; shown in help examples."""
        return self._get_or_default('bot.mention_name')

    def get_database_path(self) -> str:
        return self._get_or_default('database.path')
