"""trrbot - a Discord bot for random choices, dice, groups and automatic reactions."""

__version__ = "1.0.0"
