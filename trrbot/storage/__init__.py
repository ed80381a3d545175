"""SQLite storage and the services built on it."""

from .database import BotDatabase, Group, GroupItem, ReactionMapping
from .group_service import GroupService
from .reaction_service import ReactionService

__all__ = [
    'BotDatabase',
    'Group',
    'GroupItem',
    'ReactionMapping',
    'GroupService',
    'ReactionService',
]
