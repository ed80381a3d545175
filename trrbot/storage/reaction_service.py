"""
Reaction service

Manages trigger text to reaction mappings and decides which reactions a
message should receive.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from trrbot.core.error_handler import ValidationError
from trrbot.utils.validation import validate_trigger_text
from .database import BotDatabase, ReactionMapping

CSV_HEADER = "ID,トリガーテキスト,リアクション,使用回数,作成日時,更新日時"


def distinct_reactions(mappings: Iterable[ReactionMapping]) -> List[str]:
    """Reactions of ``mappings`` without repeats, in first-seen order."""
    reactions: List[str] = []
    for mapping in mappings:
        if mapping.reaction not in reactions:
            reactions.append(mapping.reaction)
    return reactions


def _escape_csv(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def mappings_to_csv(mappings: Sequence[ReactionMapping]) -> str:
    """
    Render mappings as CSV

    Args:
        mappings: Mappings to export

    Returns:
        CSV text with a header row
    """
    rows = [CSV_HEADER]
    for mapping in mappings:
        rows.append(
            f"{mapping.id},{_escape_csv(mapping.trigger_text)},{mapping.reaction},"
            f"{mapping.usage_count},{mapping.created_at.isoformat()},{mapping.updated_at.isoformat()}"
        )
    return '\n'.join(rows)


class ReactionService:
    """Reaction mapping operations"""

    def __init__(self, database: BotDatabase):
        self.database = database
        self.logger = logging.getLogger("trrbot.reaction_service")

    async def get_all_reaction_mappings(self) -> List[ReactionMapping]:
        return await self.database.get_all_reaction_mappings()

    async def add_reaction_mapping(self, trigger_text: str, reaction: str) -> ReactionMapping:
        """
        Add a mapping

        Args:
            trigger_text: Text that triggers the reaction
            reaction: Emoji, with or without ``:`` delimiters

        Raises:
            ValidationError: Invalid trigger text or empty reaction
        """
        trigger = validate_trigger_text(trigger_text)
        if not reaction.strip():
            raise ValidationError(
                "Reaction is empty",
                "リアクションを入力してください",
                field="reaction"
            )

        mapping = await self.database.create_reaction_mapping(trigger, reaction.strip())
        self.logger.info(f"Reaction mapping added: {trigger} -> {mapping.reaction}")
        return mapping

    async def remove_reaction_mapping(self, trigger_text: str, reaction: str) -> bool:
        return await self.database.delete_reaction_mapping(trigger_text.strip(), reaction.strip())

    async def increment_reaction_usage(self, trigger_text: str, reaction: str) -> bool:
        return await self.database.increment_reaction_usage(trigger_text, reaction)

    async def get_matching_mappings(
        self,
        message_text: str,
        mappings: Optional[Sequence[ReactionMapping]] = None
    ) -> List[ReactionMapping]:
        """
        Mappings whose trigger text occurs in ``message_text``

        Args:
            message_text: Message to match against
            mappings: Preloaded mappings; loaded from the database when omitted
        """
        if mappings is None:
            mappings = await self.get_all_reaction_mappings()
        return [mapping for mapping in mappings if mapping.trigger_text in message_text]

    async def export_csv(self) -> Optional[str]:
        """CSV of every mapping, or None when there is nothing to export"""
        mappings = await self.get_all_reaction_mappings()
        if not mappings:
            return None
        return mappings_to_csv(mappings)
