"""
Group service

Validation and lookups on top of BotDatabase. Lookups of groups that may not
exist return None or an empty result; only invalid input and storage faults
raise.
"""

import logging
from typing import List, Optional, Sequence

from trrbot.core.error_handler import ValidationError
from trrbot.utils.random_utils import random_item
from trrbot.utils.validation import validate_group_name, validate_item_text
from .database import BotDatabase, Group, GroupItem


class GroupService:
    """Group and group item operations"""

    def __init__(self, database: BotDatabase):
        """
        Initialize the service

        Args:
            database: Backing database
        """
        self.database = database
        self.logger = logging.getLogger("trrbot.group_service")

    async def get_all_groups(self) -> List[Group]:
        return await self.database.get_all_groups()

    async def get_group_by_name(self, name: str) -> Optional[Group]:
        """
        Look up a group

        Args:
            name: Group name

        Returns:
            The group, or None if it does not exist
        """
        return await self.database.get_group_by_name(name.strip())

    async def create_group(self, name: str) -> Group:
        """
        Create a group

        Raises:
            ValidationError: Invalid or duplicate name
        """
        group_name = validate_group_name(name)
        group = await self.database.create_group(group_name)
        self.logger.info(f"Group created: {group_name}")
        return group

    async def delete_group(self, name: str) -> bool:
        deleted = await self.database.delete_group_by_name(name.strip())
        if deleted:
            self.logger.info(f"Group deleted: {name}")
        return deleted

    async def get_items(self, group_name: str) -> List[GroupItem]:
        """Items of a group; empty when the group is missing or has no items"""
        return await self.database.get_items_by_group_name(group_name.strip())

    async def add_items(self, group_name: str, item_texts: Sequence[str]) -> List[GroupItem]:
        """
        Add items to an existing group in one transaction

        Args:
            group_name: Target group
            item_texts: Raw item texts

        Returns:
            The stored items

        Raises:
            ValidationError: Invalid item, no items, or unknown group
        """
        items = [validate_item_text(text) for text in item_texts]
        if not items:
            raise ValidationError(
                "No items to add",
                "追加するアイテムを指定してください。",
                group_name=group_name
            )

        group = await self.get_group_by_name(group_name)
        if group is None:
            raise ValidationError(
                f"Group not found: {group_name}",
                f'グループ "{group_name}" は存在しません。先に `group create {group_name}` で作成してください。',
                group_name=group_name
            )

        added = await self.database.add_items(group.id, items)
        self.logger.info(f"Added {len(added)} items to group {group.name}")
        return added

    async def remove_item(self, group_name: str, item_text: str) -> bool:
        return await self.database.delete_item(group_name.strip(), item_text.strip())

    async def clear_items(self, group_name: str) -> bool:
        return await self.database.clear_items(group_name.strip())

    async def get_random_item(
        self,
        group_name: str,
        exclude_items: Sequence[str] = ()
    ) -> Optional[str]:
        """
        Pick a random item text from a group

        Args:
            group_name: Group to pick from
            exclude_items: Item texts that must not be picked

        Returns:
            The picked text, or None when the group is missing, empty, or
            every item is excluded
        """
        items = await self.get_items(group_name)
        excluded = set(exclude_items)
        candidates = [item.item_text for item in items if item.item_text not in excluded]
        return random_item(candidates)
