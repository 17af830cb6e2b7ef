import logging
from typing import Callable, Literal, Optional

logger = logging.getLogger(__name__)

InventoryEvent = Literal["added", "removed"]
InventoryListener = Callable[[InventoryEvent, str], None]

class Inventory:
    """The items the player carries. Each item ID is held at most once."""
    def __init__(self, items: Optional[list[str]] = None):
        self.items: list[str] = []
        self.listeners: list[InventoryListener] = []
        for item_id in items or []:
            if item_id and item_id not in self.items:
                self.items.append(item_id)

    def subscribe(self, listener: InventoryListener):
        if listener not in self.listeners:
            self.listeners.append(listener)

    def unsubscribe(self, listener: InventoryListener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def add_item(self, item_id: str):
        if not item_id or not item_id.strip():
            logger.warning("Attempted to add item with empty ID.")
            return

        if item_id in self.items:
            logger.debug("Item %s already in inventory.", item_id)
            return

        self.items.append(item_id)
        logger.info("Added: %s", item_id)
        self.notify("added", item_id)

    def remove_item(self, item_id: str):
        if not item_id or not item_id.strip():
            logger.warning("Attempted to remove item with empty ID.")
            return

        if item_id in self.items:
            self.items.remove(item_id)
            logger.info("Removed: %s", item_id)
            self.notify("removed", item_id)

    def has_item(self, item_id: str) -> bool:
        return item_id in self.items

    def clear(self):
        for item_id in list(self.items):
            self.remove_item(item_id)

    def notify(self, event: InventoryEvent, item_id: str):
        for listener in list(self.listeners):
            listener(event, item_id)

    def __len__(self) -> int:
        return len(self.items)
