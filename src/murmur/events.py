import logging
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

Listener = TypeVar("Listener", bound=Callable[..., Any])

class EventChannel(Generic[Listener]):
    """
    An ordered list of listeners for one kind of event.
    Listeners are called in subscription order. Changes made during an
    emission take effect from the next emission.
    """
    def __init__(self, name: str):
        self.name = name
        self.listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Listener:
        self.listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def emit(self, *args: Any):
        logger.debug("Event %s%r", self.name, args)
        for listener in list(self.listeners):
            listener(*args)

    def __len__(self) -> int:
        return len(self.listeners)

class DialogEvents:
    """
    Lifecycle events published by the dialog engine.

    Emission order when a node is shown:
        start commands, node_displayed(node), choices_updated(count)
    Emission order when a choice is selected:
        choice_selected(node), impact_applied(key, delta) per impact,
        end commands, then the next node is shown or dialogue_ended()
    """
    def __init__(self):
        self.node_displayed: EventChannel[Callable[[Any], None]] = EventChannel("node_displayed")
        self.dialogue_ended: EventChannel[Callable[[], None]] = EventChannel("dialogue_ended")
        self.choices_updated: EventChannel[Callable[[int], None]] = EventChannel("choices_updated")
        self.impact_applied: EventChannel[Callable[[str, int], None]] = EventChannel("impact_applied")
        self.item_given: EventChannel[Callable[[str], None]] = EventChannel("item_given")
        self.choice_selected: EventChannel[Callable[[Any], None]] = EventChannel("choice_selected")
