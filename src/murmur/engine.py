import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from .commands import CommandDispatcher, ItemReceiver
from .conditions import ConditionOperator, evaluate
from .content import DialogLibrary
from .dialog import ChoiceImpact, DialogChoice, DialogNode, DialogTree, Speaker
from .events import DialogEvents
from .scheduler import ManualScheduler, Scheduler, TimerHandle
from .variables import VariableStore

logger = logging.getLogger(__name__)

class ActionStatus(Enum):
    OK = "ok"
    NO_EFFECT = "no_effect"
    INVALID = "invalid"

@dataclass
class ActionResult:
    status: ActionStatus
    message: str

def ok_result(message: str) -> ActionResult:
    return ActionResult(status=ActionStatus.OK, message=message)

def no_effect_result(message: str) -> ActionResult:
    return ActionResult(status=ActionStatus.NO_EFFECT, message=message)

def invalid_result(message: str) -> ActionResult:
    return ActionResult(status=ActionStatus.INVALID, message=message)

class DialogEngine:
    """
    Runs a dialog tree.
    The engine is either idle, or showing a node and waiting for the player to
    select one of its visible choices (or to advance, when it has none).
    Choices are filtered by their show conditions, impacts are applied to the
    variable store, and node commands are dispatched as nodes are entered and left.

    Misuse and content defects are logged and ignored. The engine never raises
    from these calls and never leaves the current node half set.
    """
    def __init__(
        self,
        store: VariableStore,
        *,
        inventory: Optional[ItemReceiver] = None,
        scheduler: Optional[Scheduler] = None,
        library: Optional[DialogLibrary] = None,
        dispatcher: Optional[CommandDispatcher] = None,
        events: Optional[DialogEvents] = None,
        operators: Optional[list[ConditionOperator]] = None,
    ):
        self.store = store
        self.inventory = inventory
        self.scheduler: Scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.library = library
        self.dispatcher = dispatcher if dispatcher is not None else CommandDispatcher()
        self.events = events if events is not None else DialogEvents()
        self.operators = operators                                              # Condition language. None for the standard operators.

        self._current_tree: Optional[DialogTree] = None
        self._current_node: Optional[DialogNode] = None
        self._active = False
        self._pending_end: Optional[TimerHandle] = None
        self._transitioning = False
        self._activations = 0

    # State

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def current_node(self) -> Optional[DialogNode]:
        return self._current_node

    @property
    def current_tree(self) -> Optional[DialogTree]:
        return self._current_tree

    @property
    def current_speaker(self) -> Optional[Speaker]:
        if self._current_tree is None or self._current_node is None:
            return None
        return self._current_tree.get_speaker(self._current_node)

    @property
    def activation_count(self) -> int:
        """Increases each time a dialogue starts, including when it replaces another"""
        return self._activations

    @property
    def has_pending_end(self) -> bool:
        return self._pending_end is not None and self._pending_end.pending

    # Starting

    def start(self, tree: Optional[DialogTree]) -> bool:
        """Start a dialog tree at its start node"""
        if tree is None:
            logger.error("Tried to start null dialogue tree.")
            return False

        start_node = tree.start_node
        if start_node is None:
            logger.error("Dialogue tree '%s' has no start node.", tree.tree_id)
            return False

        self.activate(tree, start_node)
        return True

    def start_at_node(self, tree: Optional[DialogTree], node: Optional[DialogNode]) -> bool:
        """Start a dialog tree at a specific node. Used for segmented conversations."""
        if tree is None:
            logger.error("Tried to start null dialogue tree.")
            return False

        if node is None:
            logger.error("Tried to start dialogue with null start node.")
            return False

        self.activate(tree, node)
        return True

    def start_at_node_id(self, tree: Optional[DialogTree], node_id: Optional[str]) -> bool:
        """
        Start a dialog tree at the node with the given ID.
        The tree is searched first, then every tree in the library. IDs are
        compared case insensitively.
        """
        if tree is None:
            logger.error("Tried to start null dialogue tree.")
            return False

        if not node_id or not node_id.strip():
            logger.error("Tried to start dialogue with empty node ID.")
            return False

        found = self.find_node_by_id(tree, node_id)
        if found is None:
            logger.error("Could not find node with ID: %s", node_id)
            return False

        # A node found in another tree is run with the tree that owns it
        owner, node = found
        self.activate(owner, node)
        return True

    def find_node_by_id(self, tree: DialogTree, node_id: str) -> Optional[tuple[DialogTree, DialogNode]]:
        node = tree.find_node(node_id)
        if node is not None:
            return tree, node

        if self.library is not None:
            return self.library.find_node(node_id)

        return None

    def activate(self, tree: DialogTree, node: DialogNode):
        if self._active:
            logger.info("Starting dialogue '%s' replaces the active dialogue.", tree.tree_id)
        else:
            logger.info("Starting dialogue '%s' at node '%s'.", tree.tree_id, node.node_id)

        self._current_tree = tree
        self._active = True
        self._activations += 1
        self.show_node(node)

    # Choices

    def get_visible_choices(self) -> list[DialogChoice]:
        """The current node's choices whose show conditions hold, in authored order"""
        if self._current_node is None:
            logger.warning("get_visible_choices called but there is no current node.")
            return []
        return self.visible_choices_of(self._current_node)

    def visible_choices_of(self, node: DialogNode) -> list[DialogChoice]:
        visible = []
        for choice in node.choices:
            if not choice.has_condition:
                visible.append(choice)
            elif evaluate(choice.show_condition, self.store, self.operators):
                visible.append(choice)
            else:
                logger.debug("Choice '%s' is hidden (condition '%s' not met).", choice.text, choice.show_condition)
        return visible

    def select_choice(self, index: int) -> ActionResult:
        """
        Take one of the current node's visible choices.
        Impacts are applied in order, then the node's end commands run, then the
        choice's next node is shown. A choice with no next node ends the dialogue.
        """
        node = self._current_node
        if not self._active or node is None:
            logger.warning("select_choice called but no dialogue is active.")
            return invalid_result("No dialogue is active.")

        if self._transitioning:
            logger.warning("select_choice called while a transition is in progress.")
            return invalid_result("The dialogue is busy.")

        visible_choices = self.get_visible_choices()
        if not isinstance(index, int) or index < 0 or index >= len(visible_choices):
            logger.warning("Invalid choice index: %s", index)
            return invalid_result(f"There is no choice {index}.")

        choice = visible_choices[index]
        logger.debug("Choice selected: %s", choice.text)

        self._transitioning = True
        try:
            self.events.choice_selected.emit(node)
            if self._current_node is not node:
                logger.warning("Dialogue changed while choice '%s' was being selected. Choice abandoned.", choice.text)
                return no_effect_result("The dialogue moved on.")

            self.apply_impacts(choice.impacts)
            self.run_end_commands(node)
            if self._current_node is not node:
                return ok_result(choice.text)

            if choice.next is None:
                logger.debug("Choice leads to no node (segment boundary). Ending dialogue.")
                self.end_dialogue()
            else:
                self.follow(choice.next)
        finally:
            self._transitioning = False

        return ok_result(choice.text)

    def apply_impacts(self, impacts: list[ChoiceImpact]):
        for impact in impacts:
            if impact.is_conditional and not evaluate(impact.apply_condition, self.store, self.operators):
                logger.debug("Impact on '%s' skipped (condition '%s' not met).", impact.variable, impact.apply_condition)
                continue

            if not impact.variable or not impact.variable.strip():
                logger.warning("Impact with no variable skipped.")
                continue

            self.store.add_int(impact.variable, impact.change)
            logger.debug("Impact: %s += %d", impact.variable, impact.change)
            self.events.impact_applied.emit(impact.variable, impact.change)

    # Advancing

    def advance_to_next_node(self) -> ActionResult:
        """
        Move on from a node that has no visible choices.
        Follows next_if_auto when set, otherwise ends the dialogue. Does nothing
        while visible choices exist.
        """
        node = self._current_node
        if not self._active or node is None:
            logger.warning("advance_to_next_node called but no dialogue is active.")
            return invalid_result("No dialogue is active.")

        if self._transitioning:
            logger.warning("advance_to_next_node called while a transition is in progress.")
            return invalid_result("The dialogue is busy.")

        visible_count = len(self.get_visible_choices())
        if visible_count > 0:
            logger.debug("Cannot auto-advance: node has %d visible choices. Waiting for player input.", visible_count)
            return no_effect_result("Choose a response.")

        self._transitioning = True
        try:
            if node.next_if_auto is None:
                logger.debug("No visible choices and no next_if_auto. Ending dialogue.")
                self.end_dialogue()
                return ok_result("The conversation ends.")

            self.run_end_commands(node)
            if self._current_node is not node:
                return ok_result("The conversation moved on.")

            logger.debug("Auto-advancing to node: %s", node.next_if_auto)
            self.follow(node.next_if_auto)
        finally:
            self._transitioning = False

        return ok_result("")

    def continue_dialogue(self) -> ActionResult:
        """
        Advance the way a "continue" button would.
        When the tree auto-advances single choices and exactly one choice is
        visible, that choice is selected. Otherwise this is advance_to_next_node.
        """
        tree = self._current_tree
        if self._active and tree is not None and tree.auto_advance_single_choice and self._current_node is not None:
            if len(self.get_visible_choices()) == 1:
                return self.select_choice(0)
        return self.advance_to_next_node()

    # Ending

    def force_end(self) -> bool:
        """End the active dialogue immediately, cancelling any scheduled auto end"""
        if not self._active:
            return False
        self.end_dialogue()
        return True

    def end_dialogue(self):
        if not self._active:
            return

        self.cancel_pending_end()
        self._active = False
        self._current_node = None
        self._current_tree = None
        self.events.dialogue_ended.emit()

        logger.info("Dialogue ended.")

    def cancel_pending_end(self):
        if self._pending_end is not None:
            self._pending_end.cancel()
            self._pending_end = None

    def on_auto_end(self):
        self._pending_end = None
        self.end_dialogue()

    # Nodes

    def show_node(self, node: Optional[DialogNode]):
        if node is None:
            self.end_dialogue()
            return

        # A new node supersedes any auto end scheduled by the previous one
        self.cancel_pending_end()
        self._current_node = node

        logger.debug("Showing node: %s", node.node_id)

        self.dispatcher.execute_all(self, node.start_commands)
        self.events.node_displayed.emit(node)

        if self._current_node is not node:
            return

        visible_count = len(self.visible_choices_of(node))
        self.events.choices_updated.emit(visible_count)

        if node.is_end_node:
            if visible_count == 0:
                delay = node.auto_close_delay
                self.cancel_pending_end()
                logger.debug("Node '%s' is an end node with no choices. Ending dialogue in %s seconds.", node.node_id, delay)
                self._pending_end = self.scheduler.call_later(delay, self.on_auto_end)
            else:
                logger.debug("Node '%s' is an end node but has %d choices. Waiting for player input.", node.node_id, visible_count)
        elif visible_count == 0 and node.next_if_auto is None:
            logger.warning("Node '%s' is a dead end: no visible choices, no next_if_auto and not an end node.", node.node_id)

    def follow(self, node_id: Optional[str]):
        tree = self._current_tree
        if tree is None:
            logger.warning("No current tree to follow '%s' in. Ending dialogue.", node_id)
            self.end_dialogue()
            return
        self.show_node(tree.resolve(node_id))

    def run_end_commands(self, node: DialogNode):
        self.dispatcher.execute_all(self, node.end_commands)

    # Command context

    def give_item(self, item_id: str):
        if self.inventory is None:
            logger.warning("No inventory available. Item command ignored.")
            return
        self.inventory.add_item(item_id)
        self.events.item_given.emit(item_id)
