import logging
import threading
from dataclasses import dataclass, field
from typing import Optional
from .content import DialogLibrary, load_dialog_library, validate_tree
from .dialog import DialogTree
from .engine import ActionResult, ActionStatus, DialogEngine, invalid_result, ok_result
from .inventory import Inventory
from .persistence import GameStatePersister, SessionState
from .scheduler import MonotonicScheduler
from .segments import SegmentStarter, SegmentTracker
from .util import describe_string_list, parse_scalar, strip_quotes
from .variables import VariableStore

logger = logging.getLogger(__name__)

@dataclass
class NodeView:
    """What a front end needs to draw the current state of the conversation"""
    active: bool
    title: str = ""
    speaker: Optional[str] = None
    text: str = ""
    choices: list[str] = field(default_factory=list)
    can_continue: bool = False
    closing: bool = False

class App:
    """
    Composes the variable store, inventory, segments and dialog engine, and
    turns player input into engine calls.
    Calls are serialised with a lock so the web player can share one App
    between request threads.
    """
    def __init__(self, args, library: Optional[DialogLibrary] = None):
        self.dev_mode: bool = args.dev

        # Load dialog content
        self.library = library if library is not None else load_dialog_library(args.content)
        self.validation_issues: list[str] = []
        for tree in self.library.trees.values():
            self.validation_issues.extend(validate_tree(tree))
        for issue in self.validation_issues:
            logger.warning("Content issue: %s", issue)

        # Game state and collaborators
        self.store = VariableStore()
        self.inventory = Inventory()
        self.segments = SegmentTracker()
        self.scheduler = MonotonicScheduler()
        self.engine = DialogEngine(
            self.store,
            inventory=self.inventory,
            scheduler=self.scheduler,
            library=self.library,
        )

        # State persister
        self.persister = GameStatePersister(args.saves)

        self.lock = threading.RLock()
        self.notes: list[str] = []
        self.engine.events.item_given.subscribe(lambda item_id: self.notes.append(f"(Received: {item_id})"))
        self.engine.events.impact_applied.subscribe(self.note_impact)
        self.engine.events.dialogue_ended.subscribe(lambda: self.notes.append("(The conversation ends.)"))

        self.initial_tree_id: Optional[str] = args.tree
        self.initial_node_id: Optional[str] = args.node

    def note_impact(self, variable: str, delta: int):
        self.notes.append(f"({variable} {delta:+d})")

    # Starting conversations

    def start_initial(self) -> ActionResult:
        tree_id = self.initial_tree_id
        if not tree_id:
            tree_ids = self.library.tree_ids()
            if not tree_ids:
                return invalid_result("No dialog trees were found.")
            tree_id = tree_ids[0]
        return self.start(tree_id, self.initial_node_id)

    def start(self, tree_id: str, node_id: Optional[str] = None) -> ActionResult:
        with self.lock:
            tree = self.library.get_tree(tree_id)
            if tree is None:
                return invalid_result(f"'{tree_id}' is not a valid dialog tree ID")

            if node_id:
                started = self.engine.start_at_node_id(tree, node_id)
            else:
                started = self.engine.start(tree)

            if not started:
                return invalid_result(f"Could not start '{tree_id}'.")
            return ok_result(self.describe_current())

    def start_segment(self, segment_id: str) -> ActionResult:
        with self.lock:
            found = self.find_segment(segment_id)
            if found is None:
                return invalid_result(f"'{segment_id}' is not a valid segment ID")
            tree, starter = found

            if not starter.prerequisites_met(self.segments, self.store):
                return invalid_result(f"Segment '{segment_id}' is not available yet.")

            if not starter.trigger(self.engine, self.segments):
                return invalid_result(f"Could not start segment '{segment_id}' of '{tree.tree_id}'.")
            return ok_result(self.describe_current())

    def find_segment(self, segment_id: str) -> Optional[tuple[DialogTree, SegmentStarter]]:
        wanted = segment_id.strip().casefold()
        for tree in self.library.trees.values():
            for segment in tree.segments.values():
                if segment.segment_id.casefold() == wanted:
                    return tree, SegmentStarter.from_segment(tree, segment)
        return None

    # Describing

    def current_view(self) -> NodeView:
        with self.lock:
            self.scheduler.poll()
            node = self.engine.current_node
            tree = self.engine.current_tree
            if not self.engine.is_active or node is None or tree is None:
                return NodeView(active=False)

            speaker = self.engine.current_speaker
            choices = [choice.text for choice in self.engine.get_visible_choices()]
            closing = self.engine.has_pending_end
            return NodeView(
                active=True,
                title=tree.title,
                speaker=speaker.display_name if speaker else None,
                text=node.text,
                choices=choices,
                can_continue=not choices and not closing,
                closing=closing,
            )

    def describe_current(self) -> str:
        view = self.current_view()
        lines = self.take_notes()
        if not view.active:
            lines.append("(No conversation is active.)")
            return "\n".join(lines)

        lines.append(f"{view.speaker}: {view.text}" if view.speaker else view.text)
        for number, choice_text in enumerate(view.choices, start=1):
            lines.append(f"  {number}. {choice_text}")
        if view.can_continue:
            lines.append("(Press Enter to continue.)")
        return "\n".join(lines)

    def take_notes(self) -> list[str]:
        notes = self.notes
        self.notes = []
        return notes

    # Input

    def handle_raw_command(self, raw_command: str) -> ActionResult:
        with self.lock:
            self.scheduler.poll()
            return self.handle_system_command(raw_command) or self.handle_dialogue_input(raw_command)

    def handle_dialogue_input(self, raw: str) -> ActionResult:
        raw = raw.strip()
        if not self.engine.is_active:
            return invalid_result("No conversation is active. Use /start or /segment.")

        if not raw:
            result = self.engine.continue_dialogue()
        elif raw.isdigit():
            result = self.engine.select_choice(int(raw) - 1)
        else:
            return invalid_result("Enter the number of a choice.")

        if result.status == ActionStatus.OK:
            return ok_result(self.describe_current())
        return result

    def handle_system_command(self, raw: str) -> Optional[ActionResult]:
        raw = strip_quotes(raw.strip()).strip()
        parts = raw.split()

        try:
            if parts and parts[0].startswith("/"):
                verb = parts[0].lower()

                if verb == "/save":
                    return self.handle_save(parts)

                if verb == "/load":
                    return self.handle_load(parts)

                if verb == "/vars":
                    return ok_result("\n".join(self.store.describe()) or "No variables.")

                if verb == "/inventory":
                    if not self.inventory.items:
                        return ok_result("You carry nothing.")
                    return ok_result(f"You carry {describe_string_list(self.inventory.items, 'and')}.")

                if verb == "/start":
                    return self.handle_start(parts)

                if verb == "/segment":
                    return self.handle_segment(parts)

                if verb == "/segments":
                    return self.handle_list_segments()

                if verb == "/end":
                    self.engine.force_end()
                    return ok_result(self.describe_current())

                # Developer mode commands

                if self.dev_mode:
                    if verb == "/set":
                        return self.handle_dev_set(parts)

                    if verb == "/reset":
                        self.store.reset_all()
                        return ok_result("Variables reset.")

                return invalid_result(f"Unknown command '{parts[0]}'.")

        except (RuntimeError, ValueError, OSError) as exc:
            return invalid_result(str(exc))

        return None

    def handle_save(self, parts: list[str]) -> ActionResult:
        """Save game state to file."""
        if len(parts) != 2:
            return invalid_result("Usage: /SAVE filename")

        self.persister.save_game_state(self.session_state(), parts[1])
        return ok_result("Game saved")

    def handle_load(self, parts: list[str]) -> ActionResult:
        """Load game state from file"""
        if len(parts) != 2:
            return invalid_result("Usage: /LOAD filename")

        state = self.persister.load_game_state(parts[1])
        self.engine.force_end()
        self.take_notes()
        self.apply_session_state(state)
        return ok_result("Game loaded")

    def handle_start(self, parts: list[str]) -> ActionResult:
        if len(parts) not in (2, 3):
            return invalid_result("Usage: /START tree_id [node_id]")
        return self.start(parts[1], parts[2] if len(parts) == 3 else None)

    def handle_segment(self, parts: list[str]) -> ActionResult:
        if len(parts) != 2:
            return invalid_result("Usage: /SEGMENT segment_id")
        return self.start_segment(parts[1])

    def handle_list_segments(self) -> ActionResult:
        lines = []
        for tree in self.library.trees.values():
            for segment in tree.segments.values():
                starter = SegmentStarter.from_segment(tree, segment)
                if self.segments.is_segment_completed(segment.segment_id):
                    status = "completed"
                elif starter.prerequisites_met(self.segments, self.store):
                    status = "available"
                else:
                    status = "locked"
                lines.append(f"{segment.segment_id} ({tree.tree_id}): {status}")
        return ok_result("\n".join(lines) or "No segments.")

    def handle_dev_set(self, parts: list[str]) -> ActionResult:
        """Developer cheat: Set a variable"""
        if len(parts) != 3:
            return invalid_result("Usage: /SET variable value")

        key = parts[1]
        value = parse_scalar(parts[2])
        if isinstance(value, bool):
            self.store.set_bool(key, value)
        elif isinstance(value, int):
            self.store.set_int(key, value)
        elif isinstance(value, float):
            self.store.set_float(key, value)
        else:
            self.store.set_string(key, value)
        return ok_result(f"{key} = {value}")

    # Session state

    def session_state(self) -> SessionState:
        return SessionState(
            variables=self.store.snapshot(),
            inventory=list(self.inventory.items),
            completed_segments=list(self.segments.completed),
        )

    def apply_session_state(self, state: SessionState):
        self.store.restore(state.variables)
        self.inventory.clear()
        for item_id in state.inventory:
            self.inventory.add_item(item_id)
        self.segments.reset()
        for segment_id in state.completed_segments:
            self.segments.complete_segment(segment_id)
