from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_DURATION = 3.0

@dataclass(frozen=True)
class ChoiceImpact:
    """A change to an integer variable, applied when the choice is taken"""
    variable: str
    change: int
    apply_condition: Optional[str] = None                                       # Impact is skipped unless the condition holds

    @property
    def is_conditional(self) -> bool:
        return bool(self.apply_condition and self.apply_condition.strip())

@dataclass(frozen=True)
class DialogChoice:
    text: str
    next: Optional[str] = None                                                  # Node to show when selected. None ends the dialogue.
    impacts: list[ChoiceImpact] = field(default_factory=list)
    show_condition: Optional[str] = None                                        # Choice is hidden unless the condition holds

    @property
    def has_condition(self) -> bool:
        return bool(self.show_condition and self.show_condition.strip())

@dataclass(frozen=True)
class Speaker:
    speaker_id: str
    display_name: str
    description: str = ""

@dataclass(frozen=True)
class DialogSegment:
    """A part of a conversation that starts at its own node, once its prerequisites are met"""
    segment_id: str
    start_node: str = ""                                                        # Blank to use the tree's start node
    required_segments: list[str] = field(default_factory=list)
    required_condition: str = ""

@dataclass(frozen=True)
class DialogNode:
    node_id: str
    text: str = ""
    speaker: Optional[str] = None                                               # Speaker ID, see DialogTree.speakers
    choices: list[DialogChoice] = field(default_factory=list)
    next_if_auto: Optional[str] = None                                          # Followed when the node has no visible choices
    start_commands: list[str] = field(default_factory=list)                     # Executed when the node is shown
    end_commands: list[str] = field(default_factory=list)                       # Executed when the node is left
    is_end_node: bool = False
    display_duration: float = 0.0                                               # Seconds before an end node closes. 0 = default.
    voice_delay: float = 0.0

    @property
    def auto_close_delay(self) -> float:
        return self.display_duration if self.display_duration > 0 else DEFAULT_DISPLAY_DURATION

@dataclass(frozen=True)
class DialogTree:
    """
    An authored conversation: a set of nodes and the node it starts at.
    Trees are loaded from content files and never change at runtime.
    """
    tree_id: str
    title: str = ""
    start: Optional[str] = None
    typewriter_speed: float = 0.05
    auto_advance_single_choice: bool = False
    speakers: dict[str, Speaker] = field(default_factory=dict)
    nodes: dict[str, DialogNode] = field(default_factory=dict)
    segments: dict[str, DialogSegment] = field(default_factory=dict)

    def find_node(self, node_id: Optional[str]) -> Optional[DialogNode]:
        """Look up a node by ID, ignoring case"""
        if not node_id or not node_id.strip():
            return None
        node = self.nodes.get(node_id)
        if node is not None:
            return node
        wanted = node_id.strip().casefold()
        return next(
            (
                node
                for node in self.nodes.values()
                if node.node_id.casefold() == wanted
            ),
            None
        )

    def resolve(self, node_id: Optional[str]) -> Optional[DialogNode]:
        """
        Follow a reference from a choice or auto-advance.
        A missing reference means the dialogue ends. A reference to an unknown
        node is a content defect, and also ends the dialogue.
        """
        if node_id is None or not node_id.strip():
            return None
        node = self.find_node(node_id)
        if node is None:
            logger.warning("Dialog tree '%s' references unknown node '%s'. Ending dialogue.", self.tree_id, node_id)
        return node

    @property
    def start_node(self) -> Optional[DialogNode]:
        return self.find_node(self.start)

    def get_speaker(self, node: DialogNode) -> Optional[Speaker]:
        if not node.speaker:
            return None
        return self.speakers.get(node.speaker)
