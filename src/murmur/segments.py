import logging
from dataclasses import dataclass, field
from typing import Optional
from .conditions import evaluate
from .dialog import DialogSegment, DialogTree
from .engine import DialogEngine
from .variables import VariableStore

logger = logging.getLogger(__name__)

class SegmentTracker:
    """Remembers which conversation segments the player has completed"""
    def __init__(self, completed: Optional[list[str]] = None):
        self.completed: list[str] = []
        for segment_id in completed or []:
            self.complete_segment(segment_id)

    def complete_segment(self, segment_id: str) -> bool:
        if not segment_id or not segment_id.strip():
            logger.warning("Attempted to complete a segment with an empty ID.")
            return False

        segment_id = segment_id.strip()
        if segment_id in self.completed:
            logger.debug("Segment '%s' already completed.", segment_id)
            return False

        self.completed.append(segment_id)
        logger.info("Segment completed: %s", segment_id)
        return True

    def is_segment_completed(self, segment_id: str) -> bool:
        return bool(segment_id) and segment_id.strip() in self.completed

    def are_segments_completed(self, *segment_ids: str) -> bool:
        return all(self.is_segment_completed(segment_id) for segment_id in segment_ids)

    def reset(self):
        self.completed.clear()

@dataclass
class SegmentStarter:
    """
    Starts one segment of a larger conversation.
    The segment only starts once the required segments are complete and the
    required condition holds. It is marked complete when the dialogue ends.
    """
    tree: Optional[DialogTree]
    start_node_id: str = ""                                                     # Blank to use the tree's start node
    segment_id: str = ""
    required_segments: list[str] = field(default_factory=list)
    required_condition: str = ""

    @classmethod
    def from_segment(cls, tree: DialogTree, segment: DialogSegment) -> "SegmentStarter":
        return cls(
            tree=tree,
            start_node_id=segment.start_node,
            segment_id=segment.segment_id,
            required_segments=list(segment.required_segments),
            required_condition=segment.required_condition,
        )

    def prerequisites_met(self, segments: SegmentTracker, store: VariableStore) -> bool:
        if not segments.are_segments_completed(*self.required_segments):
            return False

        if self.required_condition.strip():
            return evaluate(self.required_condition, store)

        return True

    def trigger(self, engine: DialogEngine, segments: SegmentTracker) -> bool:
        if not self.prerequisites_met(segments, engine.store):
            logger.debug("Prerequisites not met for segment '%s'.", self.segment_id)
            return False

        if self.tree is None:
            logger.error("No dialogue tree assigned to segment '%s'.", self.segment_id)
            return False

        # Listen before starting, as the dialogue may end during start().
        # Only the dialogue started here completes the segment, not one that replaced it.
        activation = engine.activation_count + 1

        def on_dialogue_ended():
            engine.events.dialogue_ended.unsubscribe(on_dialogue_ended)
            if engine.activation_count != activation:
                logger.debug("Segment '%s' was replaced by another dialogue before it ended.", self.segment_id)
                return
            if self.segment_id.strip():
                segments.complete_segment(self.segment_id)

        engine.events.dialogue_ended.subscribe(on_dialogue_ended)

        if self.start_node_id.strip():
            started = engine.start_at_node_id(self.tree, self.start_node_id)
        else:
            started = engine.start(self.tree)

        if not started:
            engine.events.dialogue_ended.unsubscribe(on_dialogue_ended)
        return started
