from murmur.content import tree_from_dict
from murmur.engine import DialogEngine
from murmur.inventory import Inventory
from murmur.scheduler import ManualScheduler
from murmur.segments import SegmentStarter, SegmentTracker
from murmur.variables import VariableStore


def _make_tree():
    return tree_from_dict({
        "tree_id": "house",
        "start": "hall",
        "nodes": {
            "hall": {"text": "A long hall.", "choices": [{"text": "Leave."}]},
            "study": {"text": "The study.", "choices": [{"text": "Leave."}]},
        },
        "segments": {
            "study_visit": {
                "start_node": "study",
                "required_segments": "hall_visit, porch_visit",
                "required_condition": "courage >= 10",
            },
        },
    })


def _make_engine() -> DialogEngine:
    return DialogEngine(VariableStore(), inventory=Inventory(), scheduler=ManualScheduler())


def test_tracker_completes_segments_once() -> None:
    tracker = SegmentTracker()

    assert tracker.complete_segment("hall_visit") is True
    assert tracker.complete_segment("hall_visit") is False
    assert tracker.complete_segment("  ") is False
    assert tracker.is_segment_completed("hall_visit")
    assert not tracker.is_segment_completed("")
    assert tracker.are_segments_completed()
    assert not tracker.are_segments_completed("hall_visit", "porch_visit")

    tracker.reset()
    assert tracker.completed == []


def test_starter_checks_segments_then_condition() -> None:
    tree = _make_tree()
    starter = SegmentStarter.from_segment(tree, tree.segments["study_visit"])
    tracker = SegmentTracker(["hall_visit"])
    store = VariableStore()
    store.set_int("courage", 20)

    assert starter.required_segments == ["hall_visit", "porch_visit"]
    assert not starter.prerequisites_met(tracker, store)

    tracker.complete_segment("porch_visit")
    store.set_int("courage", 5)
    assert not starter.prerequisites_met(tracker, store)

    store.set_int("courage", 10)
    assert starter.prerequisites_met(tracker, store)


def test_trigger_starts_at_node_and_completes_on_end() -> None:
    tree = _make_tree()
    engine = _make_engine()
    tracker = SegmentTracker(["hall_visit", "porch_visit"])
    engine.store.set_int("courage", 10)
    starter = SegmentStarter.from_segment(tree, tree.segments["study_visit"])

    assert starter.trigger(engine, tracker) is True
    assert engine.current_node.node_id == "study"
    assert not tracker.is_segment_completed("study_visit")

    engine.select_choice(0)

    assert tracker.is_segment_completed("study_visit")
    assert len(engine.events.dialogue_ended) == 0


def test_trigger_without_start_node_uses_tree_start() -> None:
    tree = _make_tree()
    engine = _make_engine()
    tracker = SegmentTracker()

    assert SegmentStarter(tree=tree, segment_id="hall_visit").trigger(engine, tracker) is True
    assert engine.current_node.node_id == "hall"


def test_trigger_does_nothing_when_locked_or_broken() -> None:
    tree = _make_tree()
    engine = _make_engine()
    tracker = SegmentTracker()

    locked = SegmentStarter.from_segment(tree, tree.segments["study_visit"])
    assert locked.trigger(engine, tracker) is False

    missing_tree = SegmentStarter(tree=None, segment_id="x")
    assert missing_tree.trigger(engine, tracker) is False

    bad_node = SegmentStarter(tree=tree, start_node_id="attic", segment_id="attic_visit")
    assert bad_node.trigger(engine, tracker) is False

    assert not engine.is_active
    assert len(engine.events.dialogue_ended) == 0


def test_replaced_segment_is_not_completed() -> None:
    tree = _make_tree()
    engine = _make_engine()
    tracker = SegmentTracker()

    SegmentStarter(tree=tree, segment_id="hall_visit").trigger(engine, tracker)
    SegmentStarter(tree=tree, start_node_id="study", segment_id="porch_visit").trigger(engine, tracker)
    engine.select_choice(0)

    assert tracker.completed == ["porch_visit"]
    assert len(engine.events.dialogue_ended) == 0


def test_segment_replaced_by_plain_start_is_not_completed() -> None:
    tree = _make_tree()
    engine = _make_engine()
    tracker = SegmentTracker()

    SegmentStarter(tree=tree, segment_id="hall_visit").trigger(engine, tracker)
    engine.start_at_node_id(tree, "study")
    engine.select_choice(0)

    assert tracker.completed == []
