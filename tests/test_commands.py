import logging

import pytest

from murmur.commands import (
    ENDING_PATH_KEY,
    CommandDispatcher,
    parse_command,
    parse_variable_change,
)
from murmur.inventory import Inventory
from murmur.variables import VariableStore


class _Context:
    def __init__(self, inventory: Inventory | None = None) -> None:
        self.store = VariableStore()
        self.inventory = inventory
        self.given: list[str] = []

    def give_item(self, item_id: str) -> None:
        if self.inventory is not None:
            self.inventory.add_item(item_id)
        self.given.append(item_id)


def test_parse_command_splits_type_and_param() -> None:
    cmd = parse_command("  ITEM : rusty_key ")

    assert cmd.kind == "item"
    assert cmd.param == "rusty_key"
    assert cmd.error is None


def test_parse_command_without_param() -> None:
    cmd = parse_command("ending")

    assert cmd.kind == "ending"
    assert cmd.param == ""


@pytest.mark.parametrize("raw", ["", "   ", None, ":orphan"])
def test_parse_command_reports_errors(raw) -> None:
    assert parse_command(raw).error


def test_parse_variable_change() -> None:
    change = parse_variable_change("courage + 5")

    assert change is not None
    assert change.variable == "courage"
    assert change.delta == 5
    assert parse_variable_change("courage+-3").delta == -3
    assert parse_variable_change("courage") is None
    assert parse_variable_change("courage+lots") is None
    assert parse_variable_change("+4") is None


def test_flag_and_unflag_set_booleans() -> None:
    context = _Context()
    dispatcher = CommandDispatcher()

    dispatcher.execute(context, "flag:heard_scream")
    assert context.store.get_bool("heard_scream") is True

    dispatcher.execute(context, "unflag:heard_scream")
    assert context.store.get_bool("heard_scream") is False


def test_var_adds_to_integer() -> None:
    context = _Context()
    dispatcher = CommandDispatcher()

    dispatcher.execute(context, "var:investigation+2")
    dispatcher.execute(context, "var:investigation+3")

    assert context.store.get_int("investigation") == 5


def test_ending_records_string_marker() -> None:
    context = _Context()
    CommandDispatcher().execute(context, "ending:writer_path")

    assert context.store.get_string(ENDING_PATH_KEY) == "writer_path"


def test_item_delegates_to_context() -> None:
    inventory = Inventory()
    context = _Context(inventory)
    CommandDispatcher().execute(context, "item:journal")

    assert inventory.has_item("journal")
    assert context.given == ["journal"]


def test_item_with_empty_id_is_ignored() -> None:
    context = _Context(Inventory())
    CommandDispatcher().execute(context, "item:")

    assert context.given == []


def test_unknown_and_malformed_commands_are_logged_and_ignored(caplog: pytest.LogCaptureFixture) -> None:
    context = _Context()
    dispatcher = CommandDispatcher()
    before = context.store.snapshot()

    with caplog.at_level(logging.WARNING, logger="murmur.commands"):
        dispatcher.execute_all(context, ["camera:pan_left", "var:courage", "var:courage+x", ":nothing"])

    assert context.store.snapshot() == before
    assert "Unknown command: camera" in caplog.text
    assert "Malformed var command" in caplog.text


def test_failing_handler_does_not_stop_later_commands() -> None:
    context = _Context()
    dispatcher = CommandDispatcher()

    def explode(context, cmd):
        raise ValueError("boom")

    dispatcher.register("explode", explode)
    dispatcher.execute_all(context, ["explode:now", "flag:survived"])

    assert context.store.get_bool("survived") is True


def test_registered_command_types_are_dispatched() -> None:
    context = _Context()
    dispatcher = CommandDispatcher()
    cues = []
    dispatcher.register("Scene", lambda context, cmd: cues.append(cmd.param))

    dispatcher.execute(context, "scene:lights_flicker")

    assert dispatcher.is_known("SCENE")
    assert cues == ["lights_flicker"]


def test_blank_commands_are_skipped_quietly(caplog: pytest.LogCaptureFixture) -> None:
    context = _Context()
    dispatcher = CommandDispatcher()

    with caplog.at_level(logging.WARNING, logger="murmur.commands"):
        dispatcher.execute_all(context, ["", "   ", None])
        assert caplog.text == ""

        dispatcher.execute(context, ":nothing")

    assert "has no type" in caplog.text
