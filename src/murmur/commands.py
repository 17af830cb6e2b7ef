import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol
from .variables import VariableStore

logger = logging.getLogger(__name__)

ENDING_PATH_KEY = "current_ending_path"

@dataclass
class ParsedCommand:
    raw: str
    kind: Optional[str] = None
    param: str = ""
    error: Optional[str] = None

def parse_command(raw: Optional[str]) -> ParsedCommand:
    """
    Parse a "type:param" command string.
    The type is case insensitive, and the parameter is trimmed.
    """
    raw = raw.strip() if raw else ""
    cmd = ParsedCommand(raw=raw)
    if not raw:
        cmd.error = "No command provided."
        return cmd

    kind, _, param = raw.partition(":")
    kind = kind.strip().lower()
    if not kind:
        cmd.error = f"Command '{raw}' has no type."
        return cmd

    cmd.kind = kind
    cmd.param = param.strip()
    return cmd

@dataclass
class VariableChange:
    variable: str
    delta: int

def parse_variable_change(param: str) -> Optional[VariableChange]:
    """Parse the "name+delta" parameter of a var command"""
    if "+" not in param:
        return None
    name, _, delta_text = param.partition("+")
    name = name.strip()
    try:
        delta = int(delta_text.strip())
    except ValueError:
        return None
    if not name:
        return None
    return VariableChange(name, delta)

class ItemReceiver(Protocol):
    def add_item(self, item_id: str): ...

class CommandContext(Protocol):
    """What command handlers can reach while a dialogue is running"""
    store: VariableStore
    inventory: Optional[ItemReceiver]

    def give_item(self, item_id: str): ...

CommandHandler = Callable[[CommandContext, ParsedCommand], None]

def handle_item(context: CommandContext, cmd: ParsedCommand):
    if not cmd.param:
        logger.warning("Item command called with empty item ID.")
        return
    context.give_item(cmd.param)

def handle_flag(context: CommandContext, cmd: ParsedCommand):
    context.store.set_bool(cmd.param, True)

def handle_unflag(context: CommandContext, cmd: ParsedCommand):
    context.store.set_bool(cmd.param, False)

def handle_var(context: CommandContext, cmd: ParsedCommand):
    change = parse_variable_change(cmd.param)
    if change is None:
        logger.warning("Malformed var command '%s'. Expected 'var:name+amount'.", cmd.raw)
        return
    context.store.add_int(change.variable, change.delta)

def handle_ending(context: CommandContext, cmd: ParsedCommand):
    context.store.set_string(ENDING_PATH_KEY, cmd.param)

def standard_handlers() -> dict[str, CommandHandler]:
    return {
        "item": handle_item,
        "flag": handle_flag,
        "unflag": handle_unflag,
        "var": handle_var,
        "ending": handle_ending,
    }

class CommandDispatcher:
    """
    Executes command strings attached to dialogue nodes.
    Commands never raise: unknown types and malformed parameters are logged
    and ignored so the dialogue transition carries on.
    """
    def __init__(self, handlers: Optional[dict[str, CommandHandler]] = None):
        self.handlers: dict[str, CommandHandler] = handlers if handlers is not None else standard_handlers()

    def register(self, kind: str, handler: CommandHandler):
        self.handlers[kind.strip().lower()] = handler

    def is_known(self, kind: str) -> bool:
        return kind.strip().lower() in self.handlers

    def execute(self, context: CommandContext, raw: Optional[str]):
        cmd = parse_command(raw)
        if cmd.error or cmd.kind is None:
            # Blank entries in authored command lists are skipped quietly
            if cmd.raw:
                logger.warning(cmd.error)
            return

        handler = self.handlers.get(cmd.kind)
        if handler is None:
            logger.warning("Unknown command: %s", cmd.kind)
            return

        logger.debug("Executing command: %s | %s", cmd.kind, cmd.param)
        try:
            handler(context, cmd)
        except Exception:
            logger.exception("Command '%s' failed.", cmd.raw)

    def execute_all(self, context: CommandContext, commands: list[str]):
        for raw in commands:
            self.execute(context, raw)
