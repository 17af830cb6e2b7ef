import logging
from pathlib import Path
from typing import Any, Optional
from dacite import Config, from_dict
from dacite.exceptions import DaciteError
import yaml
from .commands import CommandDispatcher, parse_command
from .conditions import parse_condition
from .dialog import DialogNode, DialogTree

logger = logging.getLogger(__name__)

CONTENT_SUFFIXES = (".yaml", ".yml")

DACITE_CONFIG = Config(strict=True, cast=[float])

class ContentError(Exception):
    """Raised when a dialog content file cannot be read or does not match the schema"""

def load_dialog_tree(path: Path) -> DialogTree:
    try:
        tree_yaml = path.read_text(encoding="utf-8")
        parsed_tree = yaml.safe_load(tree_yaml)
    except (OSError, yaml.YAMLError) as exc:
        raise ContentError(f"Could not read dialog file '{path}': {exc}") from exc

    if not isinstance(parsed_tree, dict):
        raise ContentError(f"Dialog file '{path}' does not contain a dialog tree.")

    parsed_tree.setdefault("tree_id", path.stem)
    return tree_from_dict(parsed_tree, source=str(path))

def tree_from_dict(data: dict[str, Any], source: str = "<data>") -> DialogTree:
    """
    Build a tree from plain data.
    Node and speaker IDs default to their key in the 'nodes' and 'speakers' maps.
    """
    data = dict(data)
    data["nodes"] = fill_ids(data.get("nodes"), "node_id", source)
    data["speakers"] = fill_ids(data.get("speakers"), "speaker_id", source)
    data["segments"] = fill_ids(data.get("segments"), "segment_id", source)
    for segment in data["segments"].values():
        if isinstance(segment.get("required_segments"), str):
            segment["required_segments"] = split_id_list(segment["required_segments"])

    try:
        return from_dict(DialogTree, data, config=DACITE_CONFIG)
    except (DaciteError, ValueError, TypeError) as exc:
        raise ContentError(f"Dialog content '{source}' did not match the expected schema: {exc}") from exc

def fill_ids(entries: Any, id_field: str, source: str) -> dict[str, Any]:
    if entries is None:
        return {}
    if not isinstance(entries, dict):
        raise ContentError(f"Dialog content '{source}': expected a mapping of {id_field} to entries.")

    filled = {}
    for key, entry in entries.items():
        if entry is None:
            entry = {}
        if not isinstance(entry, dict):
            raise ContentError(f"Dialog content '{source}': entry '{key}' is not a mapping.")
        entry = dict(entry)
        entry.setdefault(id_field, str(key))
        filled[str(key)] = entry
    return filled

def split_id_list(text: str) -> list[str]:
    """Split a comma separated list of IDs"""
    return [part.strip() for part in text.split(",") if part.strip()]

class DialogLibrary:
    """All dialog trees known to the game, for looking up nodes across trees"""
    def __init__(self, trees: Optional[list[DialogTree]] = None):
        self.trees: dict[str, DialogTree] = {}
        for tree in trees or []:
            self.add(tree)

    def add(self, tree: DialogTree):
        key = tree.tree_id.casefold()
        if key in self.trees:
            logger.warning("Dialog tree '%s' is defined more than once. Using the last definition.", tree.tree_id)
        self.trees[key] = tree

    def get_tree(self, tree_id: str) -> Optional[DialogTree]:
        return self.trees.get(tree_id.strip().casefold()) if tree_id else None

    def find_node(self, node_id: str) -> Optional[tuple[DialogTree, DialogNode]]:
        for tree in self.trees.values():
            node = tree.find_node(node_id)
            if node is not None:
                return tree, node
        return None

    def tree_ids(self) -> list[str]:
        return [tree.tree_id for tree in self.trees.values()]

    def __len__(self) -> int:
        return len(self.trees)

def load_dialog_library(folder: Path) -> DialogLibrary:
    if not folder.is_dir():
        raise ContentError(f"Dialog content folder '{folder}' does not exist.")

    library = DialogLibrary()
    for path in sorted(folder.iterdir()):
        if path.suffix.lower() in CONTENT_SUFFIXES:
            library.add(load_dialog_tree(path))
    return library

def validate_tree(tree: DialogTree, dispatcher: Optional[CommandDispatcher] = None) -> list[str]:

    issues: list[str] = []
    dispatcher = dispatcher or CommandDispatcher()

    # Header
    if not tree.start:
        issues.append(f"Tree '{tree.tree_id}' has no start node.")
    elif tree.find_node(tree.start) is None:
        issues.append(f"Tree '{tree.tree_id}' start node '{tree.start}' was not found in the 'nodes' list.")

    for key, node in tree.nodes.items():
        where = f"Node '{key}'"

        if node.node_id != key:
            issues.append(f"{where} declares a different node_id '{node.node_id}'.")

        if node.speaker and node.speaker not in tree.speakers:
            issues.append(f"{where} speaker '{node.speaker}' was not found in the 'speakers' list.")

        # References
        if node.next_if_auto and tree.find_node(node.next_if_auto) is None:
            issues.append(f"{where} next_if_auto '{node.next_if_auto}' was not found in the 'nodes' list.")

        for index, choice in enumerate(node.choices):
            choice_where = f"{where} choice {index + 1}"
            if choice.next and tree.find_node(choice.next) is None:
                issues.append(f"{choice_where} next '{choice.next}' was not found in the 'nodes' list.")
            if choice.has_condition:
                issues.extend(condition_issues(f"{choice_where} show_condition", choice.show_condition))
            for impact in choice.impacts:
                if not impact.variable.strip():
                    issues.append(f"{choice_where} has an impact with no variable.")
                if impact.is_conditional:
                    issues.extend(condition_issues(f"{choice_where} apply_condition", impact.apply_condition))

        # Commands
        for raw in [*node.start_commands, *node.end_commands]:
            cmd = parse_command(raw)
            if cmd.error:
                issues.append(f"{where}: {cmd.error}")
            elif cmd.kind and not dispatcher.is_known(cmd.kind):
                issues.append(f"{where} uses unknown command type '{cmd.kind}'.")

        # Dead ends
        if not node.choices and not node.next_if_auto and not node.is_end_node:
            issues.append(f"{where} has no choices, no next_if_auto and is not an end node.")

    for key, segment in tree.segments.items():
        where = f"Segment '{key}'"
        if segment.start_node and tree.find_node(segment.start_node) is None:
            issues.append(f"{where} start_node '{segment.start_node}' was not found in the 'nodes' list.")
        issues.extend(condition_issues(f"{where} required_condition", segment.required_condition))

    return issues

def condition_issues(where: str, expression: Optional[str]) -> list[str]:
    parsed = parse_condition(expression)
    if parsed.error:
        return [f"{where} '{parsed.raw}': {parsed.error}"]
    return []
