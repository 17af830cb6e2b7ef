import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional

logger = logging.getLogger(__name__)

VariableKind = Literal["int", "bool", "float", "string"]

# Called with (kind, key, new_value) after the value has been committed
VariableListener = Callable[[VariableKind, str, Any], None]

CLAMPED_INT_RANGES: dict[str, tuple[int, int]] = {
    "sanity": (0, 100),
}

def default_int_seeds() -> dict[str, int]:
    return {
        "courage": 0,
        "trust_alina": 0,
        "trust_writer": 0,
        "sanity": 50,
        "investigation": 0,
    }

def default_bool_seeds() -> dict[str, bool]:
    return {
        "journal_found": False,
        "saw_dolls": False,
        "heard_scream": False,
        "met_writer": False,
        "portal_discovered": False,
    }

@dataclass
class VariableSeeds:
    """Default values the store starts with, and returns to on reset"""
    ints: dict[str, int] = field(default_factory=default_int_seeds)
    bools: dict[str, bool] = field(default_factory=default_bool_seeds)
    floats: dict[str, float] = field(default_factory=dict)
    strings: dict[str, str] = field(default_factory=dict)

@dataclass
class VariableSnapshot:
    """Plain data copy of the store, for saving and restoring"""
    ints: dict[str, int] = field(default_factory=dict)
    bools: dict[str, bool] = field(default_factory=dict)
    floats: dict[str, float] = field(default_factory=dict)
    strings: dict[str, str] = field(default_factory=dict)

class TypedVariables:
    """
    A single typed map of variables.
    Keys are compared case-insensitively. The spelling used on first write is
    kept for display.
    """
    def __init__(self, kind: VariableKind, default: Any):
        self.kind: VariableKind = kind
        self.default = default
        self.values: dict[str, Any] = {}
        self.names: dict[str, str] = {}

    def get(self, key: str) -> Any:
        return self.values.get(normalise_key(key), self.default)

    def has(self, key: str) -> bool:
        return normalise_key(key) in self.values

    def put(self, key: str, value: Any):
        norm = normalise_key(key)
        self.values[norm] = value
        self.names.setdefault(norm, key.strip())

    def clear(self):
        self.values.clear()
        self.names.clear()

    def items(self) -> dict[str, Any]:
        return { self.names[norm]: value for norm, value in self.values.items() }

class VariableStore:
    """
    Mutable store of the narrative state: ints, bools, floats and strings.
    Every successful setter call notifies subscribers exactly once, after the
    value is committed. Empty keys are rejected with a warning.
    """
    def __init__(self, seeds: Optional[VariableSeeds] = None):
        self.seeds = seeds if seeds is not None else VariableSeeds()
        self.ints = TypedVariables("int", 0)
        self.bools = TypedVariables("bool", False)
        self.floats = TypedVariables("float", 0.0)
        self.strings = TypedVariables("string", "")
        self.listeners: list[VariableListener] = []
        self.apply_seeds(notify=False)

    def subscribe(self, listener: VariableListener):
        if listener not in self.listeners:
            self.listeners.append(listener)

    def unsubscribe(self, listener: VariableListener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    # Ints

    def set_int(self, key: str, value: int):
        self.write(self.ints, key, clamp_int(key, int(value)) if valid_key(key) else value)

    def get_int(self, key: str) -> int:
        return self.ints.get(key) if valid_key(key) else 0

    def has_int(self, key: str) -> bool:
        return valid_key(key) and self.ints.has(key)

    def add_int(self, key: str, delta: int):
        self.set_int(key, self.get_int(key) + delta)

    # Bools

    def set_bool(self, key: str, value: bool):
        self.write(self.bools, key, bool(value))

    def get_bool(self, key: str) -> bool:
        return self.bools.get(key) if valid_key(key) else False

    def has_bool(self, key: str) -> bool:
        return valid_key(key) and self.bools.has(key)

    def toggle_bool(self, key: str):
        self.set_bool(key, not self.get_bool(key))

    # Floats

    def set_float(self, key: str, value: float):
        self.write(self.floats, key, float(value))

    def get_float(self, key: str) -> float:
        return self.floats.get(key) if valid_key(key) else 0.0

    def has_float(self, key: str) -> bool:
        return valid_key(key) and self.floats.has(key)

    # Strings

    def set_string(self, key: str, value: Optional[str]):
        self.write(self.strings, key, value if value is not None else "")

    def get_string(self, key: str) -> str:
        return self.strings.get(key) if valid_key(key) else ""

    def has_string(self, key: str) -> bool:
        return valid_key(key) and self.strings.has(key)

    # Whole store

    def reset_all(self):
        """Restore the seeded defaults, notifying once per seeded key"""
        self.apply_seeds(notify=True)

    def snapshot(self) -> VariableSnapshot:
        return VariableSnapshot(
            ints=self.ints.items(),
            bools=self.bools.items(),
            floats=self.floats.items(),
            strings=self.strings.items(),
        )

    def restore(self, snapshot: VariableSnapshot):
        for variables in self.all_variables():
            variables.clear()
        for key, value in snapshot.ints.items():
            self.set_int(key, value)
        for key, value in snapshot.bools.items():
            self.set_bool(key, value)
        for key, value in snapshot.floats.items():
            self.set_float(key, value)
        for key, value in snapshot.strings.items():
            self.set_string(key, value)

    def describe(self) -> list[str]:
        lines = []
        for variables in self.all_variables():
            for key, value in sorted(variables.items().items()):
                lines.append(f"{key} ({variables.kind}) = {value}")
        return lines

    def all_variables(self) -> list[TypedVariables]:
        return [self.ints, self.bools, self.floats, self.strings]

    def apply_seeds(self, notify: bool):
        for variables in self.all_variables():
            variables.clear()

        seed_sets = [
            (self.ints, self.seeds.ints),
            (self.bools, self.seeds.bools),
            (self.floats, self.seeds.floats),
            (self.strings, self.seeds.strings),
        ]
        for variables, seeds in seed_sets:
            for key, value in seeds.items():
                if not key or not key.strip():
                    continue
                if variables is self.ints:
                    value = clamp_int(key, value)
                if notify:
                    self.write(variables, key, value)
                else:
                    variables.put(key, value)

    def write(self, variables: TypedVariables, key: str, value: Any):
        if not valid_key(key):
            logger.warning("Attempted to set %s variable with an empty key.", variables.kind)
            return

        variables.put(key, value)
        committed = variables.get(key)
        logger.debug("%s = %r", key, committed)
        for listener in list(self.listeners):
            listener(variables.kind, key, committed)

def normalise_key(key: str) -> str:
    return key.strip().casefold()

def valid_key(key: Optional[str]) -> bool:
    return bool(key and key.strip())

def clamp_int(key: str, value: int) -> int:
    limits = CLAMPED_INT_RANGES.get(normalise_key(key))
    if limits is None:
        return value
    low, high = limits
    return max(low, min(high, value))
