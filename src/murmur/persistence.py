import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from dacite import Config, from_dict
from dacite.exceptions import DaciteError
from .variables import VariableSnapshot

logger = logging.getLogger(__name__)

@dataclass
class SessionState:
    """Everything about a play session that survives a save and load"""
    variables: VariableSnapshot = field(default_factory=VariableSnapshot)
    inventory: list[str] = field(default_factory=list)
    completed_segments: list[str] = field(default_factory=list)

class GameStatePersister:
    def __init__(self, saves_folder: Path):
        self.saves_folder = get_sub_folder_path(saves_folder)

    def get_save_file_path(self, filename: str) -> Path:
        return get_file_path(self.saves_folder, filename, ".json")

    def save_game_state(self, state: SessionState, filename: str):
        save_file_path = self.get_save_file_path(filename)

        # Serialize game state
        state_json = json.dumps(state_to_dict(state), indent=2)

        # Write to file
        logger.info("Saving to: %s", save_file_path)
        save_file_path.write_text(state_json, encoding="utf-8")

    def load_game_state(self, filename: str) -> SessionState:
        save_file_path = self.get_save_file_path(filename)
        if not save_file_path.exists():
            raise RuntimeError(f"Save '{filename}' does not exist.")

        # Read from file
        logger.info("Loading from: %s", save_file_path)
        state_json = save_file_path.read_text(encoding="utf-8")

        # Deserialize
        try:
            state_dict = json.loads(state_json)
            return state_from_dict(state_dict)
        except (json.JSONDecodeError, DaciteError, ValueError, TypeError) as exc:
            raise RuntimeError(f"Save '{filename}' is corrupt: {exc}") from exc

    def list_saves(self) -> list[str]:
        return sorted(path.stem for path in self.saves_folder.glob("*.json"))

def get_sub_folder_path(folder: Path) -> Path:
    path = folder.resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path

def get_file_path(folder_path: Path, filename: str, ext: str) -> Path:
    file_path = (folder_path / filename).with_suffix(ext).resolve()

    if not file_path.is_relative_to(folder_path):
        raise RuntimeError("Invalid filename")

    return file_path

def state_to_dict(state: SessionState) -> dict:
    return asdict(state)

def state_from_dict(data: dict) -> SessionState:
    return from_dict(SessionState, data, config=Config(cast=[float]))
