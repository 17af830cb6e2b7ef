import argparse
from pathlib import Path
from typing import Optional

def parse_main_args(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(description="Murmur - Branching dialogue player")
    parser.add_argument(
        "--content",
        type=Path,
        default=Path("assets/dialog"),
        help="Folder of dialog tree YAML files"
    )
    parser.add_argument(
        "--tree",
        type=str,
        required=False,
        help="ID of the dialog tree to start. Defaults to the first tree found."
    )
    parser.add_argument(
        "--node",
        type=str,
        required=False,
        help="ID of the node to start at, instead of the tree's start node"
    )
    parser.add_argument(
        "--saves",
        type=Path,
        default=Path("saves"),
        help="Folder for save files"
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Enable developer commands"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port for the web player"
    )
    return parser.parse_args(argv)
