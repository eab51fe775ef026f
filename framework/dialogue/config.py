"""
Dialogue runner configuration.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

# Node the engine starts from when none is given
DEFAULT_START_NODE = "Start"


class RunnerConfig(BaseModel):
    """
    Configuration for a DialogueRunner.

    Attributes:
        start_node: Node used by start() when no node is given
        start_automatically: Start the dialogue when the runner is added to a world
        automatic_commands: Dispatch commands to components before falling
            back to the presenter; when False every command goes to the presenter
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',
    )

    start_node: str = DEFAULT_START_NODE
    start_automatically: bool = False
    automatic_commands: bool = True

    @classmethod
    def load(cls, path: str | Path) -> RunnerConfig:
        """Load a configuration from a JSON file."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
