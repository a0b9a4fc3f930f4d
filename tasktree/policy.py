"""Policy models for tasktree.

Views that share the subtask editor differ only in a few rules: how deep
subtasks may nest, whether completion input is clamped, and which
departments' tasks are visible. These rules are pydantic models that can be
loaded from a TOML file.
"""

import sys
from pathlib import Path
from typing import List, Optional

# Use tomllib from stdlib in Python 3.11+, fallback to tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import BaseModel, Field, field_validator

from tasktree.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_POLICY_PATH = Path.home() / ".tasktree" / "policy.toml"


class EditorPolicy(BaseModel):
    """Rules for editing a subtask tree.

    Attributes:
        max_depth: Deepest allowed level (0 = top-level subtasks only).
            None means unlimited.
        clamp_completion: Clamp completion edits into [0, 100].
    """

    max_depth: Optional[int] = Field(default=None, ge=0, le=20)
    clamp_completion: bool = True

    def allows_child_at(self, parent_depth: int) -> bool:
        """Whether a node at ``parent_depth`` may receive a child."""
        return self.max_depth is None or parent_depth < self.max_depth


class VisibilityPolicy(BaseModel):
    """Which tasks a board shows.

    Attributes:
        departments: Department names matched case-insensitively as
            substrings of ``task.department`` ("tech" matches "Tech Team").
            An empty list shows every task.
    """

    departments: List[str] = Field(default_factory=list)

    @field_validator('departments')
    @classmethod
    def normalize_departments(cls, v: List[str]) -> List[str]:
        """Lower-case and strip department names, dropping blanks."""
        return [name.strip().lower() for name in v if name.strip()]


class PolicyConfig(BaseModel):
    """Root policy configuration.

    Attributes:
        editor: Subtask editing rules.
        visibility: Board visibility rules.
    """

    editor: EditorPolicy = Field(default_factory=EditorPolicy)
    visibility: VisibilityPolicy = Field(default_factory=VisibilityPolicy)

    @classmethod
    def from_toml_file(cls, path: Optional[Path] = None) -> 'PolicyConfig':
        """Load configuration from TOML file with fallback to defaults.

        Args:
            path: Path to the TOML file. If None, defaults to
                  ~/.tasktree/policy.toml.

        Returns:
            PolicyConfig loaded from file, or defaults if the file is missing.
        """
        if path is None:
            path = DEFAULT_POLICY_PATH

        if not path.exists():
            logger.info(f"Policy file not found at {path}. Using defaults.")
            return cls()

        with open(path, 'rb') as f:
            data = tomllib.load(f)

        logger.info(f"Loaded policy from {path}")
        return cls(**data)
