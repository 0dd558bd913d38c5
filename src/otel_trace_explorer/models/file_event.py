"""
File-system change events consumed from an external watcher.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class FileEventKind(str, Enum):
    CREATED = "Created"
    CHANGED = "Changed"
    DELETED = "Deleted"
    RENAMED = "Renamed"


class FileEvent(BaseModel):
    """A change to a trace file reported by the file watcher."""
    model_config = ConfigDict(frozen=True)

    kind: FileEventKind = Field(..., description="What happened to the file")
    file_path: str = Field(..., description="Path of the affected file (new path for renames)")
    old_path: Optional[str] = Field(None, description="Previous path, for renames only")
