"""Session artifact storage."""

from panelkit.store.base import ArtifactStore
from panelkit.store.file import FileArtifactStore
from panelkit.store.memory import InMemoryArtifactStore

__all__ = ["ArtifactStore", "FileArtifactStore", "InMemoryArtifactStore"]
