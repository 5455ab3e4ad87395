"""File discovery."""

from repoingest.discovery.git import files_changed_since, list_tracked_files

__all__ = ["files_changed_since", "list_tracked_files"]
