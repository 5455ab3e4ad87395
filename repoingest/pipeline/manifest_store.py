"""Manifest persistence.

The manifest is read once at run start and overwritten wholesale at run
end. An unreadable or malformed manifest means "nothing indexed yet".
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from repoingest.models.manifest import IngestManifest

logger = logging.getLogger(__name__)


def load_manifest(path: str | Path) -> IngestManifest:
    """Read the manifest file, or return an empty manifest."""
    manifest_path = Path(path)
    try:
        raw = json.loads(manifest_path.read_text(encoding="utf-8"))
        return IngestManifest.from_dict(raw)
    except FileNotFoundError:
        return IngestManifest()
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning("manifest_unreadable path=%s reason=%s", manifest_path, exc)
        return IngestManifest()


def save_manifest(path: str | Path, manifest: IngestManifest) -> None:
    """Overwrite the manifest file with the in-memory manifest."""
    manifest_path = Path(path)
    manifest_path.write_text(
        json.dumps(manifest.to_dict(), indent=2, sort_keys=True), encoding="utf-8"
    )
    logger.debug("manifest_saved path=%s files=%d", manifest_path, len(manifest.files))
