"""
Runtime render configuration and persisted snapping preferences.
"""
import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from inkmark.utils.resource_loader import get_config_dir

logger = logging.getLogger(__name__)

PREFS_FILENAME = "render_prefs.json"

DEFAULT_SNAP_TO_GUIDES = True
DEFAULT_SNAP_EDGE_PX = 8


@dataclass
class RenderConfig:
    """Snapping and sizing parameters read by the interaction layer."""
    grid_px: int = 16
    min_text_w: int = 60
    min_text_h: int = 32
    snap_to_guides: bool = DEFAULT_SNAP_TO_GUIDES
    snap_edge_px: int = DEFAULT_SNAP_EDGE_PX

    def update(self, **patch: Any) -> "RenderConfig":
        """Shallow-merge known fields; unknown keys are ignored."""
        known = {f.name for f in fields(self)}
        for name, value in patch.items():
            if name in known:
                setattr(self, name, value)
        return self


@dataclass
class RenderPreferences:
    """
    User-facing snapping preferences, stored as JSON in the config directory.
    """
    snap_to_guides: bool = DEFAULT_SNAP_TO_GUIDES
    snap_edge_px: int = DEFAULT_SNAP_EDGE_PX
    path: Optional[Path] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "RenderPreferences":
        """
        Load preferences, falling back to defaults for anything unreadable.

        Args:
            path: Preferences file; defaults to the user config directory
        """
        path = path or get_config_dir() / PREFS_FILENAME
        prefs = cls(path=path)
        if not path.exists():
            return prefs

        try:
            stored = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable preferences %s: %s", path, e)
            return prefs

        if not isinstance(stored, dict):
            return prefs
        if 'snap_to_guides' in stored:
            prefs.snap_to_guides = bool(stored['snap_to_guides'])
        try:
            prefs.snap_edge_px = int(stored.get('snap_edge_px', prefs.snap_edge_px)) or DEFAULT_SNAP_EDGE_PX
        except (TypeError, ValueError):
            prefs.snap_edge_px = DEFAULT_SNAP_EDGE_PX
        return prefs

    def as_patch(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop('path')
        return data

    def save(self) -> bool:
        if self.path is None:
            return False
        try:
            self.path.write_text(json.dumps(self.as_patch()), encoding='utf-8')
            return True
        except OSError as e:
            logger.warning("Failed to save preferences %s: %s", self.path, e)
            return False

    def toggle_guides(self) -> "RenderPreferences":
        self.snap_to_guides = not self.snap_to_guides
        self.save()
        return self

    def cycle_edge(self) -> "RenderPreferences":
        """Step the edge threshold 8 -> 12 -> 16 -> 4 -> 8."""
        self.snap_edge_px = (self.snap_edge_px % 16) + 4
        self.save()
        return self

    def apply_to(self, config: RenderConfig) -> RenderConfig:
        return config.update(**self.as_patch())
