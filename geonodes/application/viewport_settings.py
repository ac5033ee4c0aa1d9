"""
Viewport settings: how the 3D viewport draws the current artifact.

Settings are saved to project_settings/viewport.json inside the project
directory. The application only reads them; the viewport UI writes them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from geonodes import log


class FaceDrawMode(Enum):
    """How mesh faces are drawn."""
    REAL = "real"  # Mesh's own smooth/flat preference
    FLAT = "flat"  # Debug: flat normals, shrunk faces
    SMOOTH = "smooth"  # Debug: smooth normals, shrunk faces
    NONE = "none"


class EdgeDrawMode(Enum):
    """How mesh edges are drawn."""
    HALF_EDGE = "half_edge"
    FULL_EDGE = "full_edge"
    NONE = "none"


@dataclass
class Viewport3dSettings:
    """Draw-mode settings of the 3D viewport."""

    face_mode: FaceDrawMode = FaceDrawMode.REAL
    edge_mode: EdgeDrawMode = EdgeDrawMode.FULL_EDGE

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "face_mode": self.face_mode.value,
            "edge_mode": self.edge_mode.value,
        }

    @staticmethod
    def from_dict(data: dict) -> "Viewport3dSettings":
        """Deserialize from dictionary."""
        try:
            face_mode = FaceDrawMode(data.get("face_mode", FaceDrawMode.REAL.value))
        except ValueError:
            face_mode = FaceDrawMode.REAL
        try:
            edge_mode = EdgeDrawMode(data.get("edge_mode", EdgeDrawMode.FULL_EDGE.value))
        except ValueError:
            edge_mode = EdgeDrawMode.FULL_EDGE

        return Viewport3dSettings(
            face_mode=face_mode,
            edge_mode=edge_mode,
        )


class ViewportSettingsManager:
    """
    Singleton manager for viewport settings.

    Handles loading/saving settings from project directory.
    """

    _instance: Optional["ViewportSettingsManager"] = None
    _settings: Viewport3dSettings
    _project_path: Optional[Path] = None

    def __init__(self) -> None:
        self._settings = Viewport3dSettings()

    @classmethod
    def instance(cls) -> "ViewportSettingsManager":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = ViewportSettingsManager()
        return cls._instance

    @property
    def settings(self) -> Viewport3dSettings:
        """Get current viewport settings."""
        return self._settings

    @property
    def project_path(self) -> Optional[Path]:
        """Get current project path."""
        return self._project_path

    def set_project_path(self, path: Path) -> None:
        """Set project path and load settings."""
        self._project_path = Path(path)
        self._load()

    def _get_settings_path(self) -> Optional[Path]:
        """Get path to settings file."""
        if self._project_path is None:
            return None
        return self._project_path / "project_settings" / "viewport.json"

    def _load(self) -> None:
        """Load settings from file, falling back to defaults."""
        settings_path = self._get_settings_path()
        if settings_path is None or not settings_path.exists():
            self._settings = Viewport3dSettings()
            return

        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                log.warn(f"[ViewportSettings] Expected a JSON object in {settings_path}, using defaults")
                self._settings = Viewport3dSettings()
                return
            self._settings = Viewport3dSettings.from_dict(data)
            log.info(f"[ViewportSettings] Loaded from {settings_path}")
        except (OSError, json.JSONDecodeError) as e:
            log.warn(e, f"[ViewportSettings] Failed to load {settings_path}")
            self._settings = Viewport3dSettings()

    def save(self) -> bool:
        """Save settings to file."""
        settings_path = self._get_settings_path()
        if settings_path is None:
            log.error("[ViewportSettings] No project path set, cannot save")
            return False

        try:
            settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings.to_dict(), f, indent=2)
            log.info(f"[ViewportSettings] Saved to {settings_path}")
            return True
        except OSError as e:
            log.error(f"[ViewportSettings] Failed to save settings: {e}")
            return False

    def set_face_mode(self, mode: FaceDrawMode) -> None:
        self._settings.face_mode = mode
        self.save()

    def set_edge_mode(self, mode: EdgeDrawMode) -> None:
        self._settings.edge_mode = mode
        self.save()
