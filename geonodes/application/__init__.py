"""Application layer: per-frame orchestration and viewport buffer extraction."""

from geonodes.application.application_context import (
    AppRootAction,
    ApplicationContext,
    OverlayError,
    SetCodeViewerCode,
)
from geonodes.application.artifact_extractor import BufferSet, BufferSetKind, extract_buffers
from geonodes.application.render_context import RecordingRenderContext, RenderContext
from geonodes.application.viewport_settings import (
    EdgeDrawMode,
    FaceDrawMode,
    Viewport3dSettings,
    ViewportSettingsManager,
)

__all__ = [
    "AppRootAction",
    "ApplicationContext",
    "OverlayError",
    "SetCodeViewerCode",
    "BufferSet",
    "BufferSetKind",
    "extract_buffers",
    "RecordingRenderContext",
    "RenderContext",
    "EdgeDrawMode",
    "FaceDrawMode",
    "Viewport3dSettings",
    "ViewportSettingsManager",
]
