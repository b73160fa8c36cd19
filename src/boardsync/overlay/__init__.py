"""Analysis overlay: inbound parsing, scene geometry and drawing surfaces."""

from boardsync.overlay.protocol import parse_analysis_message
from boardsync.overlay.renderer import OverlayRenderer
from boardsync.overlay.scene import build_scene, format_score
from boardsync.overlay.surface import BrowserOverlaySurface, RecordingOverlaySurface

__all__ = [
    "OverlayRenderer",
    "BrowserOverlaySurface",
    "RecordingOverlaySurface",
    "build_scene",
    "format_score",
    "parse_analysis_message",
]
