"""Pipeline orchestrators for ClipForge."""

from clipforge.pipelines.scene_orchestrator import SceneOrchestrator

__all__ = ["SceneOrchestrator"]
