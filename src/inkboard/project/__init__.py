"""Project package: STORYBOARD.json schema and atomic load/save."""
from inkboard.project.loader import load_project, project_path, save_project
from inkboard.project.schema import PROJECT_FILENAME, KeyframeEntry, StoryboardProject

__all__ = [
    "PROJECT_FILENAME",
    "KeyframeEntry",
    "StoryboardProject",
    "load_project",
    "project_path",
    "save_project",
]
