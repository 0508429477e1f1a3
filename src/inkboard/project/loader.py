import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from inkboard.errors import ProjectError
from inkboard.project.schema import PROJECT_FILENAME, StoryboardProject


def project_path(work_dir: Path) -> Path:
    return work_dir / PROJECT_FILENAME


def load_project(work_dir: Path) -> StoryboardProject:
    """Load and validate STORYBOARD.json from *work_dir*. Raises ProjectError on failure."""
    path = project_path(work_dir)
    try:
        return StoryboardProject.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        field_errors = "; ".join(
            f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ProjectError(path, f"Schema validation failed: {field_errors}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ProjectError(path, str(e)) from e


def save_project(project: StoryboardProject, work_dir: Path) -> Path:
    """Atomically write *project* to work_dir using tempfile + os.replace().

    The temp file lives in the destination directory so os.replace() stays on
    one filesystem; readers see either the old file or the new one.
    """
    path = project_path(work_dir)
    data = project.model_dump_json(indent=2).encode("utf-8")
    fd, tmp_path = tempfile.mkstemp(dir=work_dir, suffix=".project.tmp")
    closed = False
    try:
        os.write(fd, data)
        os.fsync(fd)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except Exception:
        if not closed:
            os.close(fd)
        os.unlink(tmp_path)
        raise
    return path
