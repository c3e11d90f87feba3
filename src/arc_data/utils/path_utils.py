"""File path checks shared by the import and export services."""

from pathlib import Path


def validate_safe_path(file_path: str, allowed_paths: list[Path] | None = None) -> Path:
    """Validate that file path is within the working directory or an allowed path.

    Args:
        file_path: Path given by the caller
        allowed_paths: Additional allowed base directories, already resolved

    Returns:
        The resolved path

    Raises:
        ValueError: If path is outside the allowed directories or uses path traversal
    """
    if ".." in Path(file_path).parts:
        raise ValueError(f"Path traversal detected in {file_path}")

    path_resolved = Path(file_path).resolve()
    allowed_bases = [Path.cwd().resolve(), *(allowed_paths or [])]
    for base in allowed_bases:
        if path_resolved.is_relative_to(base):
            return path_resolved
    raise ValueError(f"Path {file_path} is outside allowed directory")
