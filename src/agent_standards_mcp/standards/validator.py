"""
Validation policy for standard files.

Every file the repository reads passes through ValidationPolicy first:
- the path must stay inside the standards directory (checked before anything
  touches the filesystem, so traversal attempts never leak existence)
- the path must exist and be a regular file
- the file must not exceed the configured size limit

A set of files is also checked against the configured count limit before
any individual file is validated.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Sequence
from pathlib import Path

from agent_standards_mcp.config import StandardsConfig
from agent_standards_mcp.errors import (
    PathTraversalError,
    StandardNotFoundError,
    StandardsIOError,
    ValidationError,
)
from agent_standards_mcp.logging import get_logger

logger = get_logger(__name__)

PathLike = str | os.PathLike[str]


def is_path_traversal(path: PathLike, root_dir: PathLike) -> bool:
    """
    Check whether a path escapes the given root directory.

    Both paths are made absolute without resolving symlinks, and the relative
    path from root to file is inspected for a leading parent segment.

    Args:
        path: Candidate file path.
        root_dir: Directory the file must stay within.

    Returns:
        True if the path is outside root_dir or cannot be resolved.
    """
    try:
        abs_root = os.path.abspath(root_dir)
        abs_path = os.path.abspath(path)
        rel = os.path.relpath(abs_path, abs_root)
    except (OSError, ValueError):
        return True

    return rel == os.pardir or rel.startswith(os.pardir + os.sep)


class ValidationPolicy:
    """
    Path, size and count checks for standard files.

    Example:
        >>> policy = ValidationPolicy.from_config(config.standards)
        >>> policy.validate_file("/srv/standards/python.md", "/srv/standards")
    """

    def __init__(self, max_standards: int, max_standard_size: int) -> None:
        """
        Initialize the policy.

        Args:
            max_standards: Maximum number of files in a validated set.
            max_standard_size: Maximum size of a single file in bytes.
        """
        self.max_standards = max_standards
        self.max_standard_size = max_standard_size

    @classmethod
    def from_config(cls, config: StandardsConfig) -> ValidationPolicy:
        """Create a policy from the standards configuration."""
        return cls(
            max_standards=config.max_standards,
            max_standard_size=config.max_standard_size,
        )

    def validate_file(self, path: PathLike, root_dir: PathLike) -> None:
        """
        Validate a single standard file.

        Args:
            path: File to validate.
            root_dir: Directory the file must be located within.

        Raises:
            PathTraversalError: If the path escapes root_dir.
            StandardNotFoundError: If the file does not exist.
            ValidationError: If the path is not a regular file or is too large.
            StandardsIOError: If the file cannot be stat-ed.
        """
        if is_path_traversal(path, root_dir):
            logger.warning(
                "Path traversal attempt rejected",
                extra={"path": str(path), "root_dir": str(root_dir)},
            )
            raise PathTraversalError(
                f"path traversal detected: {path}",
                details={"path": str(path)},
            )

        try:
            file_stat = Path(path).stat()
        except FileNotFoundError as e:
            raise StandardNotFoundError(
                f"file does not exist: {path}",
                details={"path": str(path)},
            ) from e
        except ValueError as e:
            raise ValidationError(
                f"invalid path: {path!r}",
                details={"path": repr(path)},
            ) from e
        except OSError as e:
            raise StandardsIOError(
                f"failed to stat file {path}: {e.strerror or e}",
                details={"path": str(path)},
            ) from e

        if not stat.S_ISREG(file_stat.st_mode):
            raise ValidationError(
                f"path is not a file: {path}",
                details={"path": str(path)},
            )

        if file_stat.st_size > self.max_standard_size:
            raise ValidationError(
                f"file size exceeds maximum limit of {self.max_standard_size} bytes: "
                f"{file_stat.st_size} ({path})",
                details={
                    "path": str(path),
                    "max_size": self.max_standard_size,
                    "size": file_stat.st_size,
                },
            )

    def validate_files(self, paths: Sequence[PathLike], root_dir: PathLike) -> None:
        """
        Validate a set of standard files.

        The count limit is checked first; then each file in order, stopping at
        the first failure.

        Args:
            paths: Files to validate.
            root_dir: Directory the files must be located within.

        Raises:
            ValidationError: If there are too many files, or any file fails
                validate_file (the specific subclass is preserved).
            StandardsIOError: If a file cannot be stat-ed.
        """
        if len(paths) > self.max_standards:
            raise ValidationError(
                f"number of files exceeds maximum limit of {self.max_standards}: "
                f"{len(paths)}",
                details={"max_standards": self.max_standards, "count": len(paths)},
            )

        for path in paths:
            self.validate_file(path, root_dir)
