"""
Filesystem-backed standards repository.

FileStandardLoader reads standards from the configured folder on every call;
nothing is cached, so the folder contents are always the source of truth.

- list_standards: scans the folder (non-recursive) for visible `.md` files,
  validates the whole set, and returns each file's name and description.
  Any invalid or malformed file fails the whole listing.
- get_standards: looks standards up by name in request order. Missing
  standards are skipped; any other failure fails the whole call.

Directory scans, stat checks and file reads run in the default executor, so
a slow folder never blocks the stdio loop and a cancelled call stops before
the next file is touched.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

from agent_standards_mcp.config import StandardsConfig
from agent_standards_mcp.domain import Standard, StandardInfo
from agent_standards_mcp.errors import (
    ParseError,
    StandardNotFoundError,
    StandardsIOError,
)
from agent_standards_mcp.logging import get_logger
from agent_standards_mcp.standards.frontmatter import parse_frontmatter
from agent_standards_mcp.standards.validator import ValidationPolicy

logger = get_logger(__name__)

STANDARD_EXTENSION = ".md"

T = TypeVar("T")


def extract_standard_name(path: str | os.PathLike[str]) -> str:
    """
    Derive a standard name from its file path.

    Args:
        path: Path to the standard file.

    Returns:
        The base file name without its extension (e.g., "python" for
        "/srv/standards/python.md").
    """
    base = os.path.basename(path)
    stem, _ext = os.path.splitext(base)
    return stem if stem else base


async def _run_blocking(func: Callable[..., T], *args: Any) -> T:
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, func, *args)


def _read_text(path: Path) -> str:
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise StandardsIOError(
            f"failed to read file {path}: {e.strerror or e}",
            details={"path": str(path)},
        ) from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(
            f"file is not valid UTF-8: {path}",
            details={"path": str(path), "reason": "encoding"},
        ) from e


class FileStandardLoader:
    """
    Loads standards from a folder of markdown files.

    Example:
        >>> loader = FileStandardLoader(StandardsConfig(folder="/srv/standards"))
        >>> infos = await loader.list_standards()
        >>> standards = await loader.get_standards(["python", "git"])
    """

    def __init__(
        self,
        config: StandardsConfig,
        policy: ValidationPolicy | None = None,
    ) -> None:
        """
        Initialize the loader.

        Args:
            config: Standards configuration (folder and limits).
            policy: Optional validation policy; built from config if omitted.
        """
        self._root = config.folder_path
        self._policy = policy if policy is not None else ValidationPolicy.from_config(config)

    @property
    def root(self) -> Path:
        """The standards folder."""
        return self._root

    def standard_path(self, name: str) -> Path:
        """
        Return the file a standard name refers to.

        The name is appended to the folder and the result is normalized, so
        "/python" and "sub/../python" both name "<folder>/python.md". Names
        whose normalized path leaves the folder are left for the validation
        policy to reject.
        """
        return Path(os.path.normpath(f"{self._root}{os.sep}{name}{STANDARD_EXTENSION}"))

    async def _read_standard(self, path: Path) -> tuple[str, str]:
        """Read a file off the event loop and split it into description and content."""
        text = await _run_blocking(_read_text, path)
        try:
            return parse_frontmatter(text)
        except ParseError as e:
            raise ParseError(
                f"failed to parse frontmatter for {path}: {e.message}",
                details={**e.details, "path": str(path)},
            ) from e

    def _scan_and_validate(self) -> list[Path]:
        file_paths = self._find_standard_files()
        self._policy.validate_files(file_paths, self._root)
        return file_paths

    def _find_standard_files(self) -> list[Path]:
        """
        List candidate standard files directly under the root folder.

        Hidden entries, non-regular files (including symlinks) and files
        whose extension is not exactly ".md" are skipped.

        Returns:
            Candidate paths in directory enumeration order. Empty if the
            folder does not exist.
        """
        try:
            with os.scandir(self._root) as entries:
                files = [
                    self._root / entry.name
                    for entry in entries
                    if not entry.name.startswith(".")
                    and entry.is_file(follow_symlinks=False)
                    and os.path.splitext(entry.name)[1] == STANDARD_EXTENSION
                ]
        except FileNotFoundError:
            logger.debug(
                "Standards folder does not exist",
                extra={"folder": str(self._root)},
            )
            return []
        except OSError as e:
            raise StandardsIOError(
                f"failed to read standards directory {self._root}: {e.strerror or e}",
                details={"folder": str(self._root)},
            ) from e

        return files

    async def list_standards(self) -> list[StandardInfo]:
        """
        Return the name and description of every standard.

        Returns:
            One StandardInfo per standard file, in directory order.

        Raises:
            ValidationError: If the folder holds too many files or any file
                fails validation.
            ParseError: If any file has malformed frontmatter.
            StandardsIOError: If the folder or a file cannot be read.
        """
        file_paths = await _run_blocking(self._scan_and_validate)

        infos: list[StandardInfo] = []
        for file_path in file_paths:
            description, _content = await self._read_standard(file_path)
            infos.append(
                StandardInfo(
                    name=extract_standard_name(file_path),
                    description=description,
                )
            )

        logger.debug(
            "Listed standards",
            extra={"folder": str(self._root), "count": len(infos)},
        )
        return infos

    async def get_standards(self, standard_names: Sequence[str]) -> list[Standard]:
        """
        Return the full standards for the given names.

        Names are processed in order and duplicates are kept. Names with no
        matching file are skipped.

        Args:
            standard_names: Standard names (file names without ".md").

        Returns:
            The found standards, in request order.

        Raises:
            ValidationError: If a name escapes the folder or its file fails
                validation.
            ParseError: If a file has malformed frontmatter.
            StandardsIOError: If a file cannot be read.
        """
        standards: list[Standard] = []

        for name in standard_names:
            file_path = self.standard_path(name)

            try:
                await _run_blocking(self._policy.validate_file, file_path, self._root)
            except StandardNotFoundError:
                logger.debug("Standard not found, skipping", extra={"standard": name})
                continue

            description, content = await self._read_standard(file_path)
            standards.append(
                Standard(name=name, description=description, content=content)
            )

        return standards
