from pathlib import Path
from typing import Optional, Set

from sqsh.core.config import AdvancedSettings
from sqsh.core.errors import InvalidDestination
from sqsh.utils.logger import get_logger


OUTPUT_SUFFIX = "-sqshed"


# ============================================================================
# Output Path Allocator
# ============================================================================


class OutputPathAllocator:
    """
    Hands out output paths that never collide.

    A candidate is free when nothing exists at that path on disk and this
    allocator hasn't handed it out before.
    """

    def __init__(self):
        self._reserved: Set[Path] = set()

    def allocate(self, input_path: Path, advanced: Optional[AdvancedSettings] = None) -> Path:
        """
        Determine the output path for a file.

        Args:
            input_path: Path to the source file
            advanced: Optional output folder / output format overrides

        Returns:
            ``<dir>/<stem>-sqshed<ext>``, or ``-sqshed-1``, ``-sqshed-2``... if taken

        Raises:
            InvalidDestination: If the output folder override is not an existing directory
        """
        output_folder = advanced.output_folder if advanced else None
        output_format = advanced.output_format if advanced else None

        if output_folder is not None:
            directory = Path(output_folder).expanduser()
            if not directory.is_dir():
                raise InvalidDestination(f"Output folder does not exist or is not a directory: {directory}")
        else:
            directory = input_path.parent

        suffix = f".{output_format}" if output_format else input_path.suffix
        base = f"{input_path.stem}{OUTPUT_SUFFIX}"

        candidate = directory / f"{base}{suffix}"
        counter = 0
        while candidate.exists() or candidate in self._reserved:
            counter += 1
            candidate = directory / f"{base}-{counter}{suffix}"

        self._reserved.add(candidate)
        return candidate


# ============================================================================
# File Processor
# ============================================================================


class FileProcessor:
    """Filesystem side effects around a compression."""

    @staticmethod
    def cleanup_output(out_path: Path) -> None:
        """Remove an output file if it was written."""
        if out_path.exists():
            out_path.unlink()

    @staticmethod
    def remove_input(in_path: Path) -> bool:
        """
        Delete an original after a successful compression.

        Returns:
            True if the file was deleted
        """
        try:
            in_path.unlink()
        except OSError as e:
            get_logger().warning(f"Could not remove original {in_path}: {e}")
            return False
        get_logger().notice(f"Removed original: {in_path}")
        return True
