from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from sqsh.core.errors import ClassificationError
from sqsh.utils.logger import get_logger


# ============================================================================
# Media Categories
# ============================================================================


class MediaCategory(str, Enum):
    """Kind of media a file holds; decides which compressor handles it."""

    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"


VIDEO_EXTENSIONS = ("mp4", "mov", "avi", "mkv", "webm", "flv", "wmv", "m4v")
IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "bmp")
AUDIO_EXTENSIONS = ("mp3", "wav", "flac", "aac", "m4a", "ogg", "opus")

# Extension -> category. Each extension maps to exactly one category.
EXTENSION_CATEGORIES: Dict[str, MediaCategory] = {
    **{ext: MediaCategory.VIDEO for ext in VIDEO_EXTENSIONS},
    **{ext: MediaCategory.IMAGE for ext in IMAGE_EXTENSIONS},
    **{ext: MediaCategory.AUDIO for ext in AUDIO_EXTENSIONS},
}


@dataclass(frozen=True)
class FileDescriptor:
    """Identity of an input file."""

    path: Path
    name: str
    size: int
    category: MediaCategory
    extension: str


# ============================================================================
# File Classifier
# ============================================================================


def clean_path(raw: str) -> str:
    """Strip whitespace and the quotes terminals add around dropped paths."""
    cleaned = raw.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ("'", '"'):
        cleaned = cleaned[1:-1]
    return cleaned


def category_for_extension(extension: str) -> Optional[MediaCategory]:
    """Return the category for an extension (with or without dot), or None."""
    return EXTENSION_CATEGORIES.get(extension.lower().lstrip("."))


def supported_formats() -> str:
    """Comma separated list of supported extensions, grouped by category."""
    return ", ".join(VIDEO_EXTENSIONS + IMAGE_EXTENSIONS + AUDIO_EXTENSIONS)


class FileClassifier:
    """Turns user supplied paths into file descriptors."""

    @staticmethod
    def classify(path: Union[str, Path]) -> Optional[FileDescriptor]:
        """
        Classify a single path.

        Returns:
            FileDescriptor, or None if the path is missing, not a regular file,
            empty, or has an unsupported extension
        """
        try:
            return FileClassifier.require(path)
        except ClassificationError as e:
            get_logger().debug(f"Not classified: {e}")
            return None

    @staticmethod
    def require(path: Union[str, Path]) -> FileDescriptor:
        """
        Classify a single path, raising on failure.

        Raises:
            ClassificationError: With the reason the path was rejected
        """
        if isinstance(path, str):
            path = Path(clean_path(path))
        path = path.expanduser()

        if not path.exists():
            raise ClassificationError(path, "File not found")
        if not path.is_file():
            raise ClassificationError(path, "Not a regular file")

        extension = path.suffix.lower().lstrip(".")
        category = category_for_extension(extension) if extension else None
        if category is None:
            raise ClassificationError(path, "Unsupported format")

        size = path.stat().st_size
        if size <= 0:
            raise ClassificationError(path, "File is empty")

        resolved = path.resolve()
        return FileDescriptor(
            path=resolved,
            name=resolved.name,
            size=size,
            category=category,
            extension=extension,
        )

    @staticmethod
    def enumerate(dir_path: Union[str, Path]) -> List[FileDescriptor]:
        """
        List supported files directly inside a directory.

        Unsupported entries and nested directories are skipped; no recursion.
        """
        if isinstance(dir_path, str):
            dir_path = Path(clean_path(dir_path))
        dir_path = dir_path.expanduser()

        if not dir_path.is_dir():
            raise ClassificationError(dir_path, "Not a directory")

        descriptors = []
        for entry in sorted(dir_path.iterdir(), key=lambda p: p.name.lower()):
            descriptor = FileClassifier.classify(entry)
            if descriptor is not None:
                descriptors.append(descriptor)

        get_logger().debug(f"Found {len(descriptors)} supported file(s) in {dir_path}")
        return descriptors
