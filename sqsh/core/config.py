from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

from sqsh.core.errors import BatchValidationError, InvalidDestination, InvalidOutputFormat, InvalidTargetSize
from sqsh.core.file_classifier import (
    AUDIO_EXTENSIONS,
    EXTENSION_CATEGORIES,
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    FileDescriptor,
    MediaCategory,
)
from sqsh.utils.format import format_size


# ============================================================================
# Settings
# ============================================================================


class QualityTier(str, Enum):
    """Coarse preset controlling compression aggressiveness."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AdvancedSettings:
    """Optional batch-wide overrides. None means 'same as input' / 'no target' / 'keep original'."""

    output_folder: Optional[Path] = None
    target_size: Optional[int] = None
    output_format: Optional[str] = None

    def __post_init__(self):
        if self.output_format is not None:
            object.__setattr__(self, "output_format", self.output_format.lower().lstrip("."))
        if self.output_folder is not None and not isinstance(self.output_folder, Path):
            object.__setattr__(self, "output_folder", Path(self.output_folder))

    @property
    def is_empty(self) -> bool:
        return self.output_folder is None and self.target_size is None and self.output_format is None


@dataclass(frozen=True)
class CompressionSettings:
    """Settings shared identically by every file of one batch run."""

    quality_tier: QualityTier = QualityTier.MEDIUM
    remove_input_file: bool = False
    advanced: Optional[AdvancedSettings] = None
    crf: Optional[int] = None
    image_quality: Optional[int] = None
    audio_bitrate: Optional[int] = None

    @property
    def target_size(self) -> Optional[int]:
        return self.advanced.target_size if self.advanced else None

    @property
    def output_format(self) -> Optional[str]:
        return self.advanced.output_format if self.advanced else None


def resolve(
    quality_tier: Union[QualityTier, str],
    advanced: Optional[AdvancedSettings] = None,
    *,
    remove_input_file: bool = False,
    crf: Optional[int] = None,
    image_quality: Optional[int] = None,
    audio_bitrate: Optional[int] = None,
) -> CompressionSettings:
    """Combine a tier, numeric overrides and advanced settings into one settings object."""
    if advanced is not None and advanced.is_empty:
        advanced = None
    return CompressionSettings(
        quality_tier=QualityTier(quality_tier),
        remove_input_file=remove_input_file,
        advanced=advanced,
        crf=crf,
        image_quality=image_quality,
        audio_bitrate=audio_bitrate,
    )


# ============================================================================
# Encoder Parameter Tables
# ============================================================================


class VideoCodec(str, Enum):
    H264 = "h264"
    VP9 = "vp9"


class ImageCodec(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"


class AudioCodec(str, Enum):
    MP3 = "mp3"
    AAC = "aac"
    OPUS = "opus"
    VORBIS = "vorbis"
    FLAC = "flac"
    PCM = "pcm"


# Output extension -> codec family used to encode it
FORMAT_CODECS: Dict[str, Enum] = {
    "mp4": VideoCodec.H264,
    "mov": VideoCodec.H264,
    "avi": VideoCodec.H264,
    "mkv": VideoCodec.H264,
    "flv": VideoCodec.H264,
    "wmv": VideoCodec.H264,
    "m4v": VideoCodec.H264,
    "webm": VideoCodec.VP9,
    "jpg": ImageCodec.JPEG,
    "jpeg": ImageCodec.JPEG,
    "png": ImageCodec.PNG,
    "webp": ImageCodec.WEBP,
    "gif": ImageCodec.GIF,
    "bmp": ImageCodec.BMP,
    "mp3": AudioCodec.MP3,
    "aac": AudioCodec.AAC,
    "m4a": AudioCodec.AAC,
    "opus": AudioCodec.OPUS,
    "ogg": AudioCodec.VORBIS,
    "flac": AudioCodec.FLAC,
    "wav": AudioCodec.PCM,
}


@dataclass(frozen=True)
class VideoParams:
    crf: int
    preset: str


@dataclass(frozen=True)
class AudioParams:
    bitrate: Optional[int] = None  # kbps, lossy codecs
    compression_level: Optional[int] = None  # lossless codecs


# Image "level" meaning depends on codec: JPEG qscale (2 best - 31 worst),
# WebP quality (0-100), PNG compression level (0-9), GIF palette size, BMP unused.
VIDEO_TABLE: Dict[Tuple[QualityTier, VideoCodec], VideoParams] = {
    (QualityTier.HIGH, VideoCodec.H264): VideoParams(crf=23, preset="medium"),
    (QualityTier.MEDIUM, VideoCodec.H264): VideoParams(crf=28, preset="medium"),
    (QualityTier.LOW, VideoCodec.H264): VideoParams(crf=32, preset="fast"),
    (QualityTier.CUSTOM, VideoCodec.H264): VideoParams(crf=28, preset="medium"),
    (QualityTier.HIGH, VideoCodec.VP9): VideoParams(crf=31, preset="2"),
    (QualityTier.MEDIUM, VideoCodec.VP9): VideoParams(crf=36, preset="4"),
    (QualityTier.LOW, VideoCodec.VP9): VideoParams(crf=42, preset="5"),
    (QualityTier.CUSTOM, VideoCodec.VP9): VideoParams(crf=36, preset="4"),
}

IMAGE_TABLE: Dict[Tuple[QualityTier, ImageCodec], int] = {
    (QualityTier.HIGH, ImageCodec.JPEG): 2,
    (QualityTier.MEDIUM, ImageCodec.JPEG): 5,
    (QualityTier.LOW, ImageCodec.JPEG): 10,
    (QualityTier.CUSTOM, ImageCodec.JPEG): 5,
    (QualityTier.HIGH, ImageCodec.WEBP): 75,
    (QualityTier.MEDIUM, ImageCodec.WEBP): 60,
    (QualityTier.LOW, ImageCodec.WEBP): 35,
    (QualityTier.CUSTOM, ImageCodec.WEBP): 60,
    (QualityTier.HIGH, ImageCodec.PNG): 9,
    (QualityTier.MEDIUM, ImageCodec.PNG): 9,
    (QualityTier.LOW, ImageCodec.PNG): 9,
    (QualityTier.CUSTOM, ImageCodec.PNG): 9,
    (QualityTier.HIGH, ImageCodec.GIF): 256,
    (QualityTier.MEDIUM, ImageCodec.GIF): 128,
    (QualityTier.LOW, ImageCodec.GIF): 64,
    (QualityTier.CUSTOM, ImageCodec.GIF): 128,
    (QualityTier.HIGH, ImageCodec.BMP): 0,
    (QualityTier.MEDIUM, ImageCodec.BMP): 0,
    (QualityTier.LOW, ImageCodec.BMP): 0,
    (QualityTier.CUSTOM, ImageCodec.BMP): 0,
}

AUDIO_TABLE: Dict[Tuple[QualityTier, AudioCodec], AudioParams] = {
    (QualityTier.HIGH, AudioCodec.MP3): AudioParams(bitrate=192),
    (QualityTier.MEDIUM, AudioCodec.MP3): AudioParams(bitrate=128),
    (QualityTier.LOW, AudioCodec.MP3): AudioParams(bitrate=96),
    (QualityTier.CUSTOM, AudioCodec.MP3): AudioParams(bitrate=128),
    (QualityTier.HIGH, AudioCodec.AAC): AudioParams(bitrate=160),
    (QualityTier.MEDIUM, AudioCodec.AAC): AudioParams(bitrate=128),
    (QualityTier.LOW, AudioCodec.AAC): AudioParams(bitrate=96),
    (QualityTier.CUSTOM, AudioCodec.AAC): AudioParams(bitrate=128),
    (QualityTier.HIGH, AudioCodec.OPUS): AudioParams(bitrate=128),
    (QualityTier.MEDIUM, AudioCodec.OPUS): AudioParams(bitrate=96),
    (QualityTier.LOW, AudioCodec.OPUS): AudioParams(bitrate=64),
    (QualityTier.CUSTOM, AudioCodec.OPUS): AudioParams(bitrate=96),
    (QualityTier.HIGH, AudioCodec.VORBIS): AudioParams(bitrate=160),
    (QualityTier.MEDIUM, AudioCodec.VORBIS): AudioParams(bitrate=128),
    (QualityTier.LOW, AudioCodec.VORBIS): AudioParams(bitrate=96),
    (QualityTier.CUSTOM, AudioCodec.VORBIS): AudioParams(bitrate=128),
    (QualityTier.HIGH, AudioCodec.FLAC): AudioParams(compression_level=5),
    (QualityTier.MEDIUM, AudioCodec.FLAC): AudioParams(compression_level=8),
    (QualityTier.LOW, AudioCodec.FLAC): AudioParams(compression_level=12),
    (QualityTier.CUSTOM, AudioCodec.FLAC): AudioParams(compression_level=8),
    (QualityTier.HIGH, AudioCodec.PCM): AudioParams(),
    (QualityTier.MEDIUM, AudioCodec.PCM): AudioParams(),
    (QualityTier.LOW, AudioCodec.PCM): AudioParams(),
    (QualityTier.CUSTOM, AudioCodec.PCM): AudioParams(),
}

# Estimated output/input size ratio per tier, shown next to each quality choice
SIZE_ESTIMATES: Dict[Tuple[MediaCategory, QualityTier], float] = {
    (MediaCategory.VIDEO, QualityTier.HIGH): 0.875,
    (MediaCategory.VIDEO, QualityTier.MEDIUM): 0.65,
    (MediaCategory.VIDEO, QualityTier.LOW): 0.45,
    (MediaCategory.VIDEO, QualityTier.CUSTOM): 0.65,
    (MediaCategory.IMAGE, QualityTier.HIGH): 0.85,
    (MediaCategory.IMAGE, QualityTier.MEDIUM): 0.55,
    (MediaCategory.IMAGE, QualityTier.LOW): 0.35,
    (MediaCategory.IMAGE, QualityTier.CUSTOM): 0.55,
    (MediaCategory.AUDIO, QualityTier.HIGH): 0.75,
    (MediaCategory.AUDIO, QualityTier.MEDIUM): 0.55,
    (MediaCategory.AUDIO, QualityTier.LOW): 0.4,
    (MediaCategory.AUDIO, QualityTier.CUSTOM): 0.55,
}


def codec_for_format(extension: str) -> Enum:
    """Codec family used to write files with the given extension."""
    return FORMAT_CODECS[extension.lower().lstrip(".")]


def output_formats_for(category: MediaCategory) -> Tuple[str, ...]:
    """Output formats a file of the given category may be converted to."""
    return {
        MediaCategory.VIDEO: VIDEO_EXTENSIONS,
        MediaCategory.IMAGE: IMAGE_EXTENSIONS,
        MediaCategory.AUDIO: AUDIO_EXTENSIONS,
    }[category]


def estimate_compressed_size(original_size: int, quality_tier: QualityTier, category: MediaCategory) -> int:
    """Rough output size for a tier, based on typical results."""
    return round(original_size * SIZE_ESTIMATES[(category, QualityTier(quality_tier))])


def validate_tables() -> None:
    """
    Check every lookup table covers every enum combination.

    Raises:
        RuntimeError: If any combination is missing
    """
    checks = (
        ("video", VIDEO_TABLE, VideoCodec),
        ("image", IMAGE_TABLE, ImageCodec),
        ("audio", AUDIO_TABLE, AudioCodec),
    )
    missing = []
    for label, table, codecs in checks:
        for tier in QualityTier:
            for codec in codecs:
                if (tier, codec) not in table:
                    missing.append(f"{label}:{tier.value}/{codec.value}")

    for extension in EXTENSION_CATEGORIES:
        if extension not in FORMAT_CODECS:
            missing.append(f"format:{extension}")

    for category in MediaCategory:
        for tier in QualityTier:
            if (category, tier) not in SIZE_ESTIMATES:
                missing.append(f"estimate:{category.value}/{tier.value}")

    if missing:
        raise RuntimeError(f"Encoder parameter tables are incomplete: {', '.join(missing)}")


validate_tables()


# ============================================================================
# Parameter Validator
# ============================================================================


class ParameterValidator:
    """Validates compression parameters before a batch starts."""

    @staticmethod
    def validate(settings: CompressionSettings) -> None:
        """Validate numeric overrides and advanced settings that don't depend on the files."""
        ParameterValidator.validate_crf(settings.crf)
        ParameterValidator.validate_image_quality(settings.image_quality)
        ParameterValidator.validate_audio_bitrate(settings.audio_bitrate)
        if settings.advanced is not None:
            ParameterValidator.validate_output_folder(settings.advanced.output_folder)
            if settings.advanced.output_format is not None:
                ParameterValidator.validate_output_format(settings.advanced.output_format)

    @staticmethod
    def validate_crf(crf: Optional[int]) -> None:
        if crf is not None and not (0 <= crf <= 51):
            raise ValueError(f"crf must be between 0 and 51, got {crf}")

    @staticmethod
    def validate_image_quality(image_quality: Optional[int]) -> None:
        if image_quality is not None and not (1 <= image_quality <= 100):
            raise ValueError(f"image_quality must be between 1 and 100, got {image_quality}")

    @staticmethod
    def validate_audio_bitrate(audio_bitrate: Optional[int]) -> None:
        if audio_bitrate is not None and not (8 <= audio_bitrate <= 512):
            raise ValueError(f"audio_bitrate must be between 8 and 512 kbps, got {audio_bitrate}")

    @staticmethod
    def validate_output_folder(output_folder: Optional[Path]) -> None:
        """Output folder override must be an existing directory."""
        if output_folder is None:
            return
        folder = Path(output_folder).expanduser()
        if not folder.exists():
            raise InvalidDestination(f"Output folder does not exist: {folder}")
        if not folder.is_dir():
            raise InvalidDestination(f"Output folder is not a directory: {folder}")

    @staticmethod
    def validate_output_format(output_format: str, category: Optional[MediaCategory] = None) -> None:
        """Output format must be known, and match the category when one is given."""
        fmt = output_format.lower().lstrip(".")
        if fmt not in FORMAT_CODECS:
            raise InvalidOutputFormat(f"Unsupported output format: {output_format}")
        if category is not None and fmt not in output_formats_for(category):
            allowed = ", ".join(output_formats_for(category))
            raise InvalidOutputFormat(f"Cannot convert {category.value} files to .{fmt}. Choose one of: {allowed}")

    @staticmethod
    def validate_target_size(target_size: Optional[int], descriptors: Iterable[FileDescriptor]) -> None:
        """Target size must be positive and strictly smaller than every input."""
        if target_size is None:
            return
        if target_size <= 0:
            raise InvalidTargetSize(f"Target size must be greater than zero, got {target_size}")
        for descriptor in descriptors:
            if target_size >= descriptor.size:
                raise InvalidTargetSize(
                    f"Target size ({format_size(target_size)}) must be smaller than "
                    f"{descriptor.name} ({format_size(descriptor.size)})"
                )

    @staticmethod
    def validate_category(descriptors: Sequence[FileDescriptor]) -> MediaCategory:
        """
        All files of a batch must share one category.

        Returns:
            The batch category
        """
        if not descriptors:
            raise BatchValidationError("No files to compress")
        categories = {d.category for d in descriptors}
        if len(categories) > 1:
            names = ", ".join(sorted(c.value for c in categories))
            raise BatchValidationError(
                f"Cannot mix file types in one batch ({names}). Select only videos, only images or only audio."
            )
        return descriptors[0].category

    @staticmethod
    def validate_batch(descriptors: Sequence[FileDescriptor], settings: CompressionSettings) -> MediaCategory:
        """Run every check that must pass before any file starts compressing."""
        category = ParameterValidator.validate_category(descriptors)
        ParameterValidator.validate(settings)
        ParameterValidator.validate_target_size(settings.target_size, descriptors)
        if settings.output_format is not None:
            ParameterValidator.validate_output_format(settings.output_format, category)
        return category
