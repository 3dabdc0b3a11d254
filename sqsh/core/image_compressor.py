from pathlib import Path
from typing import List, Optional

from sqsh.core.config import IMAGE_TABLE, CompressionSettings, ImageCodec, codec_for_format
from sqsh.core.ffmpeg_executor import FFmpegExecutor, ProgressCallback
from sqsh.core.file_classifier import FileDescriptor
from sqsh.utils.logger import get_logger


# ============================================================================
# Image Compressor
# ============================================================================


class ImageCompressor:
    """Handles image compression using FFmpeg."""

    def __init__(self, ffmpeg_executor: FFmpegExecutor):
        self.ffmpeg = ffmpeg_executor
        self.logger = get_logger()

    def compress(
        self,
        descriptor: FileDescriptor,
        out_path: Path,
        settings: CompressionSettings,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Compress an image file.

        FFmpeg reports no useful progress for a single frame, so fixed
        checkpoints are reported around the run.
        """
        if on_progress is not None:
            on_progress(10.0)

        ffmpeg_args = self._build_ffmpeg_args(descriptor, out_path, settings)
        self.logger.debug(f"FFmpeg args for {descriptor.name}: {' '.join(ffmpeg_args)}")
        self.ffmpeg.run_with_progress(ffmpeg_args)

        if on_progress is not None:
            on_progress(90.0)

    def _build_ffmpeg_args(self, descriptor: FileDescriptor, out_path: Path, settings: CompressionSettings) -> List[str]:
        codec = codec_for_format(out_path.suffix)
        level = self._quality_level(codec, descriptor, settings)
        args = ["-i", str(descriptor.path)]

        if codec is ImageCodec.JPEG:
            if descriptor.extension not in ("jpg", "jpeg"):
                args.extend(["-vf", "format=rgb24"])
            args.extend(["-q:v", str(level)])
        elif codec is ImageCodec.WEBP:
            args.extend(["-c:v", "libwebp", "-quality", str(level)])
        elif codec is ImageCodec.PNG:
            args.extend(["-compression_level", str(level)])
        elif codec is ImageCodec.GIF:
            args.extend(["-vf", f"split[a][b];[a]palettegen=max_colors={level}[p];[b][p]paletteuse"])

        if codec is not ImageCodec.GIF:
            args.extend(["-frames:v", "1", "-update", "1"])

        args.extend(["-map_metadata", "0", "-y", str(out_path)])
        return args

    def _quality_level(self, codec: ImageCodec, descriptor: FileDescriptor, settings: CompressionSettings) -> int:
        """
        Encoder level for this image.

        Precedence: target size ratio, then the image_quality override, then
        the tier table.
        """
        percent = None
        if settings.target_size is not None:
            percent = max(1, min(95, int(settings.target_size / descriptor.size * 100)))
            self.logger.debug(f"Target size ratio for {descriptor.name}: {percent}%")
        elif settings.image_quality is not None:
            percent = settings.image_quality

        if percent is None:
            return IMAGE_TABLE[(settings.quality_tier, codec)]
        return self.level_from_percent(codec, percent, IMAGE_TABLE[(settings.quality_tier, codec)])

    @staticmethod
    def level_from_percent(codec: ImageCodec, percent: int, default: int) -> int:
        """Map a 1-100 quality percentage onto the codec's own scale."""
        if codec is ImageCodec.JPEG:
            qscale = int(2 + (31 - 2) * (100 - percent) / 100)
            return max(2, min(31, qscale))
        if codec is ImageCodec.WEBP:
            return max(1, min(100, percent))
        if codec is ImageCodec.GIF:
            return max(2, min(256, int(256 * percent / 100)))
        return default
