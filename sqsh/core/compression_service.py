import subprocess  # nosec B404
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Optional

from sqsh.core.audio_compressor import AudioCompressor
from sqsh.core.config import CompressionSettings
from sqsh.core.errors import EncodeError
from sqsh.core.ffmpeg_executor import FFmpegExecutor, ProgressCallback
from sqsh.core.file_classifier import FileDescriptor, MediaCategory
from sqsh.core.image_compressor import ImageCompressor
from sqsh.core.video_compressor import VideoCompressor
from sqsh.utils.file_processor import FileProcessor, OutputPathAllocator
from sqsh.utils.format import format_size
from sqsh.utils.logger import get_logger


# ============================================================================
# Compression Result
# ============================================================================


@dataclass(frozen=True)
class CompressionResult:
    """
    Outcome of compressing one file.

    When ``already_optimized`` is set the encoder output was not smaller and
    was discarded: ``output_path`` is the input path and the sizes are equal.
    """

    input_path: Path
    output_path: Path
    input_size: int
    output_size: int
    duration: float
    input_file_removed: bool = False
    already_optimized: bool = False

    @property
    def saved_bytes(self) -> int:
        return self.input_size - self.output_size

    @property
    def saved_percentage(self) -> float:
        if self.input_size <= 0:
            return 0.0
        return self.saved_bytes / self.input_size * 100


# ============================================================================
# Compression Service
# ============================================================================


class CompressionService:
    """
    Compresses one file at a time with the strategy for its category.

    Callers must not run two compressions concurrently; the output path
    allocator relies on it.
    """

    def __init__(
        self,
        ffmpeg: FFmpegExecutor,
        allocator: Optional[OutputPathAllocator] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ffmpeg = ffmpeg
        self.allocator = allocator or OutputPathAllocator()
        self.file_processor = FileProcessor()
        self.clock = clock
        self.logger = get_logger()
        self.compressors: Dict[MediaCategory, object] = {
            MediaCategory.VIDEO: VideoCompressor(ffmpeg),
            MediaCategory.IMAGE: ImageCompressor(ffmpeg),
            MediaCategory.AUDIO: AudioCompressor(ffmpeg),
        }

    def compress(
        self,
        descriptor: FileDescriptor,
        settings: CompressionSettings,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CompressionResult:
        """
        Compress a file and account for the result.

        Args:
            descriptor: File to compress
            settings: Batch compression settings
            on_progress: Receives percentages in [0, 100]

        Returns:
            CompressionResult; ``already_optimized`` if the output wasn't smaller

        Raises:
            EncodeError: If the encoder failed; any partial output is deleted
            InvalidDestination: If the output folder vanished since validation
        """
        start_time = self.clock()
        out_path = self.allocator.allocate(descriptor.path, settings.advanced)
        self.logger.info(f"Compressing {descriptor.name} -> {out_path.name} ({settings.quality_tier.value})")

        try:
            self.compressors[descriptor.category].compress(descriptor, out_path, settings, on_progress)
            output_size = out_path.stat().st_size
        except subprocess.CalledProcessError as e:
            self.file_processor.cleanup_output(out_path)
            raise self._encode_error(descriptor, e) from e
        except OSError as e:
            self.file_processor.cleanup_output(out_path)
            self.logger.error(f"Encoder could not run for {descriptor.name}: {e}")
            raise EncodeError(f"FFmpeg error: {e}") from e
        except (KeyboardInterrupt, SystemExit):
            self.file_processor.cleanup_output(out_path)
            raise

        if output_size >= descriptor.size:
            self.file_processor.cleanup_output(out_path)
            self.logger.info(
                f"{descriptor.name} already optimized "
                f"({format_size(output_size)} >= {format_size(descriptor.size)}), keeping original"
            )
            result = CompressionResult(
                input_path=descriptor.path,
                output_path=descriptor.path,
                input_size=descriptor.size,
                output_size=descriptor.size,
                duration=self.clock() - start_time,
                already_optimized=True,
            )
        else:
            result = CompressionResult(
                input_path=descriptor.path,
                output_path=out_path,
                input_size=descriptor.size,
                output_size=output_size,
                duration=self.clock() - start_time,
            )

        if on_progress is not None:
            on_progress(100.0)

        if settings.remove_input_file and not result.already_optimized:
            if self.file_processor.remove_input(descriptor.path):
                result = replace(result, input_file_removed=True)

        self.logger.info(
            f"Compressed {descriptor.name}: {format_size(result.input_size)} -> "
            f"{format_size(result.output_size)} ({result.saved_percentage:.1f}% saved)"
        )
        return result

    def _encode_error(self, descriptor: FileDescriptor, error: subprocess.CalledProcessError) -> EncodeError:
        stderr = error.stderr or ""
        lines = [line for line in stderr.splitlines() if line.strip()]
        detail = lines[-1] if lines else f"exit code {error.returncode}"
        self.logger.error(f"FFmpeg failed for {descriptor.name} (exit {error.returncode}): {detail}")
        self.logger.debug(f"FFmpeg stderr for {descriptor.name}:\n{stderr}")
        return EncodeError(f"FFmpeg error: {detail}", returncode=error.returncode, stderr=stderr)
