from pathlib import Path
from typing import List, Optional, Tuple

from sqsh.core.config import VIDEO_TABLE, CompressionSettings, VideoCodec, codec_for_format
from sqsh.core.ffmpeg_executor import FFmpegExecutor, ProgressCallback
from sqsh.core.file_classifier import FileDescriptor
from sqsh.utils.logger import get_logger


# Leave room for container overhead when aiming at a byte count
TARGET_SIZE_HEADROOM = 0.95
MIN_VIDEO_BITRATE_KBPS = 100
FASTSTART_FORMATS = {".mp4", ".mov", ".m4v"}


# ============================================================================
# Video Compressor
# ============================================================================


class VideoCompressor:
    """Handles video compression using FFmpeg."""

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
        Compress a video file.

        Args:
            descriptor: Input file
            out_path: Path to output video file
            settings: Batch compression settings
            on_progress: Receives percentages while FFmpeg runs
        """
        duration = None
        if settings.target_size is not None:
            duration = self.ffmpeg.probe_duration(descriptor.path)
            if duration is None:
                self.logger.warning(
                    f"Unknown duration for {descriptor.name}; using {settings.quality_tier.value} quality instead of target size"
                )

        ffmpeg_args = self._build_ffmpeg_args(descriptor.path, out_path, settings, duration)
        self.ffmpeg.run_with_progress(ffmpeg_args, on_progress=on_progress, duration=duration)

    def _build_ffmpeg_args(
        self,
        in_path: Path,
        out_path: Path,
        settings: CompressionSettings,
        duration: Optional[float] = None,
    ) -> List[str]:
        """
        Build FFmpeg arguments for video compression.

        A target size (with a known duration) switches from constant quality to
        an average bitrate derived from the byte budget.
        """
        codec = codec_for_format(out_path.suffix)
        params = VIDEO_TABLE[(settings.quality_tier, codec)]
        crf = settings.crf if settings.crf is not None else params.crf
        bitrates = self.target_bitrates(settings.target_size, duration)
        audio_kbps = bitrates[1] if bitrates else 128

        args = ["-i", str(in_path)]

        if codec is VideoCodec.VP9:
            args.extend(["-c:v", "libvpx-vp9"])
            if bitrates:
                args.extend(self._bitrate_args(bitrates[0]))
            else:
                args.extend(["-crf", str(crf), "-b:v", "0"])
            args.extend(["-deadline", "good", "-cpu-used", params.preset])
            args.extend(["-c:a", "libopus", "-b:a", f"{audio_kbps}k"])
        else:
            args.extend(["-c:v", "libx264"])
            if bitrates:
                args.extend(self._bitrate_args(bitrates[0]))
            else:
                args.extend(["-crf", str(crf)])
            args.extend(["-preset", params.preset, "-pix_fmt", "yuv420p"])
            args.extend(["-c:a", "aac", "-b:a", f"{audio_kbps}k"])

        if out_path.suffix.lower() in FASTSTART_FORMATS:
            args.extend(["-movflags", "+faststart"])

        args.extend(["-map_metadata", "0", "-y", str(out_path)])
        return args

    @staticmethod
    def _bitrate_args(video_kbps: int) -> List[str]:
        return ["-b:v", f"{video_kbps}k", "-maxrate", f"{video_kbps}k", "-bufsize", f"{video_kbps * 2}k"]

    @staticmethod
    def target_bitrates(target_size: Optional[int], duration: Optional[float]) -> Optional[Tuple[int, int]]:
        """
        Split a byte budget into (video_kbps, audio_kbps).

        Returns:
            None when there is no target or the duration is unknown
        """
        if target_size is None or not duration or duration <= 0:
            return None

        total_kbps = target_size * 8 / 1000 / duration * TARGET_SIZE_HEADROOM
        audio_kbps = 128 if total_kbps >= 1000 else 64
        video_kbps = max(MIN_VIDEO_BITRATE_KBPS, int(total_kbps - audio_kbps))
        return video_kbps, audio_kbps
