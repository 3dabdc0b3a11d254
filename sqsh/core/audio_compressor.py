from pathlib import Path
from typing import List, Optional

from sqsh.core.config import AUDIO_TABLE, AudioCodec, CompressionSettings, codec_for_format
from sqsh.core.ffmpeg_executor import FFmpegExecutor, ProgressCallback
from sqsh.core.file_classifier import FileDescriptor
from sqsh.utils.logger import get_logger


TARGET_SIZE_HEADROOM = 0.95
MIN_AUDIO_BITRATE_KBPS = 8
MAX_AUDIO_BITRATE_KBPS = 320

ENCODERS = {
    AudioCodec.MP3: "libmp3lame",
    AudioCodec.AAC: "aac",
    AudioCodec.OPUS: "libopus",
    AudioCodec.VORBIS: "libvorbis",
    AudioCodec.FLAC: "flac",
    AudioCodec.PCM: "pcm_s16le",
}

LOSSLESS = {AudioCodec.FLAC, AudioCodec.PCM}


# ============================================================================
# Audio Compressor
# ============================================================================


class AudioCompressor:
    """Handles audio compression using FFmpeg."""

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
        codec = codec_for_format(out_path.suffix)
        duration = None
        if settings.target_size is not None:
            if codec in LOSSLESS:
                self.logger.warning(f"Target size ignored for lossless .{out_path.suffix.lstrip('.')} output")
            else:
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
        codec = codec_for_format(out_path.suffix)
        params = AUDIO_TABLE[(settings.quality_tier, codec)]

        args = ["-i", str(in_path), "-vn", "-c:a", ENCODERS[codec]]

        if codec is AudioCodec.FLAC:
            args.extend(["-compression_level", str(params.compression_level)])
        elif codec not in LOSSLESS:
            bitrate = self.target_bitrate(settings.target_size, duration)
            if bitrate is None:
                bitrate = settings.audio_bitrate if settings.audio_bitrate is not None else params.bitrate
            args.extend(["-b:a", f"{bitrate}k"])

        args.extend(["-map_metadata", "0", "-y", str(out_path)])
        return args

    @staticmethod
    def target_bitrate(target_size: Optional[int], duration: Optional[float]) -> Optional[int]:
        """Bitrate (kbps) that fits the byte budget, or None without target/duration."""
        if target_size is None or not duration or duration <= 0:
            return None
        kbps = int(target_size * 8 / 1000 / duration * TARGET_SIZE_HEADROOM)
        return max(MIN_AUDIO_BITRATE_KBPS, min(MAX_AUDIO_BITRATE_KBPS, kbps))
