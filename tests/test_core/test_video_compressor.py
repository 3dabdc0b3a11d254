"""
Tests for sqsh.core.video_compressor module.
"""

import pytest

from sqsh.core.config import AdvancedSettings, QualityTier, resolve
from sqsh.core.video_compressor import VideoCompressor


def _value_after(args, flag):
    return args[args.index(flag) + 1]


@pytest.mark.unit
class TestVideoCompressorArgs:
    """Tests for VideoCompressor._build_ffmpeg_args."""

    @pytest.mark.parametrize(
        "tier,crf,preset",
        [
            (QualityTier.HIGH, "23", "medium"),
            (QualityTier.MEDIUM, "28", "medium"),
            (QualityTier.LOW, "32", "fast"),
            (QualityTier.CUSTOM, "28", "medium"),
        ],
    )
    def test_h264_tiers(self, mock_ffmpeg_executor, temp_dir, tier, crf, preset):
        compressor = VideoCompressor(mock_ffmpeg_executor)

        args = compressor._build_ffmpeg_args(temp_dir / "in.mp4", temp_dir / "out.mp4", resolve(tier))

        assert _value_after(args, "-c:v") == "libx264"
        assert _value_after(args, "-crf") == crf
        assert _value_after(args, "-preset") == preset
        assert _value_after(args, "-c:a") == "aac"
        assert args[:2] == ["-i", str(temp_dir / "in.mp4")]
        assert args[-2:] == ["-y", str(temp_dir / "out.mp4")]

    def test_crf_override(self, mock_ffmpeg_executor, temp_dir):
        compressor = VideoCompressor(mock_ffmpeg_executor)
        settings = resolve(QualityTier.CUSTOM, crf=19)

        args = compressor._build_ffmpeg_args(temp_dir / "in.mov", temp_dir / "out.mov", settings)

        assert _value_after(args, "-crf") == "19"

    def test_faststart_only_for_mp4_family(self, mock_ffmpeg_executor, temp_dir, medium_settings):
        compressor = VideoCompressor(mock_ffmpeg_executor)

        mp4_args = compressor._build_ffmpeg_args(temp_dir / "in.mp4", temp_dir / "out.mp4", medium_settings)
        mkv_args = compressor._build_ffmpeg_args(temp_dir / "in.mkv", temp_dir / "out.mkv", medium_settings)

        assert "+faststart" in mp4_args
        assert "+faststart" not in mkv_args

    def test_webm_uses_vp9(self, mock_ffmpeg_executor, temp_dir, medium_settings):
        compressor = VideoCompressor(mock_ffmpeg_executor)

        args = compressor._build_ffmpeg_args(temp_dir / "in.mp4", temp_dir / "out.webm", medium_settings)

        assert _value_after(args, "-c:v") == "libvpx-vp9"
        assert _value_after(args, "-crf") == "36"
        assert _value_after(args, "-b:v") == "0"
        assert _value_after(args, "-cpu-used") == "4"
        assert _value_after(args, "-c:a") == "libopus"

    def test_target_size_switches_to_bitrate(self, mock_ffmpeg_executor, temp_dir):
        compressor = VideoCompressor(mock_ffmpeg_executor)
        # 10 MB over 60 s at 95% headroom -> ~1267 kbps total
        settings = resolve(QualityTier.MEDIUM, AdvancedSettings(target_size=10_000_000))

        args = compressor._build_ffmpeg_args(temp_dir / "in.mp4", temp_dir / "out.mp4", settings, duration=60.0)

        assert "-crf" not in args
        assert _value_after(args, "-b:v") == "1138k"
        assert _value_after(args, "-maxrate") == "1138k"
        assert _value_after(args, "-b:a") == "128k"

    def test_target_size_without_duration_uses_tier(self, mock_ffmpeg_executor, temp_dir):
        compressor = VideoCompressor(mock_ffmpeg_executor)
        settings = resolve(QualityTier.LOW, AdvancedSettings(target_size=1000))

        args = compressor._build_ffmpeg_args(temp_dir / "in.mp4", temp_dir / "out.mp4", settings)

        assert _value_after(args, "-crf") == "32"


@pytest.mark.unit
class TestTargetBitrates:
    """Tests for VideoCompressor.target_bitrates."""

    def test_no_target(self):
        assert VideoCompressor.target_bitrates(None, 10.0) is None

    def test_no_duration(self):
        assert VideoCompressor.target_bitrates(1_000_000, None) is None
        assert VideoCompressor.target_bitrates(1_000_000, 0) is None

    def test_low_budget_uses_small_audio_and_floor(self):
        assert VideoCompressor.target_bitrates(10_000, 60.0) == (100, 64)


@pytest.mark.unit
class TestVideoCompressorCompress:
    """Tests for VideoCompressor.compress."""

    def test_runs_ffmpeg_with_progress(self, mock_ffmpeg_executor, sample_video, describe, temp_dir, medium_settings):
        compressor = VideoCompressor(mock_ffmpeg_executor)
        callback = lambda percentage: None  # noqa: E731

        compressor.compress(describe(sample_video), temp_dir / "out.mp4", medium_settings, callback)

        mock_ffmpeg_executor.probe_duration.assert_not_called()
        _, kwargs = mock_ffmpeg_executor.run_with_progress.call_args
        assert kwargs == {"on_progress": callback, "duration": None}

    def test_probes_duration_for_target_size(self, mock_ffmpeg_executor, sample_video, describe, temp_dir):
        mock_ffmpeg_executor.probe_duration.return_value = 8.0
        compressor = VideoCompressor(mock_ffmpeg_executor)
        settings = resolve(QualityTier.MEDIUM, AdvancedSettings(target_size=5000))

        compressor.compress(describe(sample_video), temp_dir / "out.mp4", settings)

        mock_ffmpeg_executor.probe_duration.assert_called_once()
        args, kwargs = mock_ffmpeg_executor.run_with_progress.call_args
        assert kwargs["duration"] == 8.0
        assert "-crf" not in args[0]
