"""
Shared pytest fixtures and configuration.
"""

import shutil
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sqsh.core.config import QualityTier, resolve
from sqsh.core.ffmpeg_executor import FFmpegExecutor
from sqsh.core.file_classifier import FileClassifier
from sqsh.utils.logger import get_logger


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers a test may have configured on the shared logger."""
    yield
    get_logger()._cleanup_handlers()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture
def make_file(temp_dir):
    """Factory writing a file of a given size; relative names land in temp_dir."""

    def _make(name: str, size: int = 1024, directory: Path = None) -> Path:
        path = (directory or temp_dir) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"0" * size)
        return path

    return _make


@pytest.fixture
def sample_video(make_file):
    return make_file("clip.mp4", size=10_000)


@pytest.fixture
def sample_image_jpg(make_file):
    return make_file("photo.jpg", size=4_000)


@pytest.fixture
def sample_image_png(make_file):
    return make_file("diagram.png", size=4_000)


@pytest.fixture
def sample_audio(make_file):
    return make_file("song.mp3", size=8_000)


@pytest.fixture
def describe():
    """Classify a path into a FileDescriptor."""
    return FileClassifier.require


@pytest.fixture
def medium_settings():
    return resolve(QualityTier.MEDIUM)


@pytest.fixture
def ffmpeg_progress_line():
    """Build an FFmpeg stderr progress line."""

    def _line(time: str = "00:00:10.00", frame: int = 100, fps: float = 25.0) -> str:
        return f"frame=  {frame} fps= {fps} q=28.0 size=    1024kB time={time} bitrate= 800.0kbits/s speed=1.0x"

    return _line


@pytest.fixture
def mock_ffmpeg_executor():
    """Create a mocked FFmpegExecutor."""
    mock_executor = MagicMock(spec=FFmpegExecutor)
    mock_executor.ffmpeg_path = "/fake/path/to/ffmpeg"
    mock_executor.run_with_progress = MagicMock(return_value=MagicMock(returncode=0))
    mock_executor.probe_duration = MagicMock(return_value=None)
    return mock_executor


@pytest.fixture
def fake_encoder():
    """
    Build a ``run_with_progress`` side effect that behaves like FFmpeg.

    ``output_size`` is a byte count or a callable taking the input path.
    Inputs whose name contains ``fail_on`` exit non-zero after writing a
    partial output file.
    """

    def _build(output_size=100, fail_on=None, progress=(25.0, 50.0, 75.0)):
        calls = []

        def _side_effect(args, on_progress=None, duration=None):
            in_path = Path(args[args.index("-i") + 1])
            out_path = Path(args[-1])
            calls.append((in_path, out_path))

            if fail_on is not None and fail_on in in_path.name:
                out_path.write_bytes(b"partial")
                raise subprocess.CalledProcessError(
                    1, ["ffmpeg"] + list(args), "", "Invalid data found when processing input\nConversion failed!"
                )

            for percentage in progress:
                if on_progress is not None:
                    on_progress(percentage)
            size = output_size(in_path) if callable(output_size) else output_size
            out_path.write_bytes(b"1" * size)
            return subprocess.CompletedProcess(args, 0, "", "")

        _side_effect.calls = calls
        return _side_effect

    return _build


@pytest.fixture
def scripted_input():
    """
    Build an ``input`` replacement answering prompts in order.

    Callable answers are invoked with the prompt and their return value used.
    Running out of answers behaves like a closed stdin.
    """

    def _build(*answers):
        queue = list(answers)

        def _input(prompt=""):
            _input.prompts.append(prompt)
            if not queue:
                raise EOFError
            answer = queue.pop(0)
            return answer(prompt) if callable(answer) else answer

        _input.prompts = []
        return _input

    return _build
