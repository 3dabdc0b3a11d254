import os
import re
import shutil
import subprocess  # nosec B404
import threading
from collections import deque
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sqsh.utils.format import parse_timestamp
from sqsh.utils.logger import get_logger


ProgressCallback = Callable[[float], None]

# Lines of stderr kept for error reports
STDERR_TAIL_LINES = 20


# ============================================================================
# FFmpeg Executor
# ============================================================================


class FFmpegExecutor:
    """Runs FFmpeg/FFprobe and turns FFmpeg's stderr into progress percentages."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        """
        Initialize FFmpeg executor.

        Args:
            ffmpeg_path: Path to FFmpeg executable. If None, will attempt to find it.
        """
        self.ffmpeg_path = ffmpeg_path or self.find_ffmpeg()
        if self.ffmpeg_path is None:
            raise FileNotFoundError(
                "FFmpeg not found. Please install FFmpeg and add it to PATH, "
                "or specify the path using --ffmpeg-path option."
            )
        self.logger = get_logger()
        self._active: Optional[subprocess.Popen] = None
        self._active_lock = threading.Lock()

    @staticmethod
    def find_ffmpeg() -> Optional[str]:
        """Find FFmpeg executable in PATH or common locations."""
        ffmpeg_path = shutil.which("ffmpeg")
        if ffmpeg_path:
            return ffmpeg_path

        common_paths = [
            r"C:\ffmpeg\bin\ffmpeg.exe",
            r"C:\Program Files\ffmpeg\bin\ffmpeg.exe",
            r"C:\Program Files (x86)\ffmpeg\bin\ffmpeg.exe",
        ]
        for path in common_paths:
            if Path(path).exists():
                return path

        return None

    @property
    def ffprobe_path(self) -> str:
        """FFprobe living next to FFmpeg, or whatever is on PATH."""
        ffmpeg = Path(self.ffmpeg_path)
        candidate = ffmpeg.with_name(ffmpeg.name.replace("ffmpeg", "ffprobe"))
        if candidate != ffmpeg and candidate.exists():
            return str(candidate)
        return shutil.which("ffprobe") or "ffprobe"

    @staticmethod
    def parse_duration(line: str) -> Optional[float]:
        """Parse the input duration FFmpeg prints before encoding starts."""
        match = re.search(r"Duration:\s*(\d{2}:\d{2}:\d{2}(?:\.\d+)?)", line)
        if match:
            return parse_timestamp(match.group(1))
        return None

    @staticmethod
    def parse_progress(line: str) -> Optional[Dict[str, str]]:
        """Parse FFmpeg progress line from stderr."""
        progress = {}

        frame_match = re.search(r"frame=\s*(\d+)", line)
        if frame_match:
            progress["frame"] = frame_match.group(1)

        fps_match = re.search(r"fps=\s*([\d.]+)", line)
        if fps_match:
            progress["fps"] = fps_match.group(1)

        time_match = re.search(r"time=\s*(\d{2}:\d{2}:\d{2}(?:\.\d+)?)", line)
        if time_match:
            progress["time"] = time_match.group(1)

        bitrate_match = re.search(r"bitrate=\s*([\d.]+kbits/s|[\d.]+Mbits/s)", line)
        if bitrate_match:
            progress["bitrate"] = bitrate_match.group(1)

        speed_match = re.search(r"speed=\s*([\d.]+x)", line)
        if speed_match:
            progress["speed"] = speed_match.group(1)

        return progress if progress else None

    @staticmethod
    def progress_percentage(progress: Dict[str, str], duration: Optional[float]) -> Optional[float]:
        """Percentage of the input encoded so far, or None if it can't be told."""
        if not duration or duration <= 0 or "time" not in progress:
            return None
        return min(parse_timestamp(progress["time"]) / duration * 100, 100.0)

    def run_with_progress(
        self,
        args: List[str],
        on_progress: Optional[ProgressCallback] = None,
        duration: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run FFmpeg, reporting percentages as it goes.

        Args:
            args: List of FFmpeg arguments (without the executable)
            on_progress: Called with a percentage for each progress line
            duration: Input duration in seconds; read from FFmpeg's banner if None

        Returns:
            CompletedProcess from subprocess

        Raises:
            subprocess.CalledProcessError: On a non-zero exit
        """
        cmd = [self.ffmpeg_path, "-hide_banner", "-nostdin"] + args
        self.logger.debug(f"Running: {' '.join(cmd)}")

        process = self._launch_process(cmd)
        with self._active_lock:
            self._active = process
        try:
            stderr_tail = self._collect_progress(process, on_progress, duration)
            returncode = process.wait()
        finally:
            with self._active_lock:
                self._active = None

        result = subprocess.CompletedProcess(cmd, returncode, "", "\n".join(stderr_tail))
        if result.returncode != 0:
            raise subprocess.CalledProcessError(result.returncode, cmd, result.stdout, result.stderr)
        return result

    def _launch_process(self, cmd: List[str]) -> subprocess.Popen:
        # Own session on POSIX so a terminal Ctrl+C reaches sqsh, not the encoder
        return subprocess.Popen(  # nosec B603
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=os.name == "posix",
        )

    def _collect_progress(
        self,
        process: subprocess.Popen,
        on_progress: Optional[ProgressCallback],
        duration: Optional[float],
    ) -> List[str]:
        tail: deque = deque(maxlen=STDERR_TAIL_LINES)

        for line in process.stderr:
            stripped = line.rstrip()
            if not stripped:
                continue
            tail.append(stripped)

            if duration is None:
                duration = self.parse_duration(stripped)
                if duration is not None:
                    continue

            progress = self.parse_progress(stripped)
            if progress and on_progress is not None:
                percentage = self.progress_percentage(progress, duration)
                if percentage is not None:
                    on_progress(percentage)

        return list(tail)

    def terminate_active(self) -> None:
        """Terminate the encoder currently running, if any."""
        with self._active_lock:
            process = self._active
        if process is not None and process.poll() is None:
            self.logger.debug(f"Terminating encoder process {process.pid}")
            process.terminate()

    def probe_duration(self, path: Path) -> Optional[float]:
        """
        Read a media file's duration with FFprobe.

        Returns:
            Duration in seconds, or None if it could not be determined
        """
        cmd = [
            self.ffprobe_path,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)  # nosec B603
        except (OSError, subprocess.CalledProcessError) as e:
            self.logger.warning(f"Could not probe duration of {path.name}: {e}")
            return None

        try:
            duration = float(result.stdout.strip())
        except ValueError:
            self.logger.warning(f"FFprobe returned no duration for {path.name}")
            return None
        return duration if duration > 0 else None

    def version(self) -> Optional[str]:
        """Return FFmpeg's version string, e.g. '6.1.1'."""
        try:
            result = subprocess.run(  # nosec B603
                [self.ffmpeg_path, "-version"], capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError):
            return None
        match = re.search(r"ffmpeg version (\S+)", result.stdout)
        return match.group(1) if match else "installed"
