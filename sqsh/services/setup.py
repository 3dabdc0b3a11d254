import shutil
import sys
from dataclasses import dataclass
from typing import List, Optional

from sqsh.core.errors import FatalSetupError
from sqsh.core.ffmpeg_executor import FFmpegExecutor


DOWNLOAD_URL = "https://ffmpeg.org/download.html"


# ============================================================================
# FFmpeg Dependency Check
# ============================================================================


@dataclass(frozen=True)
class InstallMethod:
    name: str
    command: str
    description: str
    available: bool = True


def check_ffmpeg_installed(ffmpeg_path: Optional[str] = None) -> bool:
    """Whether an FFmpeg executable can be found."""
    return (ffmpeg_path or FFmpegExecutor.find_ffmpeg()) is not None


def get_ffmpeg_version(ffmpeg_path: Optional[str] = None) -> Optional[str]:
    """Installed FFmpeg version, or None if FFmpeg is missing."""
    try:
        return FFmpegExecutor(ffmpeg_path).version()
    except FileNotFoundError:
        return None


def install_methods(platform: Optional[str] = None) -> List[InstallMethod]:
    """Ways to install FFmpeg on the given platform (defaults to the current one)."""
    platform = platform or sys.platform
    methods: List[InstallMethod] = []

    if platform == "darwin":
        methods.append(
            InstallMethod(
                "Homebrew", "brew install ffmpeg", "Fast and reliable package manager", shutil.which("brew") is not None
            )
        )
    elif platform.startswith("linux"):
        methods.append(InstallMethod("APT", "sudo apt-get install -y ffmpeg", "For Debian/Ubuntu systems"))
        methods.append(InstallMethod("DNF", "sudo dnf install -y ffmpeg", "For Fedora/RHEL systems"))
    elif platform == "win32":
        methods.append(
            InstallMethod("winget", "winget install ffmpeg", "Windows package manager", shutil.which("winget") is not None)
        )

    methods.append(InstallMethod("Manual", "", f"Download from {DOWNLOAD_URL}"))
    return methods


def install_instructions(platform: Optional[str] = None) -> str:
    """One line per install method, for display."""
    lines = []
    for method in install_methods(platform):
        if method.command:
            suffix = "" if method.available else f" (install {method.name} first)"
            lines.append(f"{method.name}: {method.command}{suffix}")
        else:
            lines.append(f"{method.name}: {method.description}")
    return "\n".join(lines)


def require_ffmpeg(ffmpeg_path: Optional[str] = None) -> FFmpegExecutor:
    """
    Return an executor, or fail if FFmpeg is not installed.

    Raises:
        FatalSetupError: FFmpeg could not be found
    """
    try:
        return FFmpegExecutor(ffmpeg_path)
    except FileNotFoundError as e:
        raise FatalSetupError("FFmpeg is not installed", instruction=install_instructions()) from e
