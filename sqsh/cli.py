import argparse
import os
import shlex
from pathlib import Path
from typing import Callable, List, Optional

from sqsh import __version__
from sqsh.core.batch_orchestrator import BatchOrchestrator
from sqsh.core.compression_service import CompressionService
from sqsh.core.config import (
    AdvancedSettings,
    CompressionSettings,
    ParameterValidator,
    QualityTier,
    output_formats_for,
    resolve,
)
from sqsh.core.errors import (
    BatchValidationError,
    ClassificationError,
    FatalSetupError,
    InvalidDestination,
    InvalidOutputFormat,
)
from sqsh.core.ffmpeg_executor import FFmpegExecutor
from sqsh.core.file_classifier import FileClassifier, FileDescriptor, MediaCategory, clean_path
from sqsh.services.setup import get_ffmpeg_version, install_instructions, require_ffmpeg
from sqsh.services.statistics import BatchSummary
from sqsh.session import ExitGuard
from sqsh.ui.terminal import QUALITY_OPTIONS, TerminalRenderer
from sqsh.utils.format import parse_size
from sqsh.utils.logger import get_logger


EXIT_INTERRUPTED = 130

CUSTOM_PROMPTS = {
    MediaCategory.VIDEO: ("crf", "CRF, lower is better quality (0-51)", 28),
    MediaCategory.IMAGE: ("image_quality", "Image quality (1-100)", 75),
    MediaCategory.AUDIO: ("audio_bitrate", "Audio bitrate in kbps (8-512)", 128),
}

CUSTOM_VALIDATORS = {
    "crf": ParameterValidator.validate_crf,
    "image_quality": ParameterValidator.validate_image_quality,
    "audio_bitrate": ParameterValidator.validate_audio_bitrate,
}


# ============================================================================
# Path Collection
# ============================================================================


def split_paths(raw: str) -> List[str]:
    """Split a line of pasted or dropped paths; quotes group paths with spaces."""
    try:
        parts = shlex.split(raw, posix=os.name == "posix")
    except ValueError:
        parts = [raw]
    return [clean_path(part) for part in parts if clean_path(part)]


def collect_files(paths: List[str]) -> List[FileDescriptor]:
    """
    Turn paths into descriptors. Directories contribute their supported files.

    Duplicates are dropped, first occurrence wins.

    Raises:
        ClassificationError: If a path is unusable or a directory has no supported files
    """
    descriptors: List[FileDescriptor] = []
    seen = set()

    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            found = FileClassifier.enumerate(path)
            if not found:
                raise ClassificationError(path, "No supported files in directory")
        else:
            found = [FileClassifier.require(path)]

        for descriptor in found:
            if descriptor.path not in seen:
                seen.add(descriptor.path)
                descriptors.append(descriptor)

    return descriptors


# ============================================================================
# Interactive Session
# ============================================================================


class InteractiveSession:
    """Prompt-driven flow: pick files, pick settings, compress, repeat."""

    def __init__(
        self,
        service,
        renderer: Optional[TerminalRenderer] = None,
        input_fn: Callable[[str], str] = input,
    ):
        self.renderer = renderer or TerminalRenderer()
        self.input_fn = input_fn
        self.orchestrator = BatchOrchestrator(service, reporter=self.renderer)
        self.logger = get_logger()

    def run(self) -> int:
        self.renderer.welcome()
        try:
            while True:
                self.compress_batch()
                if not self._confirm("Compress another file?", default=False):
                    break
        except EOFError:
            self.logger.debug("Input closed, ending session")
        self.renderer.goodbye()
        return 0

    def compress_batch(self) -> Optional[BatchSummary]:
        """One pass of file selection, configuration and compression."""
        while True:
            self.orchestrator.reset()
            descriptors = self.prompt_files()
            self.orchestrator.select_files(descriptors)
            self.renderer.selected_files(descriptors)

            while True:
                settings = self.prompt_settings(descriptors)
                try:
                    return self.orchestrator.run(settings)
                except BatchValidationError as e:
                    self.renderer.error(str(e))
                    break
                except ValueError as e:
                    self.renderer.error(str(e))

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def prompt_files(self) -> List[FileDescriptor]:
        while True:
            raw = self.input_fn("Drop files or a folder here (or type their paths): ").strip()
            if not raw:
                self.renderer.info("Please provide at least one path.")
                continue
            try:
                descriptors = collect_files(split_paths(raw))
                ParameterValidator.validate_category(descriptors)
            except (ClassificationError, BatchValidationError) as e:
                self.renderer.error(str(e))
                continue
            return descriptors

    def prompt_settings(self, descriptors: List[FileDescriptor]) -> CompressionSettings:
        category = descriptors[0].category
        tier = self.prompt_quality(descriptors)
        overrides = self.prompt_custom(category) if tier is QualityTier.CUSTOM else {}
        remove_input = self._confirm("Remove original files after compression?", default=False)
        advanced = None
        if self._confirm("Configure advanced settings?", default=False):
            advanced = self.prompt_advanced(descriptors)
        return resolve(tier, advanced, remove_input_file=remove_input, **overrides)

    def prompt_quality(self, descriptors: List[FileDescriptor]) -> QualityTier:
        self.renderer.quality_options(descriptors)
        choices = {str(number): tier for number, (tier, _, _) in enumerate(QUALITY_OPTIONS, start=1)}
        choices.update({tier.value: tier for tier in QualityTier})
        while True:
            raw = self.input_fn("Select quality [2]: ").strip().lower()
            if not raw:
                return QualityTier.MEDIUM
            if raw in choices:
                return choices[raw]
            self.renderer.info(f"Invalid choice '{raw}'. Enter a number from 1 to {len(QUALITY_OPTIONS)}.")

    def prompt_custom(self, category: MediaCategory) -> dict:
        name, label, default = CUSTOM_PROMPTS[category]
        while True:
            raw = self.input_fn(f"{label} [{default}]: ").strip()
            if not raw:
                return {name: default}
            try:
                value = int(raw)
                CUSTOM_VALIDATORS[name](value)
            except ValueError as e:
                self.renderer.info(f"Invalid value: {e}")
                continue
            return {name: value}

    def prompt_advanced(self, descriptors: List[FileDescriptor]) -> AdvancedSettings:
        category = descriptors[0].category

        output_folder = None
        while True:
            raw = clean_path(self.input_fn("Output folder [same as input]: "))
            if not raw:
                break
            try:
                ParameterValidator.validate_output_folder(Path(raw))
            except InvalidDestination as e:
                self.renderer.info(str(e))
                continue
            output_folder = Path(raw).expanduser()
            break

        target_size = None
        while True:
            raw = self.input_fn("Target size, e.g. 5MB [none]: ").strip()
            if not raw:
                break
            try:
                target_size = parse_size(raw)
                ParameterValidator.validate_target_size(target_size, descriptors)
            except ValueError as e:
                target_size = None
                self.renderer.info(str(e))
                continue
            break

        output_format = None
        formats = ", ".join(output_formats_for(category))
        while True:
            raw = self.input_fn(f"Output format ({formats}) [keep original]: ").strip().lower().lstrip(".")
            if not raw:
                break
            try:
                ParameterValidator.validate_output_format(raw, category)
            except InvalidOutputFormat as e:
                self.renderer.info(str(e))
                continue
            output_format = raw
            break

        return AdvancedSettings(output_folder=output_folder, target_size=target_size, output_format=output_format)

    def _confirm(self, question: str, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        raw = self.input_fn(f"{question} [{hint}]: ").strip().lower()
        if not raw:
            return default
        return raw in {"y", "yes"}


# ============================================================================
# Commands
# ============================================================================


def run_auto(path: str, service, renderer: TerminalRenderer) -> int:
    """Compress one file or folder with medium quality, keeping the originals."""
    try:
        descriptors = collect_files([clean_path(path)])
    except ClassificationError as e:
        renderer.error(str(e))
        return 1

    orchestrator = BatchOrchestrator(service, reporter=renderer)
    try:
        orchestrator.select_files(descriptors)
        summary = orchestrator.run(resolve(QualityTier.MEDIUM))
    except ValueError as e:
        renderer.error(str(e))
        return 1
    return 0 if summary.failed == 0 else 1


def run_setup(ffmpeg_path: Optional[str], renderer: TerminalRenderer) -> int:
    """Report whether FFmpeg is available and how to install it if not."""
    version = get_ffmpeg_version(ffmpeg_path)
    if version is not None:
        renderer.info(f"✓ FFmpeg is installed: {version}")
        return 0
    renderer.error("FFmpeg is not installed", install_instructions())
    return 1


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sqsh",
        description="Compress videos, images and audio from your terminal.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--ffmpeg-path", help="Path to the ffmpeg executable (default: search PATH)")
    parser.add_argument(
        "--log-level",
        default="warning",
        type=str.lower,
        choices=["debug", "info", "notice", "warning", "error"],
        help="Console logging verbosity (default: warning)",
    )
    parser.add_argument("--log-dir", help="Also write logs to sqsh_YYYYMMDD.log in this directory")
    parser.add_argument(
        "--log-rotate",
        choices=["size", "time"],
        help="Rotate the log file by size (10 MB) or daily",
    )

    subparsers = parser.add_subparsers(dest="command")
    auto = subparsers.add_parser("auto", help="Compress a file with medium quality, no questions asked")
    auto.add_argument("file", help="File or folder to compress")
    subparsers.add_parser("setup", help="Check for FFmpeg and show install instructions")

    return parser.parse_args(argv)


def configure_logging(args: argparse.Namespace) -> None:
    file_level = args.log_level if args.log_level == "debug" else "info"
    get_logger().configure(
        log_level=file_level if args.log_dir else args.log_level,
        log_dir=args.log_dir,
        console_level=args.log_level,
        rotation_enabled=args.log_rotate is not None,
        rotation_type=args.log_rotate or "size",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args)
    renderer = TerminalRenderer()

    if args.command == "setup":
        return run_setup(args.ffmpeg_path, renderer)

    try:
        ffmpeg = require_ffmpeg(args.ffmpeg_path)
    except FatalSetupError as e:
        renderer.error(str(e), e.instruction)
        return 1

    _install_exit_guard(ffmpeg, renderer)
    service = CompressionService(ffmpeg)

    if args.command == "auto":
        return run_auto(args.file, service, renderer)
    return InteractiveSession(service, renderer).run()


def _install_exit_guard(ffmpeg: FFmpegExecutor, renderer: TerminalRenderer) -> ExitGuard:
    def on_exit():
        ffmpeg.terminate_active()
        renderer.goodbye()
        raise SystemExit(EXIT_INTERRUPTED)

    guard = ExitGuard()
    guard.install(on_armed=renderer.exit_warning, on_exit=on_exit)
    return guard
