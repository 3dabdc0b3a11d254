"""
Sqsh - Fast media compression for your terminal.
"""

__version__ = "0.1.0"

# Package-level exports for convenience
from sqsh.cli import main
from sqsh.core.batch_orchestrator import BatchOrchestrator, BatchReporter
from sqsh.core.compression_service import CompressionResult, CompressionService
from sqsh.core.config import AdvancedSettings, CompressionSettings, ParameterValidator, QualityTier, resolve
from sqsh.core.ffmpeg_executor import FFmpegExecutor
from sqsh.core.file_classifier import FileClassifier, FileDescriptor, MediaCategory
from sqsh.services.statistics import BatchSummary, aggregate
from sqsh.utils.file_processor import OutputPathAllocator
from sqsh.utils.format import format_size, parse_size


__all__ = [
    "AdvancedSettings",
    "BatchOrchestrator",
    "BatchReporter",
    "BatchSummary",
    "CompressionResult",
    "CompressionService",
    "CompressionSettings",
    "FFmpegExecutor",
    "FileClassifier",
    "FileDescriptor",
    "MediaCategory",
    "OutputPathAllocator",
    "ParameterValidator",
    "QualityTier",
    "aggregate",
    "format_size",
    "parse_size",
    "resolve",
    "main",
]
