"""
Tests for sqsh.utils.file_processor module.
"""

import pytest

from sqsh.core.config import AdvancedSettings
from sqsh.core.errors import InvalidDestination
from sqsh.utils.file_processor import FileProcessor, OutputPathAllocator


@pytest.mark.unit
class TestOutputPathAllocator:
    """Tests for OutputPathAllocator class."""

    def test_default_name(self, sample_video):
        allocator = OutputPathAllocator()

        assert allocator.allocate(sample_video) == sample_video.with_name("clip-sqshed.mp4")

    def test_existing_file_gets_counter(self, sample_video, make_file):
        make_file("clip-sqshed.mp4")
        make_file("clip-sqshed-1.mp4")

        assert OutputPathAllocator().allocate(sample_video) == sample_video.with_name("clip-sqshed-2.mp4")

    def test_reserved_paths_not_reused(self, sample_video):
        allocator = OutputPathAllocator()

        first = allocator.allocate(sample_video)
        second = allocator.allocate(sample_video)
        third = allocator.allocate(sample_video)

        assert [p.name for p in (first, second, third)] == [
            "clip-sqshed.mp4",
            "clip-sqshed-1.mp4",
            "clip-sqshed-2.mp4",
        ]
        assert not first.exists()

    def test_distinct_for_many_inputs_sharing_a_stem(self, make_file, temp_dir):
        out_dir = temp_dir / "out"
        out_dir.mkdir()
        allocator = OutputPathAllocator()
        advanced = AdvancedSettings(output_folder=out_dir, output_format="mp4")
        sources = [make_file(f"{folder}/take.mov") for folder in ("a", "b", "c", "d")]

        allocated = [allocator.allocate(source, advanced) for source in sources]

        assert len(set(allocated)) == len(sources)
        assert all(path.parent == out_dir for path in allocated)

    def test_never_returns_input_path(self, make_file):
        source = make_file("song-sqshed.mp3")

        result = OutputPathAllocator().allocate(source)

        assert result != source
        assert result.name == "song-sqshed-sqshed.mp3"

    def test_output_format_changes_extension(self, sample_video):
        advanced = AdvancedSettings(output_format="WEBM")

        assert OutputPathAllocator().allocate(sample_video, advanced).name == "clip-sqshed.webm"

    def test_output_folder(self, sample_video, temp_dir):
        out_dir = temp_dir / "exports"
        out_dir.mkdir()

        result = OutputPathAllocator().allocate(sample_video, AdvancedSettings(output_folder=out_dir))

        assert result == out_dir / "clip-sqshed.mp4"

    def test_missing_output_folder(self, sample_video, temp_dir):
        with pytest.raises(InvalidDestination):
            OutputPathAllocator().allocate(sample_video, AdvancedSettings(output_folder=temp_dir / "nope"))

    def test_output_folder_is_a_file(self, sample_video, sample_audio):
        with pytest.raises(InvalidDestination):
            OutputPathAllocator().allocate(sample_video, AdvancedSettings(output_folder=sample_audio))


@pytest.mark.unit
class TestFileProcessor:
    """Tests for FileProcessor class."""

    def test_cleanup_output(self, make_file):
        partial = make_file("clip-sqshed.mp4")

        FileProcessor.cleanup_output(partial)

        assert not partial.exists()

    def test_cleanup_missing_output(self, temp_dir):
        FileProcessor.cleanup_output(temp_dir / "never-written.mp4")

    def test_remove_input(self, sample_video):
        assert FileProcessor.remove_input(sample_video) is True
        assert not sample_video.exists()

    def test_remove_input_failure(self, temp_dir):
        assert FileProcessor.remove_input(temp_dir / "gone.mp4") is False
