"""
Tests for sqsh.core.file_classifier module.
"""

import pytest

from sqsh.core.errors import ClassificationError
from sqsh.core.file_classifier import (
    EXTENSION_CATEGORIES,
    FileClassifier,
    MediaCategory,
    category_for_extension,
    clean_path,
    supported_formats,
)


@pytest.mark.unit
class TestCleanPath:
    """Tests for clean_path function."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  /tmp/a.mp4  ", "/tmp/a.mp4"),
            ("'/tmp/my clip.mp4'", "/tmp/my clip.mp4"),
            ('"/tmp/my clip.mp4"', "/tmp/my clip.mp4"),
            ("'/tmp/a.mp4\"", "'/tmp/a.mp4\""),
            ("", ""),
        ],
    )
    def test_clean_path(self, raw, expected):
        assert clean_path(raw) == expected


@pytest.mark.unit
class TestCategoryForExtension:
    """Tests for extension lookup."""

    @pytest.mark.parametrize(
        "extension,category",
        [
            ("mp4", MediaCategory.VIDEO),
            (".MOV", MediaCategory.VIDEO),
            ("webm", MediaCategory.VIDEO),
            ("JPG", MediaCategory.IMAGE),
            ("webp", MediaCategory.IMAGE),
            ("bmp", MediaCategory.IMAGE),
            ("flac", MediaCategory.AUDIO),
            (".m4a", MediaCategory.AUDIO),
        ],
    )
    def test_known_extensions(self, extension, category):
        assert category_for_extension(extension) is category

    @pytest.mark.parametrize("extension", ["txt", "pdf", "", "tar.gz"])
    def test_unknown_extensions(self, extension):
        assert category_for_extension(extension) is None

    def test_every_supported_format_listed(self):
        listed = supported_formats().split(", ")
        assert sorted(listed) == sorted(EXTENSION_CATEGORIES)


@pytest.mark.unit
class TestFileClassifierRequire:
    """Tests for FileClassifier.require."""

    def test_classifies_video(self, make_file):
        path = make_file("Holiday.MP4", size=2048)

        descriptor = FileClassifier.require(path)

        assert descriptor.path == path.resolve()
        assert descriptor.name == "Holiday.MP4"
        assert descriptor.size == 2048
        assert descriptor.category is MediaCategory.VIDEO
        assert descriptor.extension == "mp4"

    def test_accepts_quoted_string(self, make_file):
        path = make_file("my photo.png")

        descriptor = FileClassifier.require(f"'{path}'")

        assert descriptor.category is MediaCategory.IMAGE
        assert descriptor.name == "my photo.png"

    def test_missing_file(self, temp_dir):
        with pytest.raises(ClassificationError, match="File not found"):
            FileClassifier.require(temp_dir / "nope.mp4")

    def test_directory_rejected(self, temp_dir):
        folder = temp_dir / "album.jpg"
        folder.mkdir()

        with pytest.raises(ClassificationError, match="Not a regular file"):
            FileClassifier.require(folder)

    def test_unsupported_extension(self, make_file):
        path = make_file("notes.txt")

        with pytest.raises(ClassificationError, match="Unsupported format") as exc_info:
            FileClassifier.require(path)

        assert exc_info.value.path == path

    def test_no_extension(self, make_file):
        with pytest.raises(ClassificationError, match="Unsupported format"):
            FileClassifier.require(make_file("README"))

    def test_empty_file(self, make_file):
        with pytest.raises(ClassificationError, match="File is empty"):
            FileClassifier.require(make_file("blank.mp3", size=0))

    def test_classification_error_is_value_error(self, temp_dir):
        with pytest.raises(ValueError):
            FileClassifier.require(temp_dir / "missing.gif")


@pytest.mark.unit
class TestFileClassifierClassify:
    """Tests for FileClassifier.classify."""

    def test_returns_descriptor(self, sample_audio):
        assert FileClassifier.classify(sample_audio).category is MediaCategory.AUDIO

    def test_returns_none_on_rejection(self, make_file, temp_dir):
        assert FileClassifier.classify(make_file("doc.pdf")) is None
        assert FileClassifier.classify(temp_dir / "missing.mp4") is None


@pytest.mark.unit
class TestFileClassifierEnumerate:
    """Tests for FileClassifier.enumerate."""

    def test_lists_supported_files_sorted(self, make_file, temp_dir):
        make_file("b.mp4")
        make_file("A.mov")
        make_file("c.txt")
        make_file("empty.mkv", size=0)
        make_file("nested/d.mp4")

        descriptors = FileClassifier.enumerate(temp_dir)

        assert [d.name for d in descriptors] == ["A.mov", "b.mp4"]

    def test_empty_directory(self, temp_dir):
        assert FileClassifier.enumerate(temp_dir) == []

    def test_not_a_directory(self, sample_video):
        with pytest.raises(ClassificationError, match="Not a directory"):
            FileClassifier.enumerate(sample_video)
