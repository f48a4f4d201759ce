"""
Tests for wallpaper classification and path helpers.
"""
from pathlib import Path

import pytest

from engine.wallpaper import (
    WallpaperKind,
    classify,
    file_extension,
    mode_variant_path,
    path_to_uri,
    uri_to_path,
)


class TestClassify:
    """Test classify()."""

    def test_known_examples(self):
        assert classify("file:///home/u/Pictures/sunset-l.jpg") is WallpaperKind.PAIRED
        assert classify("file:///home/u/.config/background") is WallpaperKind.SPECIAL
        assert classify("file:///home/u/Pictures/sunset.jpg") is WallpaperKind.PLAIN

    @pytest.mark.parametrize("name", [
        "sunset-l.jpg",
        "sunset-d.png",
        "sunset-light.webp",
        "sunset-dark.jxl",
        "sunset-day.jpeg",
        "sunset-night.JPG",
    ])
    def test_mode_suffixes_are_paired(self, name):
        assert classify(f"file:///usr/share/backgrounds/{name}") is WallpaperKind.PAIRED

    def test_dynamic_xml_is_paired(self):
        assert classify("file:///usr/share/backgrounds/gnome/adwaita-timed.xml") is WallpaperKind.PAIRED

    def test_suffix_must_precede_extension(self):
        # "-dark" inside the name but not right before the extension
        assert classify("file:///home/u/dark-forest.jpg") is WallpaperKind.PLAIN
        assert classify("file:///home/u/sunset-darker.jpg") is WallpaperKind.PLAIN

    def test_suffix_in_directory_is_ignored(self):
        assert classify("file:///home/u/wall-d.d/sunset.jpg") is WallpaperKind.PLAIN

    def test_special_wins_over_paired(self):
        assert classify("file:///home/u/.config/background-dark.jpg") is WallpaperKind.SPECIAL

    def test_bare_path_without_scheme(self):
        assert classify("/home/u/Pictures/sunset-night.png") is WallpaperKind.PAIRED

    def test_empty_is_plain(self):
        assert classify("") is WallpaperKind.PLAIN
        assert classify(None) is WallpaperKind.PLAIN


class TestPathHelpers:
    """Test URI and path conversions used by the background-file protocol."""

    def test_uri_to_path(self):
        assert uri_to_path("file:///home/u/My%20Pictures/a.jpg") == Path("/home/u/My Pictures/a.jpg")
        assert uri_to_path("/home/u/a.jpg") == Path("/home/u/a.jpg")
        assert uri_to_path("https://example.com/a.jpg") is None
        assert uri_to_path("") is None

    def test_path_to_uri_quotes_spaces(self):
        assert path_to_uri(Path("/home/u/My Pictures/a.jpg")) == "file:///home/u/My%20Pictures/a.jpg"

    def test_file_extension_defaults_to_png(self):
        assert file_extension(Path("/home/u/.config/background")) == ".png"
        assert file_extension(Path("/home/u/.config/background.jpg")) == ".jpg"

    def test_mode_variant_path(self):
        assert mode_variant_path(Path("/h/.config/background.jpg"), "dark") == Path("/h/.config/background-dark.jpg")
        assert mode_variant_path(Path("/h/.config/background"), "light") == Path("/h/.config/background-light.png")

    def test_mode_variant_path_replaces_existing_suffix(self):
        assert mode_variant_path(Path("/h/.config/background-light.jpg"), "dark") == Path("/h/.config/background-dark.jpg")
