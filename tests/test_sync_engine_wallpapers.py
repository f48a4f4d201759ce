"""
Tests for the SyncEngine wallpaper path and the background-file protocol.
"""
from unittest.mock import MagicMock

import pytest

from core.settings.schemas import BACKGROUND, INTERFACE
from engine.file_ops import FileOps
from engine.modes import Mode
from engine.wallpaper import path_to_uri

LIGHT_URI = "file:///usr/share/backgrounds/sunset.jpg"
DARK_URI = "file:///usr/share/backgrounds/midnight.jpg"


@pytest.fixture
def background(stores):
    stores[BACKGROUND].set("picture-uri", LIGHT_URI)
    stores[BACKGROUND].set("picture-uri-dark", DARK_URI)
    return stores[BACKGROUND]


@pytest.fixture
def dark_mode(stores):
    stores[INTERFACE].set("color-scheme", "prefer-dark")


@pytest.fixture
def background_file(tmp_path):
    config_dir = tmp_path / ".config"
    config_dir.mkdir()
    path = config_dir / "background.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return path


class FailingFileOps(FileOps):
    def copy(self, src, dst, overwrite=True):
        raise PermissionError(13, "Permission denied", str(dst))


@pytest.mark.qt
class TestDebouncedProcessing:

    def test_burst_processed_once_with_final_value(self, background, make_engine, qtbot):
        engine = make_engine()
        seen = []
        original = engine.process_wallpaper_change

        def recording(key):
            seen.append((key, background.get(key)))
            original(key)

        engine.process_wallpaper_change = recording

        for i in range(5):
            background.set("picture-uri", f"file:///w/burst-{i}.jpg")

        qtbot.waitUntil(lambda: len(seen) == 1, timeout=1000)
        qtbot.wait(120)

        assert seen == [("picture-uri", "file:///w/burst-4.jpg")]
        assert engine.stored_wallpaper(Mode.LIGHT) == "file:///w/burst-4.jpg"

    def test_active_key_plain_change_accepted(self, background, make_engine, qtbot):
        engine = make_engine()
        updates = []
        engine.wallpaper_updated.connect(lambda key, uri: updates.append((key, uri)))

        background.set("picture-uri", "file:///w/new.jpg")

        qtbot.waitUntil(lambda: engine.stored_wallpaper(Mode.LIGHT) == "file:///w/new.jpg", timeout=1000)
        assert updates == [("picture-uri", "file:///w/new.jpg")]
        assert engine.stored_wallpaper(Mode.DARK) == DARK_URI


class TestPlainWallpapers:
    """Direct calls to process_wallpaper_change (what the timer runs)."""

    def test_inactive_key_plain_change_reverted(self, background, make_engine):
        engine = make_engine()
        background.set("picture-uri-dark", "file:///w/stray.jpg")

        engine.process_wallpaper_change("picture-uri-dark")

        assert background.get("picture-uri-dark") == DARK_URI
        assert engine.stored_wallpaper(Mode.DARK) == DARK_URI

    def test_inactive_light_key_reverted_in_dark_mode(self, background, dark_mode, make_engine):
        engine = make_engine()
        background.set("picture-uri", "file:///w/stray.jpg")

        engine.process_wallpaper_change("picture-uri")

        assert background.get("picture-uri") == LIGHT_URI
        assert engine.stored_wallpaper(Mode.LIGHT) == LIGHT_URI

    def test_active_dark_key_accepted(self, background, dark_mode, make_engine):
        engine = make_engine()
        background.set("picture-uri-dark", "file:///w/new-night-sky.jpg")

        engine.process_wallpaper_change("picture-uri-dark")

        assert engine.stored_wallpaper(Mode.DARK) == "file:///w/new-night-sky.jpg"
        assert background.get("picture-uri-dark") == "file:///w/new-night-sky.jpg"

    def test_revert_with_nothing_cached_adopts_value(self, stores, make_engine):
        stores[BACKGROUND].set("picture-uri-dark", "")
        engine = make_engine()
        stores[BACKGROUND].set("picture-uri-dark", "file:///w/first.jpg")

        engine.process_wallpaper_change("picture-uri-dark")

        assert engine.stored_wallpaper(Mode.DARK) == "file:///w/first.jpg"
        assert stores[BACKGROUND].get("picture-uri-dark") == "file:///w/first.jpg"

    def test_own_write_echo_ignored(self, background, make_engine):
        engine = make_engine()
        writes = []
        background.subscribe("*", writes.append)

        engine.process_wallpaper_change("picture-uri")
        engine.process_wallpaper_change("picture-uri-dark")

        assert writes == []


class TestPairedWallpapers:

    def test_paired_inactive_key_kept(self, background, make_engine):
        engine = make_engine()
        background.set("picture-uri-dark", "file:///w/sunset-d.jpg")

        engine.process_wallpaper_change("picture-uri-dark")

        assert background.get("picture-uri-dark") == "file:///w/sunset-d.jpg"
        assert engine.stored_wallpaper(Mode.DARK) == "file:///w/sunset-d.jpg"
        assert engine.stored_wallpaper(Mode.LIGHT) == LIGHT_URI

    def test_dynamic_xml_never_reverted(self, background, make_engine):
        engine = make_engine()
        uri = "file:///usr/share/backgrounds/gnome/adwaita-timed.xml"
        background.set("picture-uri-dark", uri)

        engine.process_wallpaper_change("picture-uri-dark")

        assert background.get("picture-uri-dark") == uri
        assert engine.stored_wallpaper(Mode.DARK) == uri


class TestBackgroundFile:
    """The mode-less ~/.config/background file."""

    def test_written_to_inactive_key_is_split_for_active_mode(
            self, background, dark_mode, background_file, make_engine):
        engine = make_engine()
        expected_path = background_file.with_name("background-dark.jpg")
        expected_uri = path_to_uri(expected_path)

        background.set("picture-uri", path_to_uri(background_file))
        engine.process_wallpaper_change("picture-uri")

        assert expected_path.read_bytes() == background_file.read_bytes()
        assert background.get("picture-uri-dark") == expected_uri
        assert engine.stored_wallpaper(Mode.DARK) == expected_uri
        # The light slot keeps its own wallpaper
        assert background.get("picture-uri") == LIGHT_URI
        assert engine.stored_wallpaper(Mode.LIGHT) == LIGHT_URI

    def test_copy_overwrites_previous_variant(
            self, background, dark_mode, background_file, make_engine):
        stale = background_file.with_name("background-dark.jpg")
        stale.write_bytes(b"old")
        engine = make_engine()

        background.set("picture-uri", path_to_uri(background_file))
        engine.process_wallpaper_change("picture-uri")

        assert stale.read_bytes() == background_file.read_bytes()

    def test_light_variant_when_light_is_active(self, background, background_file, make_engine):
        engine = make_engine()

        background.set("picture-uri-dark", path_to_uri(background_file))
        engine.process_wallpaper_change("picture-uri-dark")

        expected_uri = path_to_uri(background_file.with_name("background-light.jpg"))
        assert background.get("picture-uri") == expected_uri
        assert background.get("picture-uri-dark") == DARK_URI

    def test_written_to_active_key_is_reverted(self, background, dark_mode, background_file, make_engine):
        engine = make_engine()

        background.set("picture-uri-dark", path_to_uri(background_file))
        engine.process_wallpaper_change("picture-uri-dark")

        assert background.get("picture-uri-dark") == DARK_URI
        assert not background_file.with_name("background-dark.jpg").exists()

    def test_missing_file_skipped(self, background, dark_mode, tmp_path, make_engine):
        engine = make_engine()
        missing = tmp_path / ".config" / "background.png"

        background.set("picture-uri", path_to_uri(missing))
        engine.process_wallpaper_change("picture-uri")

        assert background.get("picture-uri-dark") == DARK_URI
        assert engine.stored_wallpaper(Mode.DARK) == DARK_URI

    def test_copy_failure_commits_nothing(self, background, dark_mode, background_file, make_engine):
        engine = make_engine(file_ops=FailingFileOps())

        background.set("picture-uri", path_to_uri(background_file))
        engine.process_wallpaper_change("picture-uri")

        assert background.get("picture-uri-dark") == DARK_URI
        assert engine.stored_wallpaper(Mode.DARK) == DARK_URI
        assert not background_file.with_name("background-dark.jpg").exists()

    def test_echo_of_new_variant_ignored(self, background, dark_mode, background_file, make_engine):
        engine = make_engine()
        background.set("picture-uri", path_to_uri(background_file))
        engine.process_wallpaper_change("picture-uri")

        file_ops = MagicMock()
        engine._file_ops = file_ops
        engine.process_wallpaper_change("picture-uri-dark")

        file_ops.copy.assert_not_called()


def test_file_ops_copy_and_exists(tmp_path):
    ops = FileOps()
    src = tmp_path / "a.jpg"
    dst = tmp_path / "b.jpg"
    src.write_bytes(b"data")

    assert ops.exists(src)
    assert not ops.exists(dst)

    ops.copy(src, dst)
    assert dst.read_bytes() == b"data"

    with pytest.raises(FileExistsError):
        ops.copy(src, dst, overwrite=False)
    assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".")] == []


def test_file_ops_missing_source_leaves_no_temp(tmp_path):
    ops = FileOps()
    with pytest.raises(OSError):
        ops.copy(tmp_path / "missing.jpg", tmp_path / "out.jpg")
    assert list(tmp_path.iterdir()) == []
