"""
Tests for QSettingsStore and the shared subscription plumbing.
"""
import pytest

from core.settings.errors import SettingsWriteError, StoreUnavailableError
from core.settings.providers import QSettingsStoreProvider, ini_file_name
from core.settings.qsettings_store import QSettingsStore
from core.settings.schemas import CUSTOM_KEYBINDING, INTERFACE, PRIVATE, SCHEMA_IDS, USER_THEME


@pytest.fixture
def interface_store(qt_app, tmp_path):
    schema = SCHEMA_IDS[INTERFACE]
    return QSettingsStore(schema, tmp_path / f"{schema}.ini")


@pytest.fixture
def private_store(qt_app, tmp_path):
    schema = SCHEMA_IDS[PRIVATE]
    return QSettingsStore(schema, tmp_path / f"{schema}.ini")


def test_defaults_show_through(interface_store):
    assert interface_store.get("color-scheme") == "default"
    assert interface_store.get("gtk-theme") == "Adwaita"
    assert interface_store.get("no-such-key") == ""


def test_set_get_and_reset(interface_store):
    interface_store.set("gtk-theme", "Yaru")
    assert interface_store.get("gtk-theme") == "Yaru"

    interface_store.reset("gtk-theme")
    assert interface_store.get("gtk-theme") == "Adwaita"


def test_values_persist_across_instances(interface_store, tmp_path):
    interface_store.set("icon-theme", "Papirus")
    reopened = QSettingsStore(interface_store.schema_id, interface_store.path)
    assert reopened.get("icon-theme") == "Papirus"


def test_set_rejects_non_string(interface_store):
    with pytest.raises(SettingsWriteError):
        interface_store.set("gtk-theme", 42)


def test_string_lists(private_store):
    assert private_store.get_list("dark-light-toggle") == []

    private_store.set_list("dark-light-toggle", ["<Super>t"])
    assert private_store.get_list("dark-light-toggle") == ["<Super>t"]

    private_store.set_list("dark-light-toggle", ["<Super>t", "<Alt>d"])
    assert private_store.get_list("dark-light-toggle") == ["<Super>t", "<Alt>d"]


def test_private_defaults_are_empty(private_store):
    assert private_store.get("dark-gtk-theme") == ""
    assert private_store.get("light-shell-theme") == ""


class TestSubscriptions:
    """Change notifications shared by every store."""

    def test_exact_key_subscription(self, interface_store):
        seen = []
        interface_store.subscribe("gtk-theme", seen.append)

        interface_store.set("gtk-theme", "Yaru")
        interface_store.set("icon-theme", "Yaru")

        assert seen == ["gtk-theme"]

    def test_pattern_subscription(self, private_store):
        seen = []
        private_store.subscribe("dark-*", seen.append)

        private_store.set("dark-gtk-theme", "Adwaita-dark")
        private_store.set("light-gtk-theme", "Adwaita")

        assert seen == ["dark-gtk-theme"]

    def test_reset_notifies(self, interface_store):
        seen = []
        interface_store.subscribe("*", seen.append)
        interface_store.reset("color-scheme")
        assert seen == ["color-scheme"]

    def test_unsubscribe(self, interface_store):
        seen = []
        sub_id = interface_store.subscribe("gtk-theme", seen.append)
        assert interface_store.subscription_count() == 1

        interface_store.unsubscribe(sub_id)
        interface_store.set("gtk-theme", "Yaru")

        assert seen == []
        assert interface_store.subscription_count() == 0

    def test_unknown_unsubscribe_is_harmless(self, interface_store):
        interface_store.unsubscribe("missing")

    def test_failing_callback_does_not_block_others(self, interface_store):
        seen = []

        def failing(key):
            raise RuntimeError("boom")

        interface_store.subscribe("gtk-theme", failing)
        interface_store.subscribe("gtk-theme", seen.append)
        interface_store.set("gtk-theme", "Yaru")

        assert seen == ["gtk-theme"]

    def test_reentrant_write_notifies_before_returning(self, interface_store):
        seen = []

        def on_scheme(key):
            seen.append(key)
            if interface_store.get("gtk-theme") != "Adwaita-dark":
                interface_store.set("gtk-theme", "Adwaita-dark")

        interface_store.subscribe("color-scheme", on_scheme)
        interface_store.subscribe("gtk-theme", seen.append)
        interface_store.set("color-scheme", "prefer-dark")

        assert seen == ["color-scheme", "gtk-theme"]

    def test_invalid_subscriptions(self, interface_store):
        with pytest.raises(ValueError):
            interface_store.subscribe("gtk-theme", "not callable")
        with pytest.raises(ValueError):
            interface_store.subscribe("  ", print)

    def test_changed_signal(self, interface_store):
        emitted = []
        interface_store.changed.connect(emitted.append)
        interface_store.set("accent-color", "green")
        assert emitted == ["accent-color"]

    def test_close_drops_subscriptions(self, interface_store):
        seen = []
        interface_store.subscribe("*", seen.append)
        interface_store.close()
        interface_store.set("gtk-theme", "Yaru")
        assert seen == []
        assert interface_store.subscription_count() == 0


class TestProvider:
    """QSettingsStoreProvider role handling."""

    def test_opens_one_file_per_schema(self, qt_app, tmp_path):
        provider = QSettingsStoreProvider(tmp_path / "cfg")
        store = provider(INTERFACE)
        store.set("gtk-theme", "Yaru")

        assert store.schema_id == SCHEMA_IDS[INTERFACE]
        assert (tmp_path / "cfg" / f"{SCHEMA_IDS[INTERFACE]}.ini").exists()

    def test_unprovided_role_raises(self, qt_app, tmp_path):
        provider = QSettingsStoreProvider(tmp_path / "cfg", roles=[INTERFACE])
        with pytest.raises(StoreUnavailableError) as exc_info:
            provider(USER_THEME)
        assert exc_info.value.role == USER_THEME

    def test_unknown_role_raises(self, qt_app, tmp_path):
        provider = QSettingsStoreProvider(tmp_path / "cfg")
        with pytest.raises(StoreUnavailableError):
            provider("nonsense")

    def test_relocatable_schema_file_name(self, qt_app, tmp_path):
        provider = QSettingsStoreProvider(tmp_path / "cfg")
        store = provider(CUSTOM_KEYBINDING)
        store.set("binding", "<Super>t")

        name = ini_file_name(SCHEMA_IDS[CUSTOM_KEYBINDING])
        assert name == "org.gnome.settings-daemon.plugins.media-keys.custom-keybinding.appearance-keeper.ini"
        assert (tmp_path / "cfg" / name).exists()
        assert store.get("command") == ""
