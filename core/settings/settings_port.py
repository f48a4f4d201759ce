"""Settings store protocol.

Defines the key/value interface the sync engine talks to. Concrete stores
(QSettings-backed, gsettings-backed) satisfy it structurally; no runtime
inheritance is required.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, runtime_checkable

ChangeCallback = Callable[[str], None]


@runtime_checkable
class SettingsPort(Protocol):
    """Typed string store with change notifications.

    ``set`` always writes; callers compare against ``get`` first when they
    need a no-op for unchanged values.
    """

    @property
    def schema_id(self) -> str: ...

    def get(self, key: str) -> str: ...
    def set(self, key: str, value: str) -> None: ...
    def reset(self, key: str) -> None: ...
    def get_list(self, key: str) -> List[str]: ...
    def set_list(self, key: str, values: List[str]) -> None: ...
    def subscribe(self, key_pattern: str, callback: ChangeCallback) -> str: ...
    def unsubscribe(self, subscription_id: str) -> None: ...
    def close(self) -> None: ...
