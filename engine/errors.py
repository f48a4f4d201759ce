"""
Engine exceptions.
"""
from typing import List, Tuple


class EngineStartError(RuntimeError):
    """One or more mandatory stores could not be opened.

    Attributes:
        failures: ``(role, exception)`` for every store that failed
    """

    def __init__(self, failures: List[Tuple[str, BaseException]]):
        self.failures = list(failures)
        details = "; ".join(f"{role}: {exc}" for role, exc in self.failures)
        super().__init__(f"Sync engine failed to start ({details})")
