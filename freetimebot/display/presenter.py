"""Interface between the refresh cycle and whatever shows its results."""

from typing import Callable, Optional, Protocol

from ..freetime.models import FreeTimeResult


class Presenter(Protocol):
    """Receives refresh outcomes; never called concurrently."""

    def show_loading(self) -> None: ...

    def show_error(self, message: str) -> None: ...

    def update(self, result: FreeTimeResult) -> None: ...

    def notify(self, message: str, level: str = "info") -> None: ...

    def show_details(
        self, result: FreeTimeResult, on_dismiss_for_today: Optional[Callable[[], None]] = None
    ) -> None: ...
