"""Exception types raised by the snapshot engine and the action surface."""


class WebTesterError(Exception):
    """Base class for recoverable web-tester failures."""


class SnapshotError(WebTesterError):
    """The live document could not be captured (e.g. it has no body)."""


class ElementNotFoundError(WebTesterError):
    """A highlight index is absent from the current snapshot."""

    def __init__(self, highlight_index: int) -> None:
        super().__init__(f"No element found with highlightIndex = {highlight_index}")
        self.highlight_index = highlight_index


class HitTestUnavailable(WebTesterError):
    """The DOM capability could not answer a hit-test for a point."""


class PayloadError(WebTesterError):
    """An action payload could not be parsed (non-numeric index, missing text)."""
