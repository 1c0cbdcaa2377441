class PersistenceError(Exception):
    """The analysis or campaign could not be persisted. Fatal for the workflow run."""


class PersistenceProtocolError(PersistenceError):
    """The memory store acknowledged a write with an unexpected payload."""

    def __init__(self, key: str, acknowledgement: object):
        super().__init__(f"Invalid acknowledgement from the memory store for {key}: {acknowledgement!r}")
