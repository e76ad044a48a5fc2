from typing import Any


class PolicySyncError(Exception):
    pass


class TargetValidationError(PolicySyncError):
    def __init__(self, target: Any) -> None:
        super().__init__(
            f"invalid target {target!r}: expected <owner>/<name> "
            "with letters, digits, '.', '_' or '-' only"
        )
        self.target = target


class PolicyStoreError(PolicySyncError):
    """Base class for failures reported by the remote policy store.

    ``detail`` holds the raw message returned by the store (or the transport)
    and is preserved for diagnostics.
    """

    operation = "call"

    def __init__(self, target: str, detail: Any) -> None:
        super().__init__(f"{self.operation} failed for {target}: {detail}")
        self.target = target
        self.detail = str(detail)


class StoreQueryError(PolicyStoreError):
    operation = "query"


class StoreDeleteError(PolicyStoreError):
    operation = "delete"


class StoreCreateError(PolicyStoreError):
    operation = "create"


class AuthError(PolicyStoreError):
    operation = "authentication"


class DiscoveryError(PolicySyncError):
    def __init__(self, owner: str, msg: Any) -> None:
        super().__init__(f"error discovering repositories of {owner}: {msg}")
        self.owner = owner
