"""Error taxonomy for Kolla.

Everything raised by the core derives from KollaError so the gateway can
map it to a status code in one place.
"""

from __future__ import annotations

USER_REJECTED_MARKER = "user rejected"


class KollaError(Exception):
    """Base for all Kolla errors."""


class FormatError(KollaError):
    """A stored record or value token could not be parsed."""


class NotFoundError(KollaError):
    """The target asset id has no record in the store."""


class UnauthorizedError(KollaError):
    """No connected principal, or the principal may not act on the asset."""


class StoreUnavailableError(KollaError):
    """The store could not be read."""


class InvalidAssetError(KollaError):
    """A submission failed boundary validation."""


class InvalidTransitionError(KollaError):
    """The asset is not in a state that allows the requested transition."""


class TransactionFailedError(KollaError):
    """A store write was rejected or failed.

    Partial effects are possible: when the record was written but the
    index append was not, ``asset_id`` names the orphaned record so the
    caller can finish with ``AssetRegistry.commit_index``.
    """

    def __init__(
        self,
        reason: str = "",
        *,
        user_rejected: bool = False,
        asset_id: str | None = None,
    ) -> None:
        self.reason = reason
        self.user_rejected = user_rejected
        self.asset_id = asset_id
        if user_rejected:
            message = "Transaction rejected by user"
        else:
            message = "Submission failed: " + (reason or "Unknown error")
        super().__init__(message)

    @classmethod
    def from_exception(
        cls, exc: BaseException, *, asset_id: str | None = None
    ) -> TransactionFailedError:
        """Classify an arbitrary collaborator failure."""
        if isinstance(exc, TransactionFailedError):
            return cls(exc.reason, user_rejected=exc.user_rejected, asset_id=asset_id)
        text = str(exc)
        return cls(
            text,
            user_rejected=USER_REJECTED_MARKER in text.lower(),
            asset_id=asset_id,
        )
