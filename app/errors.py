class LoyaltyError(Exception):
    """Base class for business rule failures.

    Each subclass carries the HTTP status code it is rendered with, the
    message is what ends up in the ``error`` field of the response body.
    """

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ─── NotFound ─────────────────────────────────────────────────────

class NotFound(LoyaltyError):
    status_code = 404
    default_message = "Not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class RewardNotFound(NotFound):
    default_message = "Reward not found"


class ClaimNotFound(NotFound):
    default_message = "Claim not found"


class OrderNotFound(NotFound):
    default_message = "Invalid QR code"


# ─── PreconditionFailed ───────────────────────────────────────────

class PreconditionFailed(LoyaltyError):
    status_code = 400


class RewardUnavailable(PreconditionFailed):
    default_message = "Reward not available"


class InsufficientPoints(PreconditionFailed):
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient points. You need {required} points, you have {available}"
        )


# debit() raises this one; same failure seen from the account side
InsufficientFunds = InsufficientPoints


class OutOfStock(PreconditionFailed):
    default_message = "Reward out of stock"


class InvalidStatus(PreconditionFailed):
    default_message = "Invalid status"


class InvalidReward(PreconditionFailed):
    default_message = "Invalid reward data"


class OrderAlreadyScanned(PreconditionFailed):
    default_message = "This QR code has already been used"


class StateConflict(PreconditionFailed):
    status_code = 409


class DuplicatePending(StateConflict):
    default_message = "You already have a pending claim for this reward"


class DuplicateExpired(StateConflict):
    default_message = "You already have an expired claim for this reward"


class InvalidStatusTransition(StateConflict):
    default_message = "Claim is no longer pending"


class RewardInUse(StateConflict):
    default_message = "Reward has claims and cannot be deleted"


# ─── TransactionConflict ──────────────────────────────────────────

class TransactionConflict(LoyaltyError):
    status_code = 503
    default_message = "The request conflicted with a concurrent update, please retry"
