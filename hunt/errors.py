"""
Ledger error taxonomy.

Every rejected ledger call raises exactly one of:

- ValidationError  bad parameters (amounts, durations, commitments, identities)
- StateError       operation not allowed for the hunt's current status or time
- ProofError       the verifier returned false

Each carries a machine-stable `reason` (see `Reason`) and its canonical
message. A rejected call never changes ledger state and is never retried by
the ledger.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from core.errors import SearchTogetherError, Severity, _jsonmap


class HuntErrorCode(str, Enum):
    VALIDATION = "HUNT/VALIDATION"
    STATE = "HUNT/STATE"
    PROOF = "HUNT/PROOF"


class Reason(str, Enum):
    # validation
    NO_DEPOSIT = "no_deposit"
    LOCKOUT_TOO_SHORT = "lockout_too_short"
    DURATION_NOT_AFTER_LOCKOUT = "duration_not_after_lockout"
    DURATION_TOO_LONG = "duration_too_long"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    BAD_COMMITMENT = "bad_commitment"
    BAD_IDENTITY = "bad_identity"
    BAD_AMOUNT = "bad_amount"
    # state
    UNKNOWN_HUNT = "unknown_hunt"
    NOT_ACTIVE = "not_active"
    IN_LOCKOUT = "in_lockout"
    EXPIRED = "expired"
    ALREADY_CLAIMED = "already_claimed"
    ALREADY_PURCHASED = "already_purchased"
    NOT_CLAIMED = "not_claimed"
    NOT_CLAIMER = "not_claimer"
    TOO_SOON = "too_soon"
    NOTHING_TO_WITHDRAW = "nothing_to_withdraw"
    NOT_EXPIRED = "not_expired"
    # proof
    INVALID_PROOF = "invalid_proof"


MESSAGES = {
    Reason.NO_DEPOSIT: "Must deposit prize",
    Reason.LOCKOUT_TOO_SHORT: "Lockout too short",
    Reason.DURATION_NOT_AFTER_LOCKOUT: "Duration must exceed lockout",
    Reason.DURATION_TOO_LONG: "Duration too long",
    Reason.INSUFFICIENT_PAYMENT: "Insufficient payment",
    Reason.BAD_COMMITMENT: "Commitment is not a field element",
    Reason.BAD_IDENTITY: "Malformed identity",
    Reason.BAD_AMOUNT: "Amount must be a non-negative integer",
    Reason.UNKNOWN_HUNT: "Unknown hunt",
    Reason.NOT_ACTIVE: "Hunt not active",
    Reason.IN_LOCKOUT: "Still in lockout period",
    Reason.EXPIRED: "Hunt expired",
    Reason.ALREADY_CLAIMED: "Already claimed",
    Reason.ALREADY_PURCHASED: "Already purchased",
    Reason.NOT_CLAIMED: "Hunt not claimed",
    Reason.NOT_CLAIMER: "Not the claimer",
    Reason.TOO_SOON: "Withdrawal too soon",
    Reason.NOTHING_TO_WITHDRAW: "Nothing to withdraw",
    Reason.NOT_EXPIRED: "Not expired yet",
    Reason.INVALID_PROOF: "Invalid proof",
}


class HuntError(SearchTogetherError):
    """Base for ledger rejections."""

    default_code: HuntErrorCode = HuntErrorCode.STATE

    def __init__(self, reason: Reason, message: Optional[str] = None, **data: Any) -> None:
        super().__init__(
            code=self.default_code,
            message=message or MESSAGES[reason],
            data=_jsonmap({"reason": reason.value, **data}),
            severity=Severity.WARNING,
            retryable=False,
        )
        self.reason = reason


class ValidationError(HuntError):
    default_code = HuntErrorCode.VALIDATION


class StateError(HuntError):
    default_code = HuntErrorCode.STATE


class ProofError(HuntError):
    default_code = HuntErrorCode.PROOF

    def __init__(self, message: Optional[str] = None, **data: Any) -> None:
        super().__init__(Reason.INVALID_PROOF, message, **data)


__all__ = [
    "HuntErrorCode",
    "Reason",
    "MESSAGES",
    "HuntError",
    "ValidationError",
    "StateError",
    "ProofError",
]
