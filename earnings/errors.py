from typing import Optional

# ==========================================================
#                  EXCEPTIONS
# ==========================================================
class EarningsError(Exception):
    """Base class for every rejected engine operation."""
    code = "error"
    status_code = 400
    user_message = "request could not be processed"
    # customers see `detail` instead of the generic message
    show_detail = False

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.user_message
        super().__init__(self.detail)

    @property
    def public_message(self):
        return self.detail if self.show_detail else self.user_message

    def to_dict(self):
        return {"error": self.code, "detail": self.detail}


class InvalidAmount(EarningsError):
    code = "invalid_amount"
    user_message = "enter a valid amount"


class InsufficientFunds(EarningsError):
    code = "insufficient_funds"
    status_code = 402
    user_message = "insufficient balance"


class PackageInactive(EarningsError):
    code = "package_inactive"
    status_code = 409
    user_message = "package is not available"


class PackageExpired(EarningsError):
    code = "package_expired"
    status_code = 409
    user_message = "package has expired"


class TaskNotEligible(EarningsError):
    code = "task_not_eligible"
    status_code = 403
    user_message = "task is not available for this package"


class DuplicateCompletion(EarningsError):
    code = "duplicate_completion"
    status_code = 409
    user_message = "task already completed today"


class DailyCapReached(EarningsError):
    code = "daily_cap_reached"
    status_code = 429
    user_message = "daily limit reached"


class PendingWithdrawalExists(EarningsError):
    code = "pending_withdrawal_exists"
    status_code = 409
    user_message = "you already have a pending withdrawal"


class NotFound(EarningsError):
    code = "not_found"
    status_code = 404
    user_message = "not found"


class InvalidStateTransition(EarningsError):
    code = "invalid_state_transition"
    status_code = 409
    user_message = "request has already been processed"


class PhoneAlreadyRegistered(EarningsError):
    code = "phone_already_registered"
    status_code = 409
    user_message = "phone already registered"


class InvalidRegistration(EarningsError):
    code = "invalid_registration"
    user_message = "invalid registration details"
    show_detail = True


class InvalidBankDetails(EarningsError):
    code = "invalid_bank_details"
    user_message = "bank name, account number and account holder are required"
