"""Errors raised by the billing engine.

All of them derive from ``ValueError`` so callers that only guard against bad
input keep working. Guard errors are raised before anything is written.
"""


class BillingError(ValueError):
    pass


class BillValidationError(BillingError):
    pass


class BillNotFound(BillingError):
    def __init__(self, bill_id: int | None) -> None:
        super().__init__(f"Bill not found (id={bill_id})")
        self.bill_id = bill_id


class ContractNotFound(BillingError):
    def __init__(self, contract_id: int | None) -> None:
        super().__init__(f"Contract not found (id={contract_id})")
        self.contract_id = contract_id


class BillLocked(BillingError):
    """The bill is approved; its services, dates and total are frozen."""


class ApprovalBlocked(BillingError):
    pass


class CannotUnapprovePaidBill(BillingError):
    pass


class InvalidPaymentAmount(BillingError):
    pass


class PaymentNotCollected(BillingError):
    pass


class PaymentInProgress(BillingError):
    pass


class InvariantViolation(BillingError):
    pass
