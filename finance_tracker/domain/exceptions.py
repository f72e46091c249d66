"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidAmountError(DomainException):
    """Amount is not a decimal value or is out of range"""

    pass


class InvalidInstallmentCountError(DomainException):
    """Installment count below 1"""

    pass


class UnreconciledPlanError(DomainException):
    """Plan submitted although installments do not sum to the quote total"""

    def __init__(self, expected, actual):
        super().__init__(f"Installments total {actual} does not match quote amount {expected}")
        self.expected = expected
        self.actual = actual


class QuoteNotFoundError(DomainException):
    """Referenced quote does not exist"""

    pass


class FinanceAPIError(DomainException):
    """Revenue or quote endpoint returned an error or is unavailable"""

    pass
