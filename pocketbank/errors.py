class PocketBankError(Exception):
    pass


class InvalidInputError(PocketBankError):
    pass


class InvalidAmountError(InvalidInputError):
    pass


class InvalidTermError(InvalidInputError):
    pass


class InvalidRateError(InvalidInputError):
    pass


class InsufficientFundsError(PocketBankError):
    pass


class UnauthorizedError(PocketBankError):
    pass


class NotActiveError(PocketBankError):
    pass


class AlreadyMaturedError(NotActiveError):
    pass


class DepositNotFoundError(PocketBankError):
    pass


class PersistenceError(Exception):
    """Snapshot write failed; the operation was not committed."""
