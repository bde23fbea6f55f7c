"""Exception types raised by BusyBee."""


class BusyBeeError(Exception):
    """Base class for all BusyBee errors."""


class InvalidAmount(BusyBeeError, ValueError):
    """Amount is negative where not allowed, non-numeric, or out of range."""


class InvalidExpense(BusyBeeError, ValueError):
    """Expense fields failed validation (e.g. blank vendor)."""


class PersistenceFailure(BusyBeeError):
    """Reading or writing a data file failed."""


class ReceiptStoreError(BusyBeeError):
    """Base class for receipt image storage errors."""


class ReceiptNotFound(ReceiptStoreError):
    pass


class ImageTooLarge(ReceiptStoreError):
    pass


class InsufficientStorage(ReceiptStoreError):
    pass


class InvalidImage(ReceiptStoreError):
    pass
