# errors.py

class SimulatorError(Exception):
    """Base class for every failure signalled by the simulator core."""


class InvalidSize(SimulatorError, ValueError):
    pass


class NotInitialized(SimulatorError):
    pass


class OutOfMemory(SimulatorError):
    pass


class UnknownId(SimulatorError, ValueError):
    pass


class UnknownAddress(SimulatorError, ValueError):
    pass


class UnknownStrategy(SimulatorError, ValueError):
    pass


class UnknownPolicy(SimulatorError, ValueError):
    pass


class InvalidPage(SimulatorError, IndexError):
    pass


class AddressOutOfRange(SimulatorError, IndexError):
    pass


class PageFault(SimulatorError):
    """Raised when a translation reaches a page that is not resident."""

    def __init__(self, page_no):
        super().__init__(f"Page fault at page {page_no}.")
        self.page_no = page_no
