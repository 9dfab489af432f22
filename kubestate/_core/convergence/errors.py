from typing import Any


class ContractError(ValueError):
    """ The arguments are missing or conflicting; nothing has been done yet. """


class ConditionTimeoutError(Exception):
    """
    The condition was not met within the allowed number of attempts.

    The last evaluated result of the condition is kept for diagnostics.
    """

    def __init__(self, message: str, *, attempts: int, result: Any = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.result = result
