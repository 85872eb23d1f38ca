"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidScheduleParams(DomainException):
    """Challenge configuration cannot produce a valid deposit schedule"""

    pass


class InvalidWeek(DomainException):
    """Week number is outside the challenge horizon"""

    def __init__(self, week: int, total_weeks: int):
        super().__init__(f"Week {week} is outside [1, {total_weeks}]")
        self.week = week
        self.total_weeks = total_weeks


class InvalidDepositAmount(DomainException):
    """Deposit amount is negative"""

    pass


class DuplicateDeposit(DomainException):
    """Week already has a paid deposit (idempotent replay)"""

    def __init__(self, challenge_id: str, week: int):
        super().__init__(f"Week {week} of challenge {challenge_id} is already paid")
        self.challenge_id = challenge_id
        self.week = week


class ChallengeClosed(DomainException):
    """Mutation attempted on a completed or cancelled challenge"""

    def __init__(self, challenge_id: str, status: str):
        super().__init__(f"Challenge {challenge_id} is {status}")
        self.challenge_id = challenge_id
        self.status = status


class ChallengeNotFound(DomainException):
    """No challenge stored under the given id"""

    pass


class VersionConflict(DomainException):
    """Challenge was modified by another writer since it was loaded"""

    pass


class LedgerAPIError(DomainException):
    """External ledger rejected or could not receive a linked transaction"""

    pass
