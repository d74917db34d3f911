"""Exception taxonomy for the season simulation core."""

from __future__ import annotations


class FranchiseSimError(Exception):
    """Base class for simulation errors, with an optional machine-readable code."""

    default_code: str | None = None

    def __init__(self, message: str, error_code: str | None = None) -> None:
        self.message = message
        self.error_code = error_code or self.default_code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class InvalidTeamConfiguration(FranchiseSimError):
    """A team cannot dress a legal lineup."""

    default_code = "INVALID_TEAM"

    def __init__(self, team_name: str, missing_unit: str) -> None:
        self.team_name = team_name
        self.missing_unit = missing_unit
        super().__init__(f"Team {team_name} does not have enough {missing_unit}")


class MalformedLineupData(FranchiseSimError):
    """A lineup failed its completeness check."""

    default_code = "MALFORMED_LINEUP"

    def __init__(self, team_name: str, detail: str = "") -> None:
        self.team_name = team_name
        message = f"Generated lineup for team {team_name} is invalid"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidDate(FranchiseSimError):
    default_code = "INVALID_DATE"

    def __init__(self, message: str, days: int | None = None) -> None:
        self.days = days
        super().__init__(message)


class ScheduleConflict(FranchiseSimError):
    default_code = "SCHEDULE_CONFLICT"


class ContractCalculationError(FranchiseSimError):
    default_code = "CONTRACT_CALCULATION"


class CorruptedSaveData(FranchiseSimError):
    default_code = "CORRUPTED_SAVE"
