class CRMError(Exception):
    """Base class for all CRM domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except CRMError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class LeadNotFoundError(CRMError):
    """Raised when a requested lead does not exist."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class DealNotFoundError(CRMError):
    """Raised when a requested deal does not exist."""

    def __init__(self, detail: str = "Deal not found"):
        super().__init__(detail)


class RuleNotFoundError(CRMError):
    """Raised when a requested assignment rule does not exist."""

    def __init__(self, detail: str = "Assignment rule not found"):
        super().__init__(detail)


class TeamMemberNotFoundError(CRMError):
    """Raised when a team member id is not in the roster."""

    def __init__(self, detail: str = "Team member not found"):
        super().__init__(detail)


class InvalidLeadDataError(CRMError):
    """Raised when lead data fails business validation."""

    def __init__(self, detail: str = "Invalid lead data"):
        super().__init__(detail)


class InvalidRuleError(CRMError):
    """Raised when an assignment rule definition is incomplete.

    ``errors`` carries every individual problem so the caller can show
    them all at once rather than one per round-trip.
    """

    def __init__(self, errors=None, detail: str = "Invalid assignment rule"):
        self.errors = list(errors or [])
        if self.errors:
            detail = "; ".join(self.errors)
        super().__init__(detail)


class TeamDirectoryUnavailableError(CRMError):
    """Raised when a roster write is attempted without a Redis backend."""

    def __init__(self, detail: str = "Team directory unavailable"):
        super().__init__(detail)
