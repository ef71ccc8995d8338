"""
Domain Errors

Error taxonomy shared by the ingestion, correlation, and anomaly stages.
Recoverable errors are caught by the stage that raises them; fatal ones propagate.
"""


class AnalyticsError(Exception):
    """Base class for all analytics errors"""
    pass


class DataQualityError(AnalyticsError):
    """A malformed row (recovered locally into an ErrorCase)"""

    def __init__(self, reason: str, line_number: int | None = None) -> None:
        self.reason = reason
        self.line_number = line_number
        location = f" (row {line_number})" if line_number is not None else ""
        super().__init__(f"{reason}{location}")


class EmptyDatasetError(AnalyticsError):
    """No valid cases were found; no report can be produced"""
    pass


class CorrelationMiss(AnalyticsError):
    """No matching attachment bundle or entry for a test case"""
    pass


class ParseSkip(AnalyticsError):
    """A single log block is missing a required field"""

    def __init__(self, kind: str, field: str) -> None:
        self.kind = kind
        self.field = field
        super().__init__(f"{kind} block is missing required field '{field}'")


class CapabilityError(AnalyticsError):
    """Base class for failures in the anomaly/summary branch"""
    pass


class CapabilityContractViolation(CapabilityError):
    """Capability output failed schema validation or broke the hand-off contract"""
    pass


class CapabilityCallFailure(CapabilityError):
    """Transport failure while calling a scoring capability (not retried)"""
    pass
