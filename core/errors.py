"""Custom exceptions for the prediction pipeline."""


class PredictionError(Exception):
    """Base exception for all pipeline errors."""
    pass


class CollaboratorUnavailable(PredictionError):
    """An external source failed, timed out, or returned nothing usable."""
    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class BudgetExhausted(CollaboratorUnavailable):
    """The injected request budget for a source is spent."""
    def __init__(self, source: str, limit: int):
        self.limit = limit
        super().__init__(source, f"request budget exhausted ({limit} requests)")


class NormalizationToleranceWarning(UserWarning):
    """Bounds and sum-to-100 could not both be met exactly."""
    pass


class NoHighValueFixtures(PredictionError):
    """No fixture cleared the shortlist edge threshold."""
    def __init__(self, sport: str):
        self.sport = sport
        super().__init__(f"No high-value fixtures found for {sport}")


class FixtureAnalysisError(PredictionError):
    """Deep-dive failure for a single fixture."""
    def __init__(self, fixture_id: str, message: str):
        self.fixture_id = fixture_id
        super().__init__(f"Fixture {fixture_id}: {message}")


class PipelineError(PredictionError):
    """Unrecoverable failure before a shortlist exists."""
    pass
