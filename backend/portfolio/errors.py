"""Domain errors raised by the core services and mapped to HTTP responses in main."""
from __future__ import annotations


class PortfolioError(Exception):
    """Base class for errors the API reports to the caller."""

    status_code = 500


class MediaValidationError(PortfolioError):
    """Submitted media list rejected before any write."""

    status_code = 422


class ReconciliationError(PortfolioError):
    """A reconciliation batch failed; earlier batches remain applied."""

    status_code = 500

    def __init__(self, project_id, phase: str, cause: BaseException):
        self.project_id = project_id
        self.phase = phase
        self.cause = cause
        super().__init__(f"Media reconciliation for project {project_id} failed during {phase}: {cause}")


class SettingsWriteError(PortfolioError):
    """Neither the procedure nor the direct update could write the settings row."""

    status_code = 503


class SiteSettingsMissing(PortfolioError):
    """The singleton settings row does not exist. It is never created on demand."""

    status_code = 503
