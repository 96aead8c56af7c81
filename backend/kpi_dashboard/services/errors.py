class DashboardError(Exception):
    """Base class for failures inside the dashboard pipeline."""


class CrmError(DashboardError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SourceUnavailable(DashboardError):
    def __init__(self, resource: str, cause: BaseException | None = None):
        super().__init__(f"{resource} could not be fetched")
        self.resource = resource
        self.cause = cause


class SummaryUnavailable(DashboardError):
    pass


class TotalFailure(DashboardError):
    def __init__(self, office: str):
        super().__init__(f"no CRM data could be fetched for office {office}")
        self.office = office
