from kpi_dashboard.api.routes import dashboard, offices

__all__ = [
    "dashboard",
    "offices",
]
