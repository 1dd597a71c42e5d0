"""Health check model: upstream provider and analysis backend availability."""

import datetime

from pydantic import BaseModel, ConfigDict, computed_field


class HealthStatus(BaseModel):
    """Reachability of every configured quote provider and analysis backend.

    Used by the CLI to display system readiness before running analysis.
    """

    model_config = ConfigDict(frozen=True)

    quote_providers: dict[str, bool]
    analysis_backends: dict[str, bool]
    last_check: datetime.datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def any_remote_backend(self) -> bool:
        """True if at least one non-local analysis backend answered."""
        return any(ok for name, ok in self.analysis_backends.items() if name != "local")
