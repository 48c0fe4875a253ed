from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class CompanyCreated:
    """Published after a company row is committed.

    Carries ids only; handlers reload the company and the acting user in
    their own session.
    """

    company_id: int
    actor_id: int
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
