"""Per-batch mutable state threaded through the pipeline stages."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field


@dataclass
class BatchState:
    """
    Counters and lookups scoped to one batch; never persisted.

    ``quota_baselines`` caches the persisted active headcount per village the
    first time a village is seen. ``assigned`` counts rows this batch has
    provisioned into each village. The ``seen_*`` sets and ``issued_handles``
    make earlier rows visible to later ones even when nothing is committed
    (dry runs).
    """

    dry_run: bool = False
    quota_baselines: dict[str, int] = field(default_factory=dict)
    assigned: Counter = field(default_factory=Counter)
    seen_national_ids: set[str] = field(default_factory=set)
    seen_phones: set[str] = field(default_factory=set)
    issued_handles: set[str] = field(default_factory=set)
    location_cache: dict[tuple, object] = field(default_factory=dict)

    def remember_identity(self, national_id: str, phone: str) -> None:
        self.seen_national_ids.add(national_id)
        self.seen_phones.add(phone)
