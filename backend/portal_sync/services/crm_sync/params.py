"""
Tunable sync parameters.

Operator input is never rejected: each value is parsed and clamped on its
own, falling back to its default when missing, non-numeric, or below 1,
and capped at its ceiling when too large.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from portal_sync.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def clamp_param(raw: Any, default: int, maximum: int) -> int:
    """
    Parse and clamp one positive integer parameter.

    Examples:
        >>> clamp_param("25", 50, 100)
        25
        >>> clamp_param("abc", 50, 100)
        50
        >>> clamp_param("0", 50, 100)
        50
        >>> clamp_param("500", 50, 100)
        100
    """
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    if value < 1:
        return default
    return min(value, maximum)


@dataclass(frozen=True)
class SyncParams:
    """Resolved parameters for one run."""
    page_size: int
    max_pages: int
    concurrency: int

    @classmethod
    def from_raw(
        cls,
        limit: Optional[Any] = None,
        pages: Optional[Any] = None,
        concurrency: Optional[Any] = None,
        settings: Optional[Settings] = None,
    ) -> "SyncParams":
        settings = settings or get_settings()
        params = cls(
            page_size=clamp_param(limit, settings.sync_default_page_size, settings.sync_max_page_size),
            max_pages=clamp_param(pages, settings.sync_default_pages, settings.sync_max_pages),
            concurrency=clamp_param(
                concurrency, settings.sync_default_concurrency, settings.sync_max_concurrency
            ),
        )
        logger.debug(
            f"Sync params: limit={limit!r} pages={pages!r} concurrency={concurrency!r} -> {params}"
        )
        return params

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_camel_dict(self) -> Dict[str, int]:
        """Same values keyed the way the run summary is serialized."""
        return {
            "pageSize": self.page_size,
            "maxPages": self.max_pages,
            "concurrency": self.concurrency,
        }
