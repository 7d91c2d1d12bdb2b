"""
Folio Backend — Reflection Content Lifecycle
==============================================

What:  The publication state machine of a reflection.
Why:   Centralizes the rules for which status / publish_date values a write may
       produce, so create, update and publish cannot drift apart.
Who:   Called by ReflectionService after the Ownership Guard has passed.

State Machine:
    ┌─────────┐   publish()   ┌───────────┐
    │  DRAFT  │──────────────▶│ PUBLISHED │──┐
    └─────────┘               └───────────┘  │ publish() again:
                                    ▲        │ re-stamps publish_date
                                    └────────┘
    There is no PUBLISHED → DRAFT transition.

Invariant:
    status == PUBLISHED  ⇒  publish_date is not None
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from folio.exceptions import ValidationError
from folio.models.reflection import ReflectionStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def initial_state(
    requested_status: ReflectionStatus = ReflectionStatus.DRAFT,
    publish_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Tuple[ReflectionStatus, Optional[datetime]]:
    """
    Status and publish_date for a newly created reflection.

    DRAFT (the default) keeps whatever publish_date the author supplied, which
    may be a planned date. PUBLISHED uses the supplied date, or `now` when none
    was given, so a published row is never left without a date.
    """
    if requested_status == ReflectionStatus.PUBLISHED:
        return ReflectionStatus.PUBLISHED, publish_date or now or utc_now()
    return ReflectionStatus.DRAFT, publish_date


def publish_values(now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Column values for the publish transition.

    Always re-stamps publish_date, including on an already published
    reflection: publishing twice moves the date forward.
    """
    return {
        "status": ReflectionStatus.PUBLISHED.value,
        "publish_date": now or utc_now(),
    }


def update_values(
    current_status: str,
    requested_status: Optional[ReflectionStatus] = None,
    requested_publish_date: Optional[datetime] = None,
    current_publish_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Lifecycle columns an update is allowed to write.

    Rules:
        - Updating content never changes status.
        - PUBLISHED → DRAFT is rejected (400).
        - DRAFT → PUBLISHED behaves like publish(), keeping an explicitly
          supplied publish_date.
        - An explicit publish_date is written as given.

    Returns only the keys that must change.
    """
    values: Dict[str, Any] = {}

    if requested_status == ReflectionStatus.DRAFT and current_status == ReflectionStatus.PUBLISHED:
        raise ValidationError(
            message="A published reflection cannot be reverted to draft",
            field="status",
            context={"current_status": str(current_status)},
        )

    if requested_status == ReflectionStatus.PUBLISHED and current_status != ReflectionStatus.PUBLISHED:
        values["status"] = ReflectionStatus.PUBLISHED.value
        values["publish_date"] = (
            requested_publish_date or current_publish_date or now or utc_now()
        )
        return values

    if requested_publish_date is not None:
        values["publish_date"] = requested_publish_date
    return values
