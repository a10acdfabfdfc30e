"""
Campaign Status Machine

Explicit transition table for the campaign lifecycle:

    DRAFT --(generate / schedule)--> SCHEDULED
    SCHEDULED --(send to reviewers)--> PENDING_REVIEW
    PENDING_REVIEW --(approve)--> APPROVED
    APPROVED --(publish)--> PUBLISHED --(mark done)--> COMPLETED
    APPROVED --(mark done)--> COMPLETED
    (any) --(admin archive)--> ARCHIVED
"""

from typing import Dict, FrozenSet, Optional

from .models import ActivityAction, CampaignStatus
from .protocols import InvalidCampaignStateError


class CampaignStatusMachine:
    """Campaign lifecycle rules"""

    VALID_TRANSITIONS: Dict[CampaignStatus, FrozenSet[CampaignStatus]] = {
        CampaignStatus.DRAFT: frozenset({CampaignStatus.SCHEDULED}),
        CampaignStatus.SCHEDULED: frozenset({CampaignStatus.PENDING_REVIEW}),
        # Re-sending adds reviewers without leaving review
        CampaignStatus.PENDING_REVIEW: frozenset({
            CampaignStatus.PENDING_REVIEW,
            CampaignStatus.APPROVED,
        }),
        CampaignStatus.APPROVED: frozenset({
            CampaignStatus.PUBLISHED,
            CampaignStatus.COMPLETED,
        }),
        CampaignStatus.PUBLISHED: frozenset({CampaignStatus.COMPLETED}),
        CampaignStatus.COMPLETED: frozenset(),  # Terminal state
        CampaignStatus.ARCHIVED: frozenset(),  # Terminal state
    }

    # Targets that carry side effects (review rows, notifications, role check)
    # and so cannot be set through a plain field update
    WORKFLOW_ONLY_TARGETS: Dict[CampaignStatus, str] = {
        CampaignStatus.PENDING_REVIEW: "POST /api/v1/reviews",
        CampaignStatus.APPROVED: "POST /api/v1/approve",
        CampaignStatus.ARCHIVED: "POST /api/v1/campaigns/{id}/archive",
    }

    @classmethod
    def can_transition(cls, current: CampaignStatus, target: CampaignStatus) -> bool:
        if current == target and target not in cls.WORKFLOW_ONLY_TARGETS:
            return True
        return target in cls.VALID_TRANSITIONS.get(current, frozenset())

    @classmethod
    def validate_update(cls, current: CampaignStatus, target: CampaignStatus) -> None:
        """
        Check a status change requested through PUT/PATCH.

        Writing the current status again is a no-op and always passes.

        Raises:
            InvalidCampaignStateError: transition not in the table, or the
                target can only be entered through its workflow operation
        """
        if current == target:
            return
        if target in cls.WORKFLOW_ONLY_TARGETS:
            raise InvalidCampaignStateError(
                f"Status {target.value} can only be set via {cls.WORKFLOW_ONLY_TARGETS[target]}",
                current_status=current,
                requested_status=target,
            )
        cls.validate_transition(current, target)

    @classmethod
    def validate_transition(cls, current: CampaignStatus, target: CampaignStatus) -> None:
        """Raises InvalidCampaignStateError unless current -> target is in the table"""
        if not cls.can_transition(current, target):
            raise InvalidCampaignStateError(
                f"Cannot change campaign status from {current.value} to {target.value}",
                current_status=current,
                requested_status=target,
            )

    @classmethod
    def validate_archive(cls, current: CampaignStatus) -> None:
        """Archive is allowed from every state except ARCHIVED itself"""
        if current == CampaignStatus.ARCHIVED:
            raise InvalidCampaignStateError(
                "Campaign is already archived",
                current_status=current,
                requested_status=CampaignStatus.ARCHIVED,
            )

    @staticmethod
    def activity_for_status(status: Optional[CampaignStatus]) -> ActivityAction:
        """Audit label for a status change; anything unlabeled is an edit"""
        return {
            CampaignStatus.SCHEDULED: ActivityAction.SCHEDULED,
            CampaignStatus.PUBLISHED: ActivityAction.PUBLISHED,
            CampaignStatus.ARCHIVED: ActivityAction.ARCHIVED,
        }.get(status, ActivityAction.EDITED)


__all__ = ["CampaignStatusMachine"]
