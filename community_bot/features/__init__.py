from .rules import (
    PageResult,
    ensure_rules_posts,
    reconcile_rules_page,
    reconcile_pinned_page,
)
from .support import PurgeReport, ResetReport, purge_channel, reset_support_channel
from .welcome import JoinResult, handle_member_join

__all__ = [
    "PageResult",
    "ensure_rules_posts",
    "reconcile_rules_page",
    "reconcile_pinned_page",
    "PurgeReport",
    "ResetReport",
    "purge_channel",
    "reset_support_channel",
    "JoinResult",
    "handle_member_join",
]
