from typing import TypedDict, Optional, List
from tools.models import EnrichmentResult

class EnrichmentState(TypedDict, total=False):
    """State shape for the requester-side enrichment workflow."""
    email: str                          # as the caller supplied it
    identifier: str                     # normalized correlation key
    request_id: Optional[str]           # pending ledger id, once recorded
    status: str                         # "invalid" | "in_progress" | "pending" | "resolved" | "timed_out" | "not_found" | "error"
    result: Optional[EnrichmentResult]
    poll_attempts: int
    crm_record_id: Optional[str]
    errors: List[str]
