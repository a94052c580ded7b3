from graph.state import EnrichmentState
from tools.models import normalize_identifier
from loguru import logger

def capture(state: EnrichmentState) -> EnrichmentState:
    """Normalize and validate the email the caller asked about."""
    email = state.get("email") or ""
    logger.info(f"Starting capture for enrichment request: {email or 'unknown'}")

    identifier = normalize_identifier(email)
    state["identifier"] = identifier

    if not identifier or "@" not in identifier:
        state.setdefault("errors", []).append(f"Invalid email address: {email!r}")
        state["status"] = "invalid"
        logger.warning(f"Rejected invalid email: {email!r}")
        return state

    logger.info(f"Capture completed for {identifier}")
    return state
