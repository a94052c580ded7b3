import asyncio
from langchain_core.runnables import RunnableConfig
from graph.context import dependency
from graph.state import EnrichmentState
from tools.pending_ledger import LedgerStorageError
from tools.poller import fetch_once
from loguru import logger

async def lookup(state: EnrichmentState, config: RunnableConfig) -> EnrichmentState:
    """Reuse a result that is already available, or refuse to start a second search."""
    identifier = state["identifier"]
    ledger = dependency(config, "ledger")
    source = dependency(config, "source")

    try:
        existing = await fetch_once(source, identifier)
    except Exception as e:
        # Treated as "not ready"; the poll loop will ask again
        logger.warning(f"Result lookup failed for {identifier}: {e}")
        existing = None

    if existing is not None:
        logger.info(f"Found existing LinkedIn result for: {identifier}")
        await asyncio.to_thread(ledger.clear_pending, identifier)
        state["result"] = existing
        state["status"] = "resolved"
        return state

    try:
        if await asyncio.to_thread(ledger.is_pending, identifier):
            logger.info(f"LinkedIn search already in progress for {identifier}")
            state["status"] = "in_progress"
            state.setdefault("errors", []).append("LinkedIn search already in progress for this email")
    except LedgerStorageError as e:
        state["status"] = "error"
        state.setdefault("errors", []).append(f"pending_ledger_failed: {e}")

    return state
