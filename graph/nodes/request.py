import asyncio
from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError
from graph.context import dependency
from graph.state import EnrichmentState
from tools.freckle import ProviderRequestError, interpret_ack
from tools.pending_ledger import LedgerStorageError
from loguru import logger

async def request(state: EnrichmentState, config: RunnableConfig) -> EnrichmentState:
    """Record the request in the pending ledger, then fire it at the provider."""
    identifier = state["identifier"]
    ledger = dependency(config, "ledger")
    provider = dependency(config, "provider")

    try:
        request_id = await asyncio.to_thread(ledger.record_pending, identifier)
    except LedgerStorageError as e:
        # Unrecorded requests are never sent
        state["status"] = "error"
        state.setdefault("errors", []).append(f"pending_ledger_failed: {e}")
        return state

    state["request_id"] = request_id
    logger.info(f"Starting LinkedIn search for: {identifier} Request ID: {request_id}")

    try:
        ack = await provider.request_enrichment(identifier, request_id)
    except ProviderRequestError as e:
        logger.error(f"LinkedIn enrichment request failed for {identifier}: {e}")
        await asyncio.to_thread(ledger.clear_pending, identifier)
        state["status"] = "error"
        state.setdefault("errors", []).append(f"provider_request_failed: {e}")
        return state

    try:
        immediate = interpret_ack(ack)
    except ValidationError as e:
        logger.error(f"Invalid LinkedIn provider response for {identifier}: {e}")
        await asyncio.to_thread(ledger.clear_pending, identifier)
        state["status"] = "error"
        state.setdefault("errors", []).append(f"provider_response_invalid: {e}")
        return state

    if immediate is None:
        state["status"] = "pending"
        return state

    await asyncio.to_thread(ledger.clear_pending, identifier)
    state["result"] = immediate
    state["status"] = "resolved" if immediate.success else "not_found"
    if not immediate.success:
        state.setdefault("errors", []).append(immediate.error)
    return state
