from typing import Any, Dict, Optional
from langgraph.graph import StateGraph, START, END
from loguru import logger

from graph.state import EnrichmentState
from graph.nodes.capture import capture
from graph.nodes.lookup import lookup
from graph.nodes.request import request
from graph.nodes.await_result import await_result
from graph.nodes.sync_crm import sync_crm

def build_workflow():
    """Build the requester-side enrichment workflow."""
    workflow = StateGraph(EnrichmentState)

    # Add nodes
    workflow.add_node("capture", capture)
    workflow.add_node("lookup", lookup)
    workflow.add_node("request", request)
    workflow.add_node("await_result", await_result)
    workflow.add_node("sync_crm", sync_crm)

    workflow.add_edge(START, "capture")

    def after_capture(state: EnrichmentState) -> str:
        return "end" if state.get("status") == "invalid" else "lookup"

    def after_lookup(state: EnrichmentState) -> str:
        status = state.get("status")
        if status == "resolved":
            return "sync_crm"
        if status in ("in_progress", "error"):
            return "end"
        return "request"

    def after_request(state: EnrichmentState) -> str:
        status = state.get("status")
        if status == "pending":
            return "await_result"
        if status == "resolved":
            return "sync_crm"
        logger.info(f"Enrichment for {state.get('identifier')} ended at request stage: {status}")
        return "end"

    def after_wait(state: EnrichmentState) -> str:
        return "sync_crm" if state.get("status") == "resolved" else "end"

    workflow.add_conditional_edges("capture", after_capture, {"lookup": "lookup", "end": END})
    workflow.add_conditional_edges(
        "lookup",
        after_lookup,
        {"sync_crm": "sync_crm", "request": "request", "end": END}
    )
    workflow.add_conditional_edges(
        "request",
        after_request,
        {"await_result": "await_result", "sync_crm": "sync_crm", "end": END}
    )
    workflow.add_conditional_edges("await_result", after_wait, {"sync_crm": "sync_crm", "end": END})
    workflow.add_edge("sync_crm", END)

    return workflow.compile()

app_graph = build_workflow()

async def enrich_contact(
    email: str,
    ledger,
    source,
    provider,
    crm=None,
    poll: Optional[Dict[str, Any]] = None,
) -> EnrichmentState:
    """
    Run one enrichment from request to resolution or timeout.

    Args:
        email: Contact email
        ledger: Pending ledger owned by this requester
        source: Where results are polled from (local cache or remote service)
        provider: Client that fires the outbound request
        crm: Optional CRM client; resolved profiles are synced onto it
        poll: Keyword overrides for the poll loop (max_wait, interval, sleep, clock, on_attempt)

    Returns:
        Final workflow state; ``status`` tells the outcome
    """
    initial_state = {"email": email, "errors": []}
    config = {
        "configurable": {
            "ledger": ledger,
            "source": source,
            "provider": provider,
            "crm": crm,
            "poll": poll or {},
        }
    }
    result = await app_graph.ainvoke(initial_state, config=config)
    logger.info(f"Enrichment for {result.get('identifier')} finished: {result.get('status')}")
    return result
