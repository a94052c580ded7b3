from langchain_core.runnables import RunnableConfig
from graph.context import dependency
from graph.state import EnrichmentState
from tools.poller import PollStatus, wait_for_result

async def await_result(state: EnrichmentState, config: RunnableConfig) -> EnrichmentState:
    """Wait for the webhook result within the poll budget."""
    poll_options = dependency(config, "poll", {})
    outcome = await wait_for_result(
        state["identifier"],
        dependency(config, "source"),
        ledger=dependency(config, "ledger"),
        **poll_options,
    )

    state["poll_attempts"] = outcome.attempts
    if outcome.status == PollStatus.RESOLVED:
        state["result"] = outcome.result
        state["status"] = "resolved"
    elif outcome.status == PollStatus.TIMED_OUT:
        state["status"] = "timed_out"
        state.setdefault("errors", []).append("LinkedIn search timed out. Please try again later.")
    else:
        state["status"] = "error"
        state.setdefault("errors", []).append(f"Failed to check for LinkedIn results: {outcome.error}")
    return state
