from langchain_core.runnables import RunnableConfig
from graph.context import dependency
from graph.state import EnrichmentState
from loguru import logger

async def sync_crm(state: EnrichmentState, config: RunnableConfig) -> EnrichmentState:
    """Copy a successful profile onto the CRM contact. Never changes the workflow status."""
    crm = dependency(config, "crm")
    result = state.get("result")
    if crm is None or result is None or not result.success or result.data is None:
        return state

    try:
        record = await crm.sync_profile(state["identifier"], result.data)
    except Exception as e:
        error_msg = f"CRM sync failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        return state

    state["crm_record_id"] = record.get("id") if record else None
    if state["crm_record_id"]:
        logger.info(f"CRM record synced: {state['crm_record_id']}")
    else:
        logger.warning("CRM record sync failed")
        state.setdefault("errors", []).append("crm_sync_failed")
    return state
