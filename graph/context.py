from typing import Any, Optional
from langchain_core.runnables import RunnableConfig


def dependency(config: Optional[RunnableConfig], name: str, default: Any = None) -> Any:
    """Look up a collaborator (ledger, result source, provider...) passed in the run config."""
    configurable = (config or {}).get("configurable") or {}
    return configurable.get(name, default)
