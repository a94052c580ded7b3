"""Requester side: ask for a LinkedIn enrichment and wait for the webhook result.

    python enrich.py enrich jane.doe@company.com
    python enrich.py status
"""
import argparse
import asyncio
import sys
import time

from dotenv import load_dotenv
from loguru import logger

from graph.workflow import enrich_contact
from tools.freckle import FreckleClient
from tools.hubspot import HubSpotClient
from tools.pending_ledger import PendingLedger, LedgerStorageError
from tools.result_client import RemoteResultSource
from tools.storage import storage_from_env

PROGRESS_MESSAGES = [
    "Searching LinkedIn...",
    "Processing request...",
    "Waiting for results...",
    "Still searching...",
    "Almost done...",
]

EXIT_CODES = {
    "resolved": 0,
    "not_found": 0,
    "timed_out": 2,
    "in_progress": 3,
}


def _print_progress(attempt: int) -> None:
    print(f"  {PROGRESS_MESSAGES[(attempt - 1) % len(PROGRESS_MESSAGES)]} (poll {attempt})")


async def run_enrichment(email: str, requester: str = "", sync_crm: bool = False, max_wait=None, interval=None) -> dict:
    ledger = PendingLedger(storage_from_env(), requester=requester or None)
    state = await enrich_contact(
        email,
        ledger=ledger,
        source=RemoteResultSource(),
        provider=FreckleClient(),
        crm=HubSpotClient() if sync_crm else None,
        poll={"max_wait": max_wait, "interval": interval, "on_attempt": _print_progress},
    )

    status = state.get("status")
    result = state.get("result")
    if status == "resolved" and result is not None and result.success and result.data:
        print(f"Found LinkedIn data for {result.data.name or 'contact'}")
        for key, value in result.data.model_dump().items():
            if value:
                print(f"  {key}: {value}")
    elif status == "resolved" and result is not None:
        print(f"No LinkedIn profile found: {result.error}")
    elif status == "timed_out":
        print("LinkedIn search is taking longer than expected. Please try again later.")
    else:
        print(f"Enrichment {status}: {'; '.join(state.get('errors') or [])}")
    return state


def show_status(requester: str = "") -> int:
    ledger = PendingLedger(storage_from_env(), requester=requester or None)
    try:
        entries = ledger.pending_entries()
    except LedgerStorageError as e:
        print(f"Could not read pending ledger: {e}")
        return 1

    if not entries:
        print("No pending LinkedIn requests")
        return 0
    now = time.time()
    for entry in entries:
        print(f"  {entry.identifier}  {entry.request_id}  waiting {now - entry.issued_at:.0f}s")
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LinkedIn enrichment requester")
    parser.add_argument("--requester", default="", help="Namespace for this requester's pending ledger")
    sub = parser.add_subparsers(dest="command")

    enrich = sub.add_parser("enrich", help="Request enrichment for an email and wait for the result")
    enrich.add_argument("email")
    enrich.add_argument("--max-wait", type=float, default=None, help="Wait budget in seconds (default 60)")
    enrich.add_argument("--interval", type=float, default=None, help="Seconds between polls (default 3)")
    enrich.add_argument("--sync-crm", action="store_true", default=False, help="Copy the profile onto the HubSpot contact")

    sub.add_parser("status", help="List requests still waiting for a result")

    return parser


if __name__ == "__main__":
    load_dotenv()
    logger.remove()
    logger.add(sys.stderr, level="WARNING")

    parser = _build_arg_parser()
    args = parser.parse_args()

    if args.command == "enrich":
        final = asyncio.run(run_enrichment(
            args.email,
            requester=args.requester,
            sync_crm=args.sync_crm,
            max_wait=args.max_wait,
            interval=args.interval,
        ))
        sys.exit(EXIT_CODES.get(final.get("status"), 1))

    elif args.command == "status":
        sys.exit(show_status(args.requester))

    else:
        parser.print_help()
        sys.exit(1)
