"""Deadline - event research pipelines

Simple CLI for running an analysis or a delta update for one event.
"""

import argparse
import asyncio
import sys

from deadline.errors import DeadlineError
from deadline.pipeline.analysis import AnalysisPipeline
from deadline.pipeline.updates import DeltaUpdatePipeline
from deadline.services.logger import configure_logging
from deadline.services.supabase import store


async def run_analysis(event_id: str):
    """Run the full chronological analysis for an event."""
    print(f"Analyzing event: {event_id}")
    print("-" * 50)

    result = await AnalysisPipeline(store()).run(event_id)
    summary = result.summary(event_id)

    print(f"\n[*] {summary['event_title']}")
    print(f"   Query: {summary['query_used']}")
    print(f"   Articles scraped: {summary['articles_scraped']}")
    print(f"   Images found: {summary['images_found']}")
    print("\n[*] Chronological breakdown:")
    for period, count in summary["chronological_breakdown"].items():
        print(f"  - {period}: {count}")
    analysis = summary["analysis_summary"]
    print(f"\n{'='*50}")
    print(f"HEADLINE: {analysis['headline']}")
    print(f"LOCATION: {analysis['location']}")
    print(f"Timeline entries: {analysis['timeline_events']}")
    print(f"Key points: {analysis['key_points_count']}")


async def run_updates(event_id: int):
    """Look for developments since the event was last updated."""
    print(f"Checking updates for event: {event_id}")
    print("-" * 50)

    result = await DeltaUpdatePipeline(store()).run(event_id)

    print(f"\n[*] {result['message']}")
    for update in result.get("updates", []):
        print(f"  [{update['update_date']}] {update['title']}")
    debug = result.get("debug", {})
    print(f"\n   Search results: {debug.get('search_results_count')}")
    print(f"   New results: {debug.get('filtered_results_count')}")
    print(f"   Runtime: {debug.get('total_processing_time')}ms")


def main():
    parser = argparse.ArgumentParser(description="Deadline event research")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Run the full analysis for an event")
    analyze.add_argument("event_id", help="Event id")

    updates = subparsers.add_parser("updates", help="Find new updates for an event")
    updates.add_argument("event_id", type=int, help="Event id")

    args = parser.parse_args()
    configure_logging()

    try:
        if args.command == "analyze":
            asyncio.run(run_analysis(args.event_id))
        else:
            asyncio.run(run_updates(args.event_id))
    except DeadlineError as e:
        print(f"\n[!] Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
