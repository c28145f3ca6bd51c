#!/usr/bin/env python3
"""스캔 CLI — Scan API의 SSE 스트림을 소비하고 지역/감성 리포트 출력.

Usage:
    uv run python scripts/run_scan.py
    uv run python scripts/run_scan.py --url http://localhost:8000 --summary --watchlist AAPL,NVDA

Ctrl-C: 진행 중인 스캔 취소 (지금까지 도착한 결과로 리포트).
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from impact_scanner.client import ScanClient
from impact_scanner.domain.enums import ScanPhase
from impact_scanner.domain.scan import (
    ScanState,
    group_by_region,
    region_scores,
    sector_breakdown,
    sentiment_counts,
    sentiment_score,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="impact-scanner 뉴스 스캔")
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Scan API 주소 (기본: http://localhost:8000)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="완료 후 내러티브 요약 요청",
    )
    parser.add_argument(
        "--watchlist",
        default="",
        help="요약에 포함할 티커 (쉼표 구분)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="상세 로깅",
    )
    return parser.parse_args()


def print_progress(state: ScanState) -> None:
    if state.phase == ScanPhase.ANALYZING and state.total:
        print(f"\r  Analyzing {state.analyzed_count}/{state.total} ({state.progress_pct:.0f}%)", end="", flush=True)
    elif state.phase == ScanPhase.FETCHING:
        print(f"  {state.message}")


def print_report(state: ScanState) -> None:
    """콘솔 리포트 출력."""
    sep = "=" * 60
    articles = state.analyzed

    print(f"\n\n{sep}")
    print(f"  SCAN REPORT ({state.phase.value})")
    print(sep)

    counts = sentiment_counts(articles)
    print(f"\n{'Articles':<25} {len(articles):>10d}")
    print(f"{'Sentiment Score':<25} {sentiment_score(articles):>10.1f}")
    for sentiment, n in counts.most_common():
        print(f"{'  ' + sentiment.value:<25} {n:>10d}")

    print(f"\n{'-' * 60}")
    print("  BY REGION")
    print(f"{'-' * 60}")
    grouped = group_by_region(articles)
    for region, score in region_scores(articles).items():
        print(f"  {region.value:<23} {len(grouped.get(region, [])):>6d} {score:>9.1f}")

    sectors = sector_breakdown(articles)
    if sectors:
        print(f"\n{'-' * 60}")
        print("  BY SECTOR")
        print(f"{'-' * 60}")
        print(f"  {'Sector':<23} {'Bull':>6} {'Bear':>6}")
        for name, tally in sorted(sectors.items(), key=lambda x: x[1].bullish + x[1].bearish, reverse=True):
            print(f"  {name:<23} {tally.bullish:>6d} {tally.bearish:>6d}")

    if state.error:
        print(f"\nERROR: {state.error}")
    print(sep)


async def run(args: argparse.Namespace) -> int:
    watchlist = [t.strip().upper() for t in args.watchlist.split(",") if t.strip()]

    async with ScanClient(args.url) as client:
        loop = asyncio.get_running_loop()
        # Windows 등 add_signal_handler 미지원 환경은 KeyboardInterrupt로 종료
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, client.cancel)

        print(f"\nScanning via {args.url}")
        state = await client.run(on_update=print_progress)
        print_report(state)

        if args.summary and state.phase == ScanPhase.COMPLETE and state.analyzed:
            print("\nGenerating summary...\n")
            print(await client.request_summary(state, watchlist))

    return 0 if state.phase in (ScanPhase.COMPLETE, ScanPhase.CANCELLED) else 1


def main() -> None:
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
