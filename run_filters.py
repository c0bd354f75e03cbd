#!/usr/bin/env python3
"""
CLI script for reconciling the search filter panel of an open listing page.

Attaches to an already running Chromium over CDP (the browser session and
navigation to the results page are managed elsewhere), then drives the
filter panel to the declared configuration.

Usage: python run_filters.py [--config environment.json] [--cdp-url http://localhost:9222]
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from uuid import uuid4

from dotenv import load_dotenv

load_dotenv()

from playwright.async_api import async_playwright

from shared.config import get_config
from shared.logging import bind_run_context, configure_logging, get_logger
from scraper.filters import (
    FILTER_CATALOG,
    FILTER_PANEL_SELECTOR,
    CdpRuntimeClient,
    FilterReconciler,
    ReconcilerSettings,
    StabilityDetector,
    StabilitySettings,
    load_declared_configuration,
    read_configuration_document,
    wait_for_expression,
)


async def main() -> None:
    """Main CLI entry point."""
    config = get_config()
    parser = argparse.ArgumentParser(description="Reconcile the listing filter panel")
    parser.add_argument("--config", default=config.filters_config_path, help="Declared filters JSON document")
    parser.add_argument("--cdp-url", default=config.cdp_endpoint_url, help="DevTools endpoint of the browser")
    parser.add_argument("--page-index", type=int, default=0, help="Index of the tab showing the results page")
    args = parser.parse_args()

    configure_logging(
        level=logging.getLevelName(config.log_level.upper()),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )
    logger = get_logger(__name__)

    declared = load_declared_configuration(read_configuration_document(args.config), FILTER_CATALOG)

    async with async_playwright() as p:
        browser = await p.chromium.connect_over_cdp(args.cdp_url)
        pages = [page for context in browser.contexts for page in context.pages]
        if args.page_index >= len(pages):
            logger.error("page_not_found", page_index=args.page_index, page_count=len(pages))
            print(f"ERROR: no page at index {args.page_index} ({len(pages)} open).", file=sys.stderr)
            sys.exit(1)
        page = pages[args.page_index]
        bind_run_context(run_id=str(uuid4()), page_url=page.url, cdp_endpoint=args.cdp_url)

        client = await CdpRuntimeClient.attach(page)
        await wait_for_expression(
            client,
            f"Boolean(document.querySelector({json.dumps(FILTER_PANEL_SELECTOR)}))",
            config.filter_panel_timeout_ms,
            config.filter_panel_poll_interval_ms,
        )

        reconciler = FilterReconciler(
            client,
            FILTER_CATALOG,
            declared,
            detector=StabilityDetector(client, StabilitySettings.from_config(config)),
            settings=ReconcilerSettings.from_config(config),
        )
        result = await reconciler.run()

    print(json.dumps(asdict(result), indent=2, ensure_ascii=False))

    if not result.converged:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
