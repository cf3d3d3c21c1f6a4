#!/usr/bin/env python3
"""
rpc-bench runner

Wires configuration, transport, selector, executor, aggregator and
scheduler together for one comparative load run, then prints the report.

Configuration is read from RPC_BENCH_* environment variables, e.g.

    RPC_BENCH_RATE=10 RPC_BENCH_DURATION_S=30 python -m rpc_bench
"""

import asyncio
import random
import sys
from typing import List, Optional, Tuple

import structlog
from prometheus_client import start_http_server

from .catalog import MethodSpec, method_names, sui_catalog
from .clock import Clock
from .config import BenchConfig, ConfigurationError
from .executor import RequestExecutor
from .logging import configure_logging
from .metrics import MetricsAggregator
from .rendering import render_json, render_text
from .report import Report, generate
from .scheduler import RateScheduler, RunSummary
from .selector import TargetSelector
from .transport import AiohttpTransport, Transport

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


async def run_benchmark(config: BenchConfig,
                        catalog: Optional[List[MethodSpec]] = None,
                        transport: Optional[Transport] = None,
                        clock: Optional[Clock] = None,
                        rng: Optional[random.Random] = None) -> Tuple[Report, RunSummary]:
    """
    Execute one comparative run.

    Args:
        config: Validated run configuration
        catalog: Methods to cycle through (defaults to the Sui catalog)
        transport: HTTP transport; an AiohttpTransport is opened when omitted
        clock: Clock used for pacing
        rng: Random source for baseline selection

    Returns:
        The report and the scheduler's run summary
    """
    config.validate()
    catalog = catalog if catalog is not None else sui_catalog()

    selector = TargetSelector(config.candidate, config.baselines, catalog, rng=rng)
    aggregator = MetricsAggregator()

    if transport is None:
        async with AiohttpTransport(timeout_s=config.request_timeout_s,
                                    max_connections=config.max_in_flight) as http:
            summary = await _run(config, selector, RequestExecutor(http), aggregator, clock)
    else:
        summary = await _run(config, selector, RequestExecutor(transport), aggregator, clock)

    report = generate(aggregator.snapshot(), method_names(catalog), aggregator.counters())
    return report, summary


async def _run(config: BenchConfig, selector: TargetSelector, executor: RequestExecutor,
               aggregator: MetricsAggregator, clock: Optional[Clock]) -> RunSummary:
    scheduler = RateScheduler.from_config(config, selector, executor, aggregator, clock=clock)
    return await scheduler.run()


def main() -> int:
    try:
        config = BenchConfig.from_env()
        configure_logging(config.log_level, json_output=config.log_format == "json")
        config.validate()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Invalid configuration", error=str(e))
        return EXIT_CONFIG_ERROR

    if config.metrics_port:
        start_http_server(config.metrics_port)
        logger.info("Prometheus metrics exposed", port=config.metrics_port)

    logger.info("rpc-bench starting",
                candidate=config.candidate_url,
                baselines=config.baseline_urls,
                rate=config.rate,
                duration_s=config.duration_s)

    try:
        report, _ = asyncio.run(run_benchmark(config))
    except KeyboardInterrupt:
        logger.warning("Run interrupted")
        return EXIT_INTERRUPTED

    if config.report_format == "json":
        print(render_json(report))
    else:
        print(render_text(report, candidate_label=config.candidate_label))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
