"""
Command-line entry point: load trace files, optionally detect anomalies, and print matching traces.

Example:
    otel-trace-explorer traces/ --anomalies --query "HasError AND Duration>500ms"
"""

from typing import List, Optional, Sequence
import argparse
import asyncio
import logging
import os
import sys

from pydantic import ValidationError

from .config import ExplorerConfig
from .exceptions import NothingToDoError
from .explorer import TraceExplorer
from .models import Trace
from .parsers import TraceParserFactory

logger = logging.getLogger(__name__)


def expand_paths(paths: Sequence[str], factory: TraceParserFactory) -> List[str]:
    """
    Expand directories to the supported trace files they contain.

    Raises:
        NothingToDoError: If no supported file is found
    """
    expanded = []
    for path in paths:
        if os.path.isdir(path):
            for name in sorted(os.listdir(path)):
                candidate = os.path.join(path, name)
                if os.path.isfile(candidate) and factory.is_supported(candidate):
                    expanded.append(candidate)
        elif factory.is_supported(path):
            expanded.append(path)
        else:
            logger.warning(f"Skipping unsupported file: {path}")

    if not expanded:
        raise NothingToDoError("No supported trace files (.log, .jsonl) were given")
    return expanded


def format_trace(trace: Trace, tree: bool = False) -> str:
    lines = [
        f"{trace.trace_id}  {trace.status.value:<5}  {trace.total_duration_ms:10.1f}ms  "
        f"{trace.span_count:4d} spans  {trace.entry_point}"
    ]
    if tree:
        for depth, span in trace.iter_hierarchy():
            indent = "  " * (depth + 1)
            lines.append(f"{indent}{span.name} [{span.status.value}] {span.duration_ms:.1f}ms")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Explore OpenTelemetry trace files (.log / .jsonl)")
    parser.add_argument("paths", nargs="+", help="Trace files or directories containing them")
    parser.add_argument("--query", default="", help='Search query, e.g. "HasError AND Name:GET"')
    parser.add_argument("--anomalies", action="store_true", help="Run anomaly detection and list results")
    parser.add_argument("--confidence", type=float, default=None, help="Confidence level (default 0.95)")
    parser.add_argument("--min-samples", type=int, default=None, help="Minimum samples for detection (default 10)")
    parser.add_argument("--multiplier", type=float, default=None, help="Duration threshold multiplier (default 2.0)")
    parser.add_argument("--tree", action="store_true", help="Print the span hierarchy of each trace")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


async def run(args: argparse.Namespace, config: ExplorerConfig) -> int:
    explorer = TraceExplorer(config)
    try:
        paths = expand_paths(args.paths, explorer.trace_service.parser_factory)
    except NothingToDoError as e:
        logger.error(str(e))
        return 1

    try:
        await explorer.load_files(paths, detect=False)
        if args.anomalies:
            anomalies = await explorer.detect_anomalies()
            print(f"{len(anomalies)} anomalies in {len(explorer.anomalous_trace_ids)} traces")
            for anomaly in sorted(anomalies, key=lambda a: a.severity, reverse=True):
                print(f"  [{anomaly.anomaly_type.value}] {anomaly.severity:.2f} "
                      f"{anomaly.trace_id}/{anomaly.span_id}: {anomaly.description}")

        traces = explorer.search(args.query)
        print(f"{len(traces)} of {len(explorer.traces)} traces match")
        for trace in traces:
            print(format_trace(trace, tree=args.tree))
    finally:
        await explorer.close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = ExplorerConfig.from_env()
    if args.confidence is not None:
        config.confidence_level = args.confidence
    if args.min_samples is not None:
        config.min_samples_required = args.min_samples
    if args.multiplier is not None:
        config.duration_threshold_multiplier = args.multiplier

    try:
        config.anomaly_config()
    except ValidationError as e:
        error = e.errors()[0]
        parser.error(f"invalid {error['loc'][0]}: {error['msg']}")

    logging.basicConfig(
        level=logging.DEBUG if args.debug else getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
