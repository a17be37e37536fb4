import argparse
from contextlib import contextmanager
import json
import logging
from pathlib import Path
import sys
from typing import Iterator, List, Optional, Sequence, TextIO

from .config import USER_CONFIG_PATH, Config, ConfigError, load_config
from .depwalk import version as depwalk_version
from .graphs import GraphFormatError
from .loader import GraphDocument
from .logger import setup_logger
from .sources import SourceError, source_by_name, sources
from .traversal import CycleError, depth_first_order, topological_order

logger = logging.getLogger(__name__)

MODES = ("dfs", "topo", "direct")
OUTPUT_FORMATS = ("list", "json", "dot")


@contextmanager
def no_stdout() -> Iterator[TextIO]:
    """A context manager that redirects STDOUT to STDERR"""
    saved_stdout = sys.stdout
    sys.stdout = sys.stderr
    try:
        yield saved_stdout
    finally:
        sys.stdout = saved_stdout


def order_packages(document: GraphDocument, start: str, mode: str, strict: bool = False) -> List[str]:
    if mode == "dfs":
        return depth_first_order(document.graph, start)
    elif mode == "topo":
        return topological_order(document.graph, start, strict=strict)
    elif mode == "direct":
        return [dep.package for dep in document.direct_dependencies(start)]
    raise ValueError(f"Unknown traversal mode: {mode}")


def render(document: GraphDocument, start: str, mode: str, order: Sequence[str], output_format: str) -> str:
    if output_format == "dot":
        return document.graph.to_dot(start, order=None if mode == "direct" else order).source
    elif output_format == "json":
        obj = {"package": start, "mode": mode, "order": list(order)}
        if mode == "direct":
            direct = document.direct_dependencies(start)
            obj["version"] = document.package_version(start)
            obj["dependencies"] = {dep.package: dep.version_string for dep in direct}
            obj["constraints"] = {dep.package: dep.constraint for dep in direct}
        return json.dumps(obj, indent=4) + "\n"
    elif output_format == "list":
        if mode == "direct":
            lines = [f"- {dep.package}: {dep.version_string}" for dep in document.direct_dependencies(start)]
        else:
            lines = list(order)
        return "".join(f"{line}\n" for line in lines)
    raise ValueError(f"Unknown output format: {output_format}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    if argv is None:
        argv = sys.argv

    parser = argparse.ArgumentParser(description="orders and traverses a package's dependency graph")

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="path to the JSON configuration file with `package_name`, `repo_url`, and `repo_mode` "
        f"(default is ./config.json, falling back to {USER_CONFIG_PATH!s})",
    )
    parser.add_argument(
        "--start",
        "-s",
        type=str,
        default=None,
        help="package to start from, overriding `package_name` from the configuration",
    )
    parser.add_argument(
        "--mode",
        "-m",
        choices=MODES,
        default="topo",
        help="`dfs` lists every reachable package in depth-first order, `topo` lists them in installation "
        "order (dependencies first), and `direct` lists only the direct dependencies (default is topo)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="with `--mode topo`, fail if the dependency graph contains a cycle instead of silently "
        "skipping the package that closes it",
    )
    parser.add_argument("--list", "-l", action="store_true", help="list available graph sources")
    parser.add_argument(
        "--output-format",
        "-f",
        choices=OUTPUT_FORMATS,
        default="list",
        help="how the output should be formatted (default is one package per line)",
    )
    parser.add_argument(
        "--output-file",
        "-o",
        type=str,
        default=None,
        help="path to the output file; default is to " "write output to STDOUT",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="force overwriting the output file even if it already " "exists",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="warning",
        help="log level (default is warning)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="store_true",
        help="print depwalk's version and exit",
    )

    args = parser.parse_args(argv[1:])

    setup_logger(args.log_level)

    if args.version:
        sys.stderr.write("depwalk version ")
        sys.stderr.flush()
        sys.stdout.write(depwalk_version())
        sys.stdout.flush()
        sys.stderr.write("\n")
        return 0

    if args.list:
        sys.stdout.flush()
        sys.stderr.write("Available graph sources:\n")
        sys.stderr.flush()
        for name, source in sorted((s.name, s) for s in sources()):
            sys.stdout.write(name + " " * (12 - len(name)))
            sys.stdout.flush()
            available = source.is_available()
            if not available:
                sys.stderr.write(f"\tnot available: {available.reason}")
            else:
                sys.stderr.write(f"\t{source.description}")
            sys.stderr.flush()
            sys.stdout.write("\n")
            sys.stdout.flush()
        return 0

    if args.strict and args.mode != "topo":
        logger.warning(f"--strict has no effect with --mode {args.mode}")

    try:
        config: Config = load_config(args.config)
        start = args.start if args.start else config.package_name
        source = source_by_name(config.repo_mode)
        document = source.fetch(config.repo_url, config.package_name)
        order = order_packages(document, start, args.mode, strict=args.strict)
    except (ConfigError, SourceError, GraphFormatError, CycleError) as e:
        sys.stderr.write(f"{e!s}\n")
        return 1

    if args.mode == "direct" and not order:
        sys.stderr.write(f"Package {start} has no direct dependencies.\n")

    output_file = None
    try:
        with no_stdout() as real_stdout:
            if args.output_file is None or args.output_file == "-":
                output_file = real_stdout
            elif not args.force and Path(args.output_file).exists():
                sys.stderr.write(
                    f"{args.output_file} already exists!\nRe-run with `--force` to overwrite the file.\n"
                )
                return 1
            else:
                output_file = open(args.output_file, "w")
            output_file.write(render(document, start, args.mode, order, args.output_format))
    finally:
        if output_file is not None and output_file is not sys.stdout:
            sys.stderr.write(f"Output saved to {output_file.name}\n")
            output_file.close()

    return 0
