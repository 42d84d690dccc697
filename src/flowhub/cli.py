"""
CLI tool for flows and nodes.

Provides terminal access to:
- Running a flow file locally
- Listing node types and proxy functions
- Resolving the input fields of a node for given values
"""

import sys
import json
import argparse
from pathlib import Path
from typing import Any

import yaml

from node_registry import get_global_registry
from workflow_runtime import FlowExecutor

from flowhub.config import get_settings
from flowhub.observability import setup_logging
from flowhub.proxies import get_proxy_invoker, get_proxy_registry


def load_flow_file(path: str) -> dict[str, Any]:
    """Load a flow definition from a JSON or YAML file."""
    file_path = Path(path)
    content = file_path.read_text()
    if file_path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(content)
    else:
        data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: flow file must contain an object with nodes and edges")
    return data


def parse_pairs(pairs: list[str] | None) -> dict[str, Any]:
    """
    Parse KEY=VALUE pairs. Values that parse as JSON are decoded,
    anything else stays a string.
    """
    values: dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected KEY=VALUE, got: {pair}")
        key, raw = pair.split("=", 1)
        try:
            values[key] = json.loads(raw)
        except ValueError:
            values[key] = raw
    return values


def cmd_run(args: argparse.Namespace) -> int:
    """Run a flow file in-process and print the webhook response."""
    flow = load_flow_file(args.file)
    body = json.loads(args.body) if args.body else {}

    settings = get_settings()
    executor = FlowExecutor(
        proxy_invoker=get_proxy_invoker(settings),
        max_steps=settings.max_flow_steps,
    )
    result = executor.execute(
        flow,
        request={"method": args.method.upper(), "body": body, "query": parse_pairs(args.query)},
        env=parse_pairs(args.env),
    )

    output: dict[str, Any] = {
        "executionId": result.execution_id,
        "status": result.status.value,
        "statusCode": result.status_code,
        "executionTime": result.execution_time_ms,
        "response": result.response_body(),
    }
    if args.logs:
        output["logs"] = result.logs_as_dicts()

    print(json.dumps(output, indent=2, default=str))
    return 0 if result.is_success else 1


def cmd_nodes(args: argparse.Namespace) -> int:
    """List registered node types."""
    registry = get_global_registry()
    definitions = sorted(registry.list_nodes(), key=lambda d: d.node_type)

    if args.json:
        print(json.dumps([d.model_dump() for d in definitions], indent=2))
        return 0

    for definition in definitions:
        print(f"{definition.node_type:<24} {definition.category:<12} {definition.display_name}")
    return 0


def cmd_proxies(args: argparse.Namespace) -> int:
    """List built-in proxy functions."""
    for name in get_proxy_registry().names():
        print(name)
    return 0


def cmd_inputs(args: argparse.Namespace) -> int:
    """Print the input fields of a node for the given current values."""
    node = get_global_registry().create(args.node_type)
    if node is None:
        print(f"Unknown node type: {args.node_type}", file=sys.stderr)
        return 1

    fields = node.get_input_fields(parse_pairs(args.set))
    print(json.dumps([f.model_dump(by_alias=True, exclude_none=True) for f in fields], indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowhub",
        description="Run flows and inspect nodes",
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # run command
    run_parser = subparsers.add_parser('run', help='Run a flow file locally')
    run_parser.add_argument('file', help='Flow definition (.json, .yaml or .yml)')
    run_parser.add_argument('--body', help='Request body as JSON')
    run_parser.add_argument('--method', default='POST', help='Request method')
    run_parser.add_argument('--query', action='append', metavar='K=V', help='Query parameter (repeatable)')
    run_parser.add_argument('--env', action='append', metavar='K=V', help='Flow variable (repeatable)')
    run_parser.add_argument('--logs', action='store_true', help='Include the execution log')

    # nodes command
    nodes_parser = subparsers.add_parser('nodes', help='List node types')
    nodes_parser.add_argument('--json', action='store_true', help='Print full definitions as JSON')

    # proxies command
    subparsers.add_parser('proxies', help='List proxy functions')

    # inputs command
    inputs_parser = subparsers.add_parser('inputs', help='Resolve input fields of a node')
    inputs_parser.add_argument('node_type', help='Node type')
    inputs_parser.add_argument('--set', action='append', metavar='K=V', help='Current input value (repeatable)')

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(sys.stderr)

    commands = {
        'run': cmd_run,
        'nodes': cmd_nodes,
        'proxies': cmd_proxies,
        'inputs': cmd_inputs,
    }
    try:
        return commands[args.command](args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
