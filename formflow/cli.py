from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from formflow.api_caller import HttpxApiCaller
from formflow.logging_utils import configure_logging
from formflow.settings import AppSettings, load_settings
from formflow.workflow import (
    WORKFLOW_TEMPLATES,
    ExecutionResult,
    GraphValidationError,
    TriggerEvent,
    WorkflowEngine,
    load_workflow,
    render_issues,
    validate_workflow,
)


LOGGER = logging.getLogger(__name__)
TRIGGER_CHOICES = ("pageLoad", "fieldChange", "formSubmit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formflow",
        description="Validate and run form workflow automation graphs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Report structural and configuration issues.")
    validate_parser.add_argument("graph", type=Path, help="Path to a workflow JSON file.")
    validate_parser.add_argument("--json", action="store_true", help="Print issues as JSON.")

    run_parser = subparsers.add_parser("run", help="Execute a workflow against form values.")
    run_parser.add_argument("graph", type=Path, help="Path to a workflow JSON file.")
    run_parser.add_argument(
        "--values",
        default=None,
        help="Form values as inline JSON or a path to a JSON file.",
    )
    run_parser.add_argument("--event", choices=TRIGGER_CHOICES, default=None, help="Only start matching triggers.")
    run_parser.add_argument("--field", default=None, help="Changed field id for --event fieldChange.")
    run_parser.add_argument("--max-steps", type=int, default=None, help="Override the step budget.")
    run_parser.add_argument("--json", action="store_true", help="Print the execution result as JSON.")

    subparsers.add_parser("templates", help="List built-in starter workflows.")
    return parser


def main(argv: Sequence[str] | None = None, *, console: Console | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)
    console = console or Console(highlight=False)

    try:
        if args.command == "validate":
            return _cmd_validate(args, console)
        if args.command == "run":
            return _cmd_run(args, settings, console)
        if args.command == "templates":
            return _cmd_templates(console)
    except GraphValidationError as exc:
        console.print(str(exc), markup=False)
        return 2
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"Failed to read input: {exc}", markup=False)
        return 2

    parser.error(f"Unknown command '{args.command}'.")
    return 2


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)


def _cmd_validate(args: argparse.Namespace, console: Console) -> int:
    workflow = load_workflow(args.graph.read_text(encoding="utf-8"))
    result = validate_workflow(workflow)

    if args.json:
        console.print_json(data=result.to_dict())
    elif result.issues:
        console.print(render_issues(result.issues), markup=False)
    else:
        console.print("No issues found.")
    return 0 if result.valid else 1


def _cmd_run(args: argparse.Namespace, settings: AppSettings, console: Console) -> int:
    workflow = load_workflow(args.graph.read_text(encoding="utf-8"))
    values = _read_values(args.values)
    event = TriggerEvent(type=args.event, field_id=args.field) if args.event else None

    engine_options: dict[str, Any] = {}
    if args.max_steps is not None:
        engine_options["max_steps"] = args.max_steps
    engine = WorkflowEngine.from_settings(settings, **engine_options)
    LOGGER.debug("Running workflow '%s' with %d value(s).", workflow.id, len(values))

    caller = HttpxApiCaller.from_settings(settings)
    result = asyncio.run(engine.arun(graph=workflow, values=values, api_caller=caller, event=event))

    if args.json:
        console.print_json(data=result.to_dict())
    else:
        _print_result(result, console)
    return 0 if result.succeeded else 1


def _cmd_templates(console: Console) -> int:
    table = Table(title="Workflow templates")
    table.add_column("id")
    table.add_column("name")
    table.add_column("description")
    for template in WORKFLOW_TEMPLATES:
        table.add_row(template.id, template.name, template.description)
    console.print(table)
    return 0


def _read_values(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    candidate = Path(raw)
    text = candidate.read_text(encoding="utf-8") if candidate.is_file() else raw
    values = json.loads(text)
    if not isinstance(values, dict):
        raise json.JSONDecodeError("Form values must be a JSON object", text, 0)
    return values


def _print_result(result: ExecutionResult, console: Console) -> None:
    if result.rejected_issues:
        console.print("Workflow was not executed because validation failed:")
        console.print(render_issues(result.rejected_issues), markup=False)
        return

    table = Table(title=f"Workflow {result.workflow_id or '(unnamed)'}")
    table.add_column("#", justify="right")
    table.add_column("node")
    table.add_column("type")
    table.add_column("status")
    table.add_column("detail")
    for index, event in enumerate(result.events, start=1):
        status = "fatal" if event.fatal else event.status
        if event.error:
            detail = event.error
        elif event.branch:
            detail = f"branch={event.branch}"
        else:
            detail = ""
        table.add_row(str(index), event.node_id, event.type or "-", status, detail)
    console.print(table)

    if result.field_updates:
        console.print("Field updates:")
        for field_id, value in result.field_updates.items():
            console.print(f"- {field_id}: {json.dumps(value, ensure_ascii=False, default=str)}", markup=False)
    if result.option_updates:
        console.print("Option updates:")
        for field_id, options in result.option_updates.items():
            console.print(f"- {field_id}: {len(options)} option(s)", markup=False)
    if result.redirect_url:
        target = " (new tab)" if result.redirect_new_tab else ""
        console.print(f"Redirect: {result.redirect_url}{target}", markup=False)
    if result.dialog:
        console.print(f"Dialog: {result.dialog.title} - {result.dialog.message}", markup=False)
