"""CLI interface for syncing FlutterFlow custom code."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import FlutterFlowClient
from .config import config
from .exceptions import FFSyncError
from .layout import METADATA_PATH
from .models import FileInfo, ProjectMetadata
from .output import OutputFormatter
from .sync import ChangeDetector, SyncPackager, load_change_detector, watch_project

logger = logging.getLogger(__name__)

project_path_argument = click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)


def _status_rows(detector: ChangeDetector) -> list[dict[str, Any]]:
    rows = []
    for key, record in detector.store.items():
        if record.is_deleted:
            state = "deleted"
        elif record.original_checksum is None:
            state = "added"
        elif record.is_modified:
            state = "modified"
        elif record.is_renamed:
            state = "renamed"
        else:
            continue
        rows.append(
            {
                "file": key,
                "type": record.type.name.lower(),
                "state": state,
                "identifier": (
                    f"{record.old_identifier_name} -> {record.new_identifier_name}"
                    if record.is_renamed
                    else record.new_identifier_name
                ),
            }
        )
    return rows


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option()
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """ffsync - Track and push FlutterFlow custom code changes."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("ffsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--api-key",
    "-k",
    prompt="Enter your FlutterFlow API key",
    hide_input=True,
    help="FlutterFlow API key",
)
@click.pass_context
def init(ctx: Any, api_key: str) -> None:
    """Store a FlutterFlow API key.

    The key is written to ~/.config/ffsync/config.json.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        config.save_api_key(api_key)
    except OSError as e:
        out.error(f"Initialization failed: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command()
@project_path_argument
@click.pass_context
def status(ctx: Any, path: Path) -> None:
    """Show files changed since the last sync.

    PATH: Root of the FlutterFlow project (default: current directory)
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        detector = load_change_detector(path)
    except FFSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    rows = _status_rows(detector)
    if out.json_output:
        out.output_json(rows)
        return
    if not rows:
        out.success("Everything is in sync")
        return
    out.output_table(
        rows,
        ["file", "type", "state", "identifier"],
        {"file": "File", "type": "Type", "state": "State", "identifier": "Identifier"},
    )


@main.command()
@project_path_argument
@click.pass_context
def functions(ctx: Any, path: Path) -> None:
    """Show custom functions renamed, deleted or added since the last sync.

    PATH: Root of the FlutterFlow project (default: current directory)
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        change = load_change_detector(path).function_change()
    except FFSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(change.to_dict())
        return
    if change.is_empty:
        out.success("No custom function changes")
        return
    for renamed in change.functions_to_rename:
        out.print(f"renamed  {renamed.old_function_name} -> {renamed.new_function_name}")
    for name in change.functions_to_delete:
        out.print(f"deleted  {name}")
    for name in change.functions_to_add:
        out.print(f"added    {name}")


@main.command()
@project_path_argument
@click.option(
    "--commit/--no-commit",
    default=False,
    help="Mark the local state as synced after a clean push",
)
@click.option("--api-key", "-k", envvar="FFSYNC_API_KEY", help="FlutterFlow API key")
@click.option("--branch", "-b", default=None, help="Branch to push to")
@click.pass_context
def push(
    ctx: Any,
    path: Path,
    commit: bool,
    api_key: Optional[str],
    branch: Optional[str],
) -> None:
    """Push changed custom code to FlutterFlow.

    PATH: Root of the FlutterFlow project (default: current directory)
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        detector = load_change_detector(path)
        metadata = ProjectMetadata.from_file(detector.root.joinpath(*METADATA_PATH.parts))
        client = FlutterFlowClient(
            api_key=api_key,
            project_id=metadata.project_id,
            branch_name=branch if branch is not None else metadata.branch_name,
        )
    except FFSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    packager = SyncPackager(client, detector)
    try:
        out.info(f"Pushing to {client.project_id}...")
        result = packager.push()
    except OSError as e:
        out.error(f"Cannot read project files: {e}")
        ctx.exit(1)
    finally:
        client.close()

    if result.error is not None:
        out.error(str(result.error))
        ctx.exit(1)

    warnings = {name: items for name, items in result.file_warnings.items() if items}
    if out.json_output:
        out.output_json({"committed": commit and not warnings, "warnings": warnings})
    else:
        for name, items in warnings.items():
            for item in items:
                message = item.get("message", item) if isinstance(item, dict) else item
                out.warning(f"{name}: {message}")

    if warnings:
        out.warning("Push finished with warnings, local state not committed")
        ctx.exit(1)
    if commit:
        packager.commit()
        out.success("✓ Pushed and committed")
    else:
        out.success("✓ Pushed")


@main.command()
@project_path_argument
@click.pass_context
def commit(ctx: Any, path: Path) -> None:
    """Mark the current local state as synced.

    PATH: Root of the FlutterFlow project (default: current directory)
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        detector = load_change_detector(path)
        detector.commit()
    except FFSyncError as e:
        out.error(str(e))
        ctx.exit(1)
    out.success(f"✓ Committed {len(detector.store)} file(s)")


@main.command()
@project_path_argument
@click.pass_context
def watch(ctx: Any, path: Path) -> None:
    """Track changes to custom code files until interrupted.

    PATH: Root of the FlutterFlow project (default: current directory)
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        detector = load_change_detector(path)
    except FFSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    def report(file_path: Path, record: FileInfo) -> None:
        state = "deleted" if record.is_deleted else "changed"
        out.info(f"{file_path.name} {state}")

    detector.store.on_file_change(report)
    out.info(f"Watching {detector.root} (press Ctrl+C to stop)")
    watch_project(detector.root, detector)


if __name__ == "__main__":
    main()
