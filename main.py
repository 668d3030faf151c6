#!/usr/bin/env python3
"""
Procurement Workflow — CLI entry point.

Usage examples:
  python main.py check                              # Verify master data files load
  python main.py run script.json                    # Replay a script of PO events
  python main.py run script.json --stop-on-error    # Abort on the first failing step
  python main.py -v run script.json                 # Debug logging

A script is a JSON list of steps.  Each step names an action and the PO it
applies to, either by id or by the "ref" given to it when it was created:

  [
    {"action": "create", "ref": "po1", "supplier_id": "SUP001",
     "items": [{"material_id": "RM001", "quantity": 500, "rate": 45.5}]},
    {"action": "submit", "po": "po1"},
    {"action": "approve", "po": "po1", "approved_by": "Jane Smith"},
    {"action": "send", "po": "po1"},
    {"action": "acknowledge", "po": "po1"},
    {"action": "record_delivery", "po": "po1", "item_id": "POI001",
     "qty": 300, "quality_accepted": true, "grn_number": "GRN-1"},
    {"action": "mark_delivered", "po": "po1"},
    {"action": "stock_out", "material_id": "RM001", "quantity": 250, "job_id": "JOB001"}
  ]
"""
import json
import logging
import sys
from pathlib import Path

import click

from config import Config
from models.stock_movement import MovementType
from workflow import InMemoryStore, PurchaseOrderWorkflow, StockService, seed_store
from workflow.reporting import dashboard_stats


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_workflow(config: Config) -> PurchaseOrderWorkflow:
    store = seed_store(InMemoryStore(), config.suppliers_csv, config.materials_csv)
    return PurchaseOrderWorkflow(store, config)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Procurement Workflow — purchase orders, goods receipt and raw material stock."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose)


# --------------------------------------------------------------------
# check command
# --------------------------------------------------------------------

@cli.command()
@click.option("--suppliers", default=None, type=click.Path(), help="Path to suppliers CSV")
@click.option("--materials", default=None, type=click.Path(), help="Path to raw materials CSV")
@click.pass_context
def check(ctx: click.Context, suppliers: str | None, materials: str | None) -> None:
    """Verify that the master data files exist and load."""
    config = Config()
    if suppliers:
        config.suppliers_csv = Path(suppliers)
    if materials:
        config.materials_csv = Path(materials)

    workflow = _build_workflow(config)
    counts = workflow.store.counts()

    click.echo("\n=== Master Data Check ===\n")
    ok = True
    for path, label, key in [
        (config.suppliers_csv, "suppliers.csv", "suppliers"),
        (config.materials_csv, "raw_materials.csv", "materials"),
    ]:
        exists = Path(path).exists()
        ok = ok and exists
        tick = "✓" if exists else "✗"
        count_str = f" ({counts[key]} loaded)" if exists else " (file not found)"
        click.echo(f"  {label:<28} {tick}{count_str}")
        if not exists:
            click.echo(f"     → Expected at: {path}")

    low = workflow.materials.low_stock()
    if low:
        click.echo()
        click.echo(f"  Materials at or below minimum stock ({len(low)}):")
        for m in low:
            click.echo(f"    {m.id:<8} {m.name:<36} {m.current_stock:g} / {m.minimum_stock:g}  [{m.status.value}]")
    click.echo()

    if not ok:
        sys.exit(1)


# --------------------------------------------------------------------
# run command
# --------------------------------------------------------------------

def _apply_step(workflow: PurchaseOrderWorkflow, step: dict, refs: dict[str, str]) -> str:
    """Apply one script step and return a one-line description of the outcome."""
    step = dict(step)
    action = step.pop("action", None)
    if not action:
        raise click.UsageError("Every step needs an 'action'")

    if action == "create":
        ref = step.pop("ref", None)
        po = workflow.create_purchase_order(step.pop("supplier_id"), step.pop("items"), **step)
        if ref:
            refs[ref] = po.id
        return f"created {po.id} ({len(po.items)} items, {po.currency} {po.total_amount:.2f})"

    if action in ("stock_in", "stock_out"):
        movement = StockService(workflow.store).record_manual_movement(
            material_id=step.pop("material_id"),
            movement_type=MovementType.IN if action == "stock_in" else MovementType.OUT,
            quantity=step.pop("quantity"),
            **step,
        )
        return f"{movement.id} {movement.type.value} {movement.quantity:g} of {movement.material_id}"

    po_key = step.pop("po", None)
    if not po_key:
        raise click.UsageError(f"Step '{action}' needs a 'po'")
    po_id = refs.get(po_key, po_key)

    if action == "edit":
        po = workflow.update_draft(po_id, **step)
    elif action == "mark_delivered":
        po = workflow.mark_delivered(po_id, **step)
    else:
        po = workflow.transition(po_id, action, **step)
    return f"{po.id} is {po.status.value}"


@cli.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.option("--suppliers", default=None, type=click.Path(), help="Path to suppliers CSV")
@click.option("--materials", default=None, type=click.Path(), help="Path to raw materials CSV")
@click.option("--stop-on-error", is_flag=True, help="Abort on the first step that fails")
@click.option("--json", "as_json", is_flag=True, help="Print the final state as JSON")
@click.pass_context
def run(
    ctx: click.Context,
    script: str,
    suppliers: str | None,
    materials: str | None,
    stop_on_error: bool,
    as_json: bool,
) -> None:
    """
    Replay SCRIPT (a JSON list of workflow steps) against the master data.

    \b
    Failing steps are reported and skipped; a failed step never leaves a
    partial change behind.  Exit status is 1 if any step failed.
    """
    config = Config()
    if suppliers:
        config.suppliers_csv = Path(suppliers)
    if materials:
        config.materials_csv = Path(materials)

    with open(script, encoding="utf-8") as f:
        steps = json.load(f)
    if not isinstance(steps, list):
        raise click.UsageError("Script must be a JSON list of steps")

    workflow = _build_workflow(config)
    refs: dict[str, str] = {}
    failures = 0

    for number, step in enumerate(steps, start=1):
        action = step.get("action", "?")
        try:
            outcome = _apply_step(workflow, step, refs)
        except (ValueError, KeyError, TypeError) as exc:
            failures += 1
            click.echo(f"  ✗ {number:>3}  {action:<16} {type(exc).__name__}: {exc}")
            if stop_on_error:
                break
            continue
        click.echo(f"  ✓ {number:>3}  {action:<16} {outcome}")

    if as_json:
        click.echo(json.dumps({
            "purchase_orders": [po.model_dump(mode="json") for po in workflow.list_all()],
            "movements": [m.model_dump(mode="json") for m in workflow.movements.list()],
            "materials": [m.model_dump(mode="json") for m in workflow.materials.list()],
        }, indent=2))
    else:
        stats = dashboard_stats(workflow.store)
        click.echo()
        click.echo(f"  Purchase orders:   {stats['total_purchase_orders']}")
        for status, count in stats["by_status"].items():
            if count:
                click.echo(f"    {status:<14} {count}")
        click.echo(f"  Stock movements:   {len(workflow.movements.list())}")
        click.echo(f"  Low / out of stock: {stats['low_stock_materials']} / {stats['out_of_stock_materials']}")
        click.echo()

    if failures:
        click.echo(f"{failures} step(s) failed.", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
