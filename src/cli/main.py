"""
CLI entry point: fxrecon direction | convert | reconcile | diff | default-handler | health.

Every command loads config from --config (default config.yaml), prints a
human-readable explanation, and logs completion checks to the journal.
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import AppConfig, ReconConfigError, load_config, load_recon_config

load_dotenv()

logger = logging.getLogger("recon")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _load(ctx: click.Context) -> AppConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e


def _recon_config(cfg: AppConfig, pair: tuple[str, str] | None = None):
    try:
        return load_recon_config(cfg.recon_config_path, pair=pair)
    except ReconConfigError as e:
        raise click.ClickException(str(e)) from e


def _lookup(cfg: AppConfig):
    from data import SnapshotError, load_currencies
    from recon_core import rate_lookup

    try:
        return rate_lookup(load_currencies(cfg.data.currencies_path))
    except (FileNotFoundError, SnapshotError) as e:
        raise click.ClickException(str(e)) from e


def _events(cfg: AppConfig):
    from cli.structured_log import StructuredEventLogger

    return StructuredEventLogger(
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """fxrecon: reconcile currency-exchange orders against their receipts and payments."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- fxrecon direction ----------


@cli.command()
@click.argument("from_currency")
@click.argument("to_currency")
@click.pass_context
def direction(ctx: click.Context, from_currency: str, to_currency: str) -> None:
    """Show which side of FROM_CURRENCY/TO_CURRENCY is the base."""
    from cli.output import format_direction
    from recon_core import resolve_base

    cfg = _load(ctx)
    from_code, to_code = from_currency.upper(), to_currency.upper()
    recon_cfg = _recon_config(cfg, (from_code, to_code))
    side = resolve_base(from_code, to_code, _lookup(cfg), recon_cfg)
    click.echo(format_direction(from_code, to_code, side))


# ---------- fxrecon convert ----------


@cli.command()
@click.argument("amount", type=float)
@click.argument("rate", type=float)
@click.argument("from_currency")
@click.argument("to_currency")
@click.option(
    "--known",
    type=click.Choice(["from", "to"]),
    default="from",
    show_default=True,
    help="Which leg AMOUNT is: 'from' (amount buy) or 'to' (amount sell).",
)
@click.pass_context
def convert(ctx: click.Context, amount: float, rate: float, from_currency: str, to_currency: str, known: str) -> None:
    """Derive the other leg of an order from AMOUNT and RATE."""
    from cli.output import format_conversion
    from recon_core import BaseSide, ReconError, derive_other_leg

    cfg = _load(ctx)
    from_code, to_code = from_currency.upper(), to_currency.upper()
    recon_cfg = _recon_config(cfg, (from_code, to_code))
    known_side = BaseSide.FROM if known == "from" else BaseSide.TO
    try:
        result = derive_other_leg(amount, rate, from_code, to_code, known_side, _lookup(cfg), recon_cfg)
    except ReconError as e:
        raise click.ClickException(str(e)) from e

    known_code, other_code = (from_code, to_code) if known_side == BaseSide.FROM else (to_code, from_code)
    click.echo(format_conversion(amount, result, rate, known_code, other_code, recon_cfg.display))


# ---------- fxrecon reconcile ----------


@cli.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--rate", "override_rate", default=None, help="Flex-order rate override (empty string clears).")
@click.pass_context
def reconcile(ctx: click.Context, snapshot_path: str, override_rate: str | None) -> None:
    """Check whether the order in SNAPSHOT_PATH can be completed.

    Exit code 0 = ready to complete, 1 = blocked.
    """
    from cli.output import format_completion
    from data import SnapshotError, load_order_snapshot
    from journal import JournalWriter
    from recon_core import evaluate_completion

    cfg = _load(ctx)
    try:
        snap = load_order_snapshot(snapshot_path)
    except SnapshotError as e:
        raise click.ClickException(str(e)) from e

    order = snap.order
    recon_cfg = _recon_config(cfg, (order.from_currency, order.to_currency))
    rate_override = override_rate if override_rate is not None else snap.override_rate
    result = evaluate_completion(
        order, snap.receipts, snap.payments, _lookup(cfg), rate_override, recon_cfg,
    )
    click.echo(format_completion(order, result))

    notice = result.notice.message() if result.notice else None
    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    journal.completion(order.id, result.eligible, notice, effective_rate=result.effective_rate)
    _events(cfg).completion_checked(order.id, result.eligible, notice or "")

    raise SystemExit(0 if result.eligible else 1)


# ---------- fxrecon diff ----------


@cli.command()
@click.argument("amendment_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def diff(ctx: click.Context, amendment_path: str) -> None:
    """Show what an amendment request changes and whether it can be submitted.

    Exit code 0 = submittable, 1 = blocked (no changes or unreconciled totals).
    """
    from cli.output import format_change_set
    from data import SnapshotError, load_amendment
    from recon_core.amendment_diff import amendment_errors, diff_request

    cfg = _load(ctx)
    try:
        request = load_amendment(amendment_path)
    except SnapshotError as e:
        raise click.ClickException(str(e)) from e

    order = request.original_order
    recon_cfg = _recon_config(cfg, (order.from_currency, order.to_currency))
    change_set = diff_request(request, recon_cfg)
    errors = amendment_errors(request, change_set, recon_cfg)
    click.echo(f"Order #{order.id} {request.request_type.value} request: {request.reason or '(no reason)'}")
    click.echo(format_change_set(change_set, errors))
    raise SystemExit(1 if errors else 0)


# ---------- fxrecon default-handler ----------


@cli.command("default-handler")
@click.argument("user_id", type=int)
@click.option("--set", "handler_id", type=int, default=None, help="Save HANDLER_ID as this user's default handler.")
@click.option("--clear", is_flag=True, default=False, help="Forget the saved default handler.")
@click.pass_context
def default_handler(ctx: click.Context, user_id: int, handler_id: int | None, clear: bool) -> None:
    """Show, save or clear USER_ID's default order handler."""
    from workflow.preferences import (
        SqlitePreferenceStore,
        clear_default_handler,
        get_default_handler,
        save_default_handler,
    )

    if clear and handler_id is not None:
        raise click.UsageError("--set and --clear are mutually exclusive")
    cfg = _load(ctx)
    store = SqlitePreferenceStore(cfg.preferences.state_path)
    if clear:
        clear_default_handler(store, user_id)
        click.echo(f"Cleared default handler for user {user_id}")
        return
    if handler_id is not None:
        save_default_handler(store, user_id, handler_id)
        click.echo(f"Default handler for user {user_id}: {handler_id}")
        return
    current = get_default_handler(store, user_id)
    click.echo(f"Default handler for user {user_id}: {current if current is not None else 'none'}")


# ---------- fxrecon health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: app config, recon config, currency data.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded ({ctx.obj['config_path']})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        recon_cfg = load_recon_config(cfg.recon_config_path)
        checks.append(("recon_config", True, f"validated (version {recon_cfg.version})"))
    except Exception as e:
        checks.append(("recon_config", False, str(e)))

    try:
        from data import load_currencies
        currencies = load_currencies(cfg.data.currencies_path)
        if currencies:
            checks.append(("currencies", True, f"{len(currencies)} currencies"))
        else:
            checks.append(("currencies", False, f"no currencies in {cfg.data.currencies_path}"))
    except Exception as e:
        checks.append(("currencies", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
