#!/usr/bin/env python3
"""
hunt.cli
========

`searchtogether` command line: create hunts, sell hints, build and submit
claim proofs, withdraw, expire, and inspect ledger state.

Examples:
  searchtogether create --lat 37.7694 --lon -122.4862 --prize 1000000 --kit kit.json
  searchtogether hint 0 --amount 1000 -i 0x…
  searchtogether prove kit.json --lat 37.76941 --lon -122.48619 -i 0x… \\
      --wasm treasure_claim.wasm --zkey circuit_final.zkey --out claim.json
  searchtogether claim claim.json
  searchtogether withdraw 0 -i 0x…
  searchtogether show 0 --json

Exit status: 0 ok, 1 rejected by the ledger / proof tooling, 2 usage or
configuration errors.
"""
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import msgspec
import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from core import logging as clog
from core.db import open_kv
from core.errors import ConfigError, SearchTogetherError
from core.version import __version__
from geo.coords import CoordinateError, ScaledCoordinate, degrees_to_scaled, format_coordinates
from geo.distance import RADIUS_SQUARED, radius_squared_for_meters
from zk.commitments import claim_commitment, location_commitment, secret_hash
from zk.errors import ZKError
from zk.prover import ClaimWitness, SnarkjsProver, build_claim_proof
from zk.types import decode_claim_proof, encode_claim_proof
from zk.verifiers import make_verifier

from . import config as hconfig
from .errors import HuntError
from .events import event_to_dict
from .kit import new_kit, read_kit, write_kit
from .ledger import HuntLedger
from .schedule import project_schedule
from .store import HuntStore

app = typer.Typer(
    name="searchtogether",
    help="Zero-knowledge treasure hunts: commitments, proofs and the hunt ledger.",
    no_args_is_help=True,
    add_completion=False,
)


class _DeferredVerifier:
    """Builds the configured verifier on first use so read-only commands need no key."""

    def __init__(self, kind: str, vk_path: str) -> None:
        self.kind = kind
        self.vk_path = vk_path
        self._inner = None

    def verify(self, proof: Any, public_output: int) -> bool:
        if self._inner is None:
            self._inner = make_verifier(self.kind, self.vk_path)
        return self._inner.verify(proof, public_output)


def _die(msg: str, code: int) -> None:
    typer.echo(msg.rstrip(), err=True)
    raise typer.Exit(code)


def _cfg(ctx: typer.Context) -> hconfig.HuntConfig:
    return ctx.obj["config"]


def _ledger(ctx: typer.Context) -> HuntLedger:
    state = ctx.obj
    if state.get("ledger") is None:
        cfg = _cfg(ctx)
        try:
            kv = open_kv(cfg.db_uri)
        except (ValueError, OSError) as e:
            _die(f"cannot open database {cfg.db_uri!r}: {e}", 2)
        ctx.call_on_close(kv.close)
        verifier = _DeferredVerifier(cfg.verifier.kind, cfg.verifier.vk_path)
        state["ledger"] = HuntLedger(HuntStore(kv), verifier, params=cfg.params)
    return state["ledger"]


def _run(fn, *args: Any, **kwargs: Any) -> Any:
    """Call into the ledger, mapping rejections to exit codes."""
    try:
        return fn(*args, **kwargs)
    except HuntError as e:
        _die(f"error: {e.message} [{e.reason.value}]", 1)
    except ZKError as e:
        _die(f"error: {e}", 1)
    except ConfigError as e:
        _die(f"configuration error: {e.message}", 2)
    except SearchTogetherError as e:
        _die(f"error: {e.message}", 1)


def _coordinate(lat: str, lon: str) -> ScaledCoordinate:
    try:
        return ScaledCoordinate(degrees_to_scaled(lat), degrees_to_scaled(lon))
    except (CoordinateError, ValueError) as e:
        raise typer.BadParameter(str(e)) from e


def _duration(value: str, name: str) -> int:
    try:
        return hconfig.parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(f"{name}: {e}") from e


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"searchtogether {__version__}")
        raise typer.Exit(0)


@app.callback()
def _main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="KV URI (default: $HUNT_DB_URI)"),
    verifier: Optional[str] = typer.Option(
        None, "--verifier", help="groth16 | mock (default: $HUNT_VERIFIER)"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ..."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
    version: bool = typer.Option(
        False, "--version", "-V", help="Print version and exit", is_eager=True, callback=_print_version
    ),
) -> None:
    try:
        cfg = hconfig.load()
        if db:
            cfg.db_uri = db
        if verifier:
            cfg.verifier.kind = verifier.strip().lower()
        cfg.validate()
    except ConfigError as e:
        _die(f"configuration error: {e.message}", 2)
    clog.configure_from_config(cfg, json=True if json_logs else None, level=log_level, stream=sys.stderr)
    ctx.obj = {"config": cfg, "ledger": None}


# ---------------------------------------------------------------------------
# Creator commands
# ---------------------------------------------------------------------------


@app.command("create")
def create_cmd(
    ctx: typer.Context,
    lat: str = typer.Option(..., help="Target latitude in degrees"),
    lon: str = typer.Option(..., help="Target longitude in degrees"),
    prize: int = typer.Option(..., min=1, help="Deposit in base units"),
    identity: str = typer.Option(..., "--identity", "-i", envvar="HUNT_IDENTITY", help="Creator identity"),
    lockout: str = typer.Option("1d", help="Lockout before claims open (e.g. 86400, 12h, 1d)"),
    duration: str = typer.Option("14d", help="Time until the hunt expires"),
    hint_price: int = typer.Option(0, min=0, help="Price of one hint"),
    radius_m: Optional[float] = typer.Option(None, help="Claim radius in meters (default ~11 m)"),
    secret: Optional[str] = typer.Option(None, help="Secret (decimal/hex); random when omitted"),
    kit: Path = typer.Option(Path("hunt-kit.json"), help="Where to write the QR kit"),
    json_out: bool = typer.Option(False, "--json", help="Machine-readable output"),
) -> None:
    """Register a hunt and write its QR kit."""
    target = _coordinate(lat, lon)
    r2 = RADIUS_SQUARED if radius_m is None else radius_squared_for_meters(radius_m)
    try:
        hunt_kit = new_kit(target, r2, secret=None if secret is None else int(secret, 0))
    except (ValueError, ZKError) as e:
        raise typer.BadParameter(str(e)) from e
    lockout_s, duration_s = _duration(lockout, "lockout"), _duration(duration, "duration")
    ledger = _ledger(ctx)

    # The secret reaches disk before the deposit is locked.
    pending = kit.with_name(kit.name + ".pending")
    try:
        write_kit(hunt_kit, pending)
    except OSError as e:
        _die(f"cannot write kit next to {kit}: {e}", 2)
    try:
        hunt_id = _run(ledger.register_hunt, hunt_kit.commitment, lockout_s, duration_s, hint_price, prize, identity)
    except typer.Exit:
        pending.unlink(missing_ok=True)
        raise
    hunt_kit = hunt_kit.with_hunt_id(hunt_id)
    try:
        write_kit(hunt_kit, pending)
        pending.replace(kit)
    except OSError as e:
        _die(f"hunt {hunt_id} registered; its kit is in {pending} ({e})", 1)
    if json_out:
        _print_json({"hunt_id": hunt_id, "kit": str(kit), "location_commitment": hunt_kit.location_commitment})
        return
    Console().print(f"[green]hunt {hunt_id} created[/green] at {format_coordinates(target.lat, target.lon)}; kit written to {kit}")


@app.command("hint")
def hint_cmd(
    ctx: typer.Context,
    hunt_id: int = typer.Argument(..., min=0),
    amount: int = typer.Option(..., min=0, help="Payment in base units"),
    identity: str = typer.Option(..., "--identity", "-i", envvar="HUNT_IDENTITY"),
) -> None:
    """Buy a hint; the payment goes into the hunt's pot."""
    ledger = _ledger(ctx)
    _run(ledger.purchase_hint, hunt_id, amount, identity)
    typer.echo(f"hint purchased for hunt {hunt_id}; pot is now {ledger.get_pot_balance(hunt_id)}")


@app.command("expire")
def expire_cmd(
    ctx: typer.Context,
    hunt_id: int = typer.Argument(..., min=0),
    identity: Optional[str] = typer.Option(None, "--identity", "-i", envvar="HUNT_IDENTITY"),
) -> None:
    """Expire an unclaimed hunt past its deadline (refunds the creator)."""
    refunded = _run(_ledger(ctx).expire_hunt, hunt_id, identity)
    typer.echo(f"hunt {hunt_id} expired; refunded {refunded}")


# ---------------------------------------------------------------------------
# Finder commands
# ---------------------------------------------------------------------------


@app.command("prove")
def prove_cmd(
    ctx: typer.Context,
    kit_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="QR kit JSON"),
    lat: str = typer.Option(..., help="Your latitude in degrees"),
    lon: str = typer.Option(..., help="Your longitude in degrees"),
    identity: str = typer.Option(..., "--identity", "-i", envvar="HUNT_IDENTITY", help="Claimer identity"),
    wasm: Optional[Path] = typer.Option(None, help="Circuit wasm (default: $HUNT_WASM_PATH)"),
    zkey: Optional[Path] = typer.Option(None, help="Proving key (default: $HUNT_ZKEY_PATH)"),
    out: Path = typer.Option(Path("claim.json"), help="Where to write the claim proof"),
    timeout: Optional[float] = typer.Option(None, help="Seconds before proving is abandoned"),
) -> None:
    """Build a claim proof with snarkjs (the finder must be within the radius)."""
    cfg = _cfg(ctx)
    try:
        hunt_kit = read_kit(kit_path)
    except (msgspec.DecodeError, ValueError, OSError) as e:
        raise typer.BadParameter(f"unreadable kit: {e}") from e
    witness = ClaimWitness(
        secret=hunt_kit.secret_int,
        finder=_coordinate(lat, lon),
        target=hunt_kit.target,
        radius_squared=hunt_kit.radius_squared,
        claimer=identity,
    )
    prover = SnarkjsProver(
        str(wasm or cfg.verifier.wasm_path),
        str(zkey or cfg.verifier.zkey_path),
        snarkjs=cfg.verifier.snarkjs,
        timeout=timeout,
    )
    cp = _run(
        asyncio.run,
        build_claim_proof(witness, prover, hunt_kit.hunt_id, expected_location=hunt_kit.commitment),
    )
    out.write_bytes(encode_claim_proof(cp))
    typer.echo(f"claim proof for hunt {cp.hunt_id} written to {out}")


@app.command("claim")
def claim_cmd(
    ctx: typer.Context,
    claim_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Claim proof JSON"),
    identity: Optional[str] = typer.Option(
        None, "--identity", "-i", envvar="HUNT_IDENTITY", help="Caller (default: claimer in the file)"
    ),
) -> None:
    """Submit a claim proof to the ledger."""
    try:
        cp = decode_claim_proof(claim_path.read_bytes())
    except (msgspec.DecodeError, ValueError, OSError) as e:
        raise typer.BadParameter(f"unreadable claim proof: {e}") from e
    ledger = _ledger(ctx)
    _run(ledger.claim_treasure, cp.hunt_id, cp.proof, cp.commitment, identity or cp.claimer)
    typer.echo(f"hunt {cp.hunt_id} claimed by {identity or cp.claimer}")


@app.command("withdraw")
def withdraw_cmd(
    ctx: typer.Context,
    hunt_id: int = typer.Argument(..., min=0),
    identity: str = typer.Option(..., "--identity", "-i", envvar="HUNT_IDENTITY"),
) -> None:
    """Release the next share of a claimed pot."""
    ledger = _ledger(ctx)
    amount = _run(ledger.withdraw, hunt_id, identity)
    typer.echo(f"withdrew {amount}; pot remaining {ledger.get_pot_balance(hunt_id)}")


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


def _hunt_panel(view: Dict[str, Any], next_time: Optional[int]) -> Panel:
    hunt = view["hunt"]
    grid = Table.grid(padding=(0, 2))
    grid.add_row("Status", hunt["status"])
    grid.add_row("Creator", hunt["creator"])
    grid.add_row("Prize", str(hunt["initial_prize"]))
    grid.add_row("Contributions", str(view["total_contributions"]))
    grid.add_row("Pot", str(view["pot_balance"]))
    grid.add_row("Claimable after", str(hunt["claimable_after"]))
    grid.add_row("Expires at", str(hunt["expires_at"]))
    grid.add_row("Hint price", str(hunt["hint_price"]))
    claim = view["claim"]
    if claim:
        grid.add_row("Claimer", claim["claimer"])
        grid.add_row("Withdrawn", str(claim["total_withdrawn"]))
        grid.add_row("Next withdrawal", "now" if next_time == 0 else str(next_time))
    return Panel(grid, title=f"Hunt {hunt['id']}", expand=False)


@app.command("show")
def show_cmd(
    ctx: typer.Context,
    hunt_id: int = typer.Argument(..., min=0),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one hunt, its claim and its pot."""
    ledger = _ledger(ctx)
    view = _run(ledger.view, hunt_id).to_dict()
    next_time = ledger.next_withdrawal_time(hunt_id)
    if json_out:
        view["next_withdrawal_time"] = next_time
        view["can_withdraw"] = ledger.can_withdraw(hunt_id)
        _print_json(view)
        return
    Console().print(_hunt_panel(view, next_time))


@app.command("events")
def events_cmd(
    ctx: typer.Context,
    hunt: Optional[int] = typer.Option(None, "--hunt", min=0, help="Only this hunt"),
    start: int = typer.Option(0, min=0, help="First sequence number"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List ledger events."""
    events = [event_to_dict(ev) for ev in _run(_ledger(ctx).events, start, hunt)]
    if json_out:
        _print_json(events)
        return
    t = Table(title="Events", box=box.SIMPLE)
    for col in ("seq", "ts", "type", "hunt", "details"):
        t.add_column(col)
    for ev in events:
        details = ", ".join(
            f"{k}={v}" for k, v in ev.items() if k not in ("seq", "ts", "etype", "hunt_id")
        )
        t.add_row(str(ev["seq"]), str(ev["ts"]), ev["etype"], str(ev["hunt_id"]), details)
    Console().print(t)


@app.command("balance")
def balance_cmd(
    ctx: typer.Context,
    identity: str = typer.Argument(..., help="Identity to look up"),
) -> None:
    """Released funds credited to an identity."""
    typer.echo(str(_run(_ledger(ctx).balance_of, identity)))


@app.command("commitment")
def commitment_cmd(
    lat: str = typer.Option(..., help="Target latitude in degrees"),
    lon: str = typer.Option(..., help="Target longitude in degrees"),
    radius_squared: int = typer.Option(RADIUS_SQUARED, min=0),
    secret: Optional[str] = typer.Option(None, help="Also derive the claim commitment"),
    claimer: Optional[str] = typer.Option(None, help="Claimer identity for the claim commitment"),
) -> None:
    """Compute Poseidon commitments locally."""
    target = _coordinate(lat, lon)
    try:
        loc = location_commitment(target.lat, target.lon, radius_squared)
        out: Dict[str, Any] = {"location_commitment": str(loc)}
        if secret is not None and claimer is not None:
            out["claim_commitment"] = str(claim_commitment(loc, secret_hash(int(secret, 0)), claimer))
    except (ValueError, TypeError) as e:
        raise typer.BadParameter(str(e)) from e
    _print_json(out)


@app.command("schedule")
def schedule_cmd(
    ctx: typer.Context,
    hunt_id: Optional[int] = typer.Argument(None, min=0, help="Project a claimed hunt's pot"),
    pot: Optional[int] = typer.Option(None, min=0, help="Project an arbitrary pot instead"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show future withdrawal releases until the pot is empty."""
    params = _cfg(ctx).params
    if pot is None:
        if hunt_id is None:
            raise typer.BadParameter("give a hunt id or --pot")
        ledger = _ledger(ctx)
        pot = _run(ledger.get_pot_balance, hunt_id)
        nxt = ledger.next_withdrawal_time(hunt_id)
        start = ledger.now() if not nxt else max(nxt, ledger.now())
    else:
        start = 0
    rows = project_schedule(pot, params.withdrawal_percent, start, params.withdrawal_interval)
    if json_out:
        _print_json([{"time": t, "amount": a} for t, a in rows])
        return
    t = Table(title=f"Withdrawals ({params.withdrawal_percent}% every {params.withdrawal_interval}s)", box=box.SIMPLE)
    t.add_column("#", justify="right")
    t.add_column("time", justify="right")
    t.add_column("amount", justify="right")
    for i, (ts, amount) in enumerate(rows):
        t.add_row(str(i), str(ts), str(amount))
    Console().print(t)


def main(argv: Optional[list[str]] = None) -> int:
    app(args=argv)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
