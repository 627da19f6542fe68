"""
zk.prover
=========

Claim proof construction. This is the one long-running step of a claim: it
runs off-ledger, usually on the finder's device, and takes from under a
second to tens of seconds.

Flow
----
1. `ClaimWitness` gathers the private inputs (secret, finder position, target,
   radius) and the claimer identity.
2. `check_witness` evaluates the distance predicate and computes the expected
   claim commitment, failing fast with `WitnessError` before any proving work.
3. A `Prover` turns circuit inputs into `(proof, public_signals)`. The stock
   implementation drives `snarkjs groth16 fullprove` in a subprocess.
4. `build_claim_proof` checks that the circuit's public signal equals the
   expected commitment and packages a `ClaimProof` for the ledger.

`start_claim_proof` wraps the whole thing in an asyncio task. Cancelling the
task kills the snarkjs subprocess.
"""

from __future__ import annotations

import asyncio
import json
import os
import shlex
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from core.logging import get_logger
from geo.coords import ScaledCoordinate
from geo.distance import distance_squared

from .adapters.snarkjs_loader import load_json, normalize_groth16_proof, normalize_public_signals
from .commitments import (
    claim_commitment,
    identity_to_field,
    location_commitment,
    normalize_identity,
    secret_hash,
)
from .errors import FieldRangeError, ProverError, WitnessError
from .types import ClaimProof

log = get_logger(__name__)


@dataclass(frozen=True)
class ClaimWitness:
    """Private inputs of the claim circuit plus the public claimer identity."""

    secret: int
    finder: ScaledCoordinate
    target: ScaledCoordinate
    radius_squared: int
    claimer: str

    def to_circuit_inputs(self) -> Dict[str, str]:
        # snarkjs reads signed decimal strings and reduces them into the field.
        return {
            "secret": str(self.secret),
            "gpsLat": str(self.finder.lat),
            "gpsLon": str(self.finder.lon),
            "targetLat": str(self.target.lat),
            "targetLon": str(self.target.lon),
            "radiusSquared": str(self.radius_squared),
            "claimerAddress": str(identity_to_field(self.claimer)),
        }

    def location_commitment(self) -> int:
        return location_commitment(self.target.lat, self.target.lon, self.radius_squared)

    def claim_commitment(self) -> int:
        return claim_commitment(
            self.location_commitment(), secret_hash(self.secret), self.claimer
        )


def check_witness(witness: ClaimWitness, expected_location: Optional[int] = None) -> int:
    """
    Validate a witness and return the claim commitment it proves.

    Raises WitnessError when the finder is outside the radius, when a value is
    not a field element, or when the target does not hash to
    `expected_location` (the hunt's published commitment).
    """
    try:
        normalize_identity(witness.claimer)
    except (TypeError, ValueError) as e:
        raise WitnessError(str(e)) from e
    if witness.radius_squared < 0:
        raise WitnessError("radius_squared must be non-negative")
    d2 = distance_squared(witness.finder, witness.target)
    if d2 > witness.radius_squared:
        raise WitnessError(
            f"finder is outside the radius (distance² {d2} > {witness.radius_squared})"
        )
    try:
        loc = witness.location_commitment()
        commitment = claim_commitment(loc, secret_hash(witness.secret), witness.claimer)
    except FieldRangeError as e:
        raise WitnessError(str(e)) from e
    if expected_location is not None and loc != expected_location:
        raise WitnessError("target does not match the hunt's location commitment")
    return commitment


class Prover(Protocol):
    async def prove(self, inputs: Mapping[str, str]) -> Tuple[Dict[str, Any], List[int]]:
        ...


class SnarkjsProver:
    """
    Runs `snarkjs groth16 fullprove input.json <wasm> <zkey> proof.json public.json`.

    `snarkjs` may be a multi-word command such as "npx snarkjs".
    """

    def __init__(
        self,
        wasm_path: str,
        zkey_path: str,
        snarkjs: str = "snarkjs",
        timeout: Optional[float] = None,
    ) -> None:
        self.wasm_path = os.fspath(wasm_path)
        self.zkey_path = os.fspath(zkey_path)
        self.command = shlex.split(snarkjs)
        self.timeout = timeout

    def _argv(self, workdir: str) -> List[str]:
        return [
            *self.command,
            "groth16",
            "fullprove",
            os.path.join(workdir, "input.json"),
            self.wasm_path,
            self.zkey_path,
            os.path.join(workdir, "proof.json"),
            os.path.join(workdir, "public.json"),
        ]

    async def prove(self, inputs: Mapping[str, str]) -> Tuple[Dict[str, Any], List[int]]:
        for p in (self.wasm_path, self.zkey_path):
            if not os.path.isfile(p):
                raise ProverError(f"circuit artifact not found: {p}")

        with tempfile.TemporaryDirectory(prefix="searchtogether-prove-") as workdir:
            with open(os.path.join(workdir, "input.json"), "w", encoding="utf-8") as f:
                json.dump(dict(inputs), f)

            argv = self._argv(workdir)
            try:
                proc = await asyncio.create_subprocess_exec(
                    *argv,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise ProverError(f"snarkjs not found: {self.command[0]}") from e

            try:
                _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                await _terminate(proc)
                raise ProverError(f"snarkjs timed out after {self.timeout}s") from None
            except asyncio.CancelledError:
                await _terminate(proc)
                raise

            if proc.returncode != 0:
                msg = stderr.decode("utf-8", "replace").strip()
                raise ProverError(f"snarkjs exited with {proc.returncode}: {msg[-500:]}")

            try:
                proof, _ = normalize_groth16_proof(load_json(os.path.join(workdir, "proof.json")))
                publics = normalize_public_signals(load_json(os.path.join(workdir, "public.json")))
            except (OSError, ValueError) as e:
                raise ProverError(f"unreadable snarkjs output: {e}") from e
        return proof, publics


async def _terminate(proc: "asyncio.subprocess.Process") -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()


async def build_claim_proof(
    witness: ClaimWitness,
    prover: Prover,
    hunt_id: int,
    expected_location: Optional[int] = None,
) -> ClaimProof:
    """Check the witness, run the prover and package the result."""
    expected = check_witness(witness, expected_location)
    started = time.monotonic()
    log.info("proving claim", extra={"hunt_id": hunt_id})
    proof, publics = await prover.prove(witness.to_circuit_inputs())
    if [int(p) for p in publics] != [expected]:
        raise ProverError("circuit public signal does not match the expected claim commitment")
    log.info(
        "claim proof ready",
        extra={"hunt_id": hunt_id, "elapsed_ms": int((time.monotonic() - started) * 1000)},
    )
    return ClaimProof.build(hunt_id, witness.claimer, expected, proof)


def start_claim_proof(
    witness: ClaimWitness,
    prover: Prover,
    hunt_id: int,
    expected_location: Optional[int] = None,
) -> "asyncio.Task[ClaimProof]":
    """Schedule `build_claim_proof` on the running loop; cancel the task to abort."""
    return asyncio.create_task(
        build_claim_proof(witness, prover, hunt_id, expected_location),
        name=f"claim-proof-{hunt_id}",
    )


__all__ = [
    "ClaimWitness",
    "check_witness",
    "Prover",
    "SnarkjsProver",
    "build_claim_proof",
    "start_claim_proof",
]
