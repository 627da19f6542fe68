"""
End-to-end claim through a real pairing check: the ledger is wired to a
Groth16 verifier whose key was built for one finder's claim commitment.
"""

import pytest

from hunt.errors import ProofError, Reason
from hunt.ledger import HuntLedger
from hunt.store import HuntStore
from hunt.types import HuntStatus
from zk.commitments import claim_commitment, location_commitment, secret_hash
from zk.tests import synthetic_groth16
from zk.verifiers import Groth16Verifier

from . import DAY, FINDER, SEEKER, register

pytestmark = pytest.mark.slow

SECRET = 0xC0FFEE
LOCATION = location_commitment(37_769_400, -122_486_200, 10_000)
FINDER_CLAIM = claim_commitment(LOCATION, secret_hash(SECRET), FINDER)


@pytest.fixture(scope="module")
def artifacts():
    return synthetic_groth16([FINDER_CLAIM])


@pytest.fixture
def g16_ledger(kv, clock, params, artifacts):
    vk, _ = artifacts
    return HuntLedger(HuntStore(kv), Groth16Verifier(vk), clock, params)


def test_valid_proof_claims_hunt(g16_ledger, clock, artifacts):
    _, proof = artifacts
    hid = register(g16_ledger, location_commitment=LOCATION)
    clock.advance(DAY)
    g16_ledger.claim_treasure(hid, proof, FINDER_CLAIM, FINDER)
    assert g16_ledger.get_hunt(hid).status is HuntStatus.CLAIMED
    assert g16_ledger.get_claim(hid).claim_commitment == FINDER_CLAIM


def test_proof_does_not_transfer_to_another_claimer(g16_ledger, clock, artifacts):
    _, proof = artifacts
    hid = register(g16_ledger, location_commitment=LOCATION)
    clock.advance(DAY)
    stolen = claim_commitment(LOCATION, secret_hash(SECRET), SEEKER)
    assert stolen != FINDER_CLAIM
    with pytest.raises(ProofError) as ei:
        g16_ledger.claim_treasure(hid, proof, stolen, SEEKER)
    assert ei.value.reason is Reason.INVALID_PROOF
    assert g16_ledger.get_hunt(hid).status is HuntStatus.ACTIVE


def test_malformed_proof_is_rejected_not_raised(g16_ledger, clock):
    hid = register(g16_ledger, location_commitment=LOCATION)
    clock.advance(DAY)
    with pytest.raises(ProofError):
        g16_ledger.claim_treasure(hid, {"pi_a": "junk"}, FINDER_CLAIM, FINDER)
