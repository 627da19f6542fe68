"""
zk
==

Zero-knowledge side of the treasure hunt: Poseidon commitments, the Groth16
verifier used by the ledger and the async prover driving snarkjs.
"""
