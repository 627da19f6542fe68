import json

import pytest

from zk.adapters.snarkjs_loader import (
    load_groth16,
    load_json,
    normalize_groth16_proof,
    normalize_groth16_vk,
    normalize_numbers,
)


def _vk(n_public=1):
    g1 = ["1", "2", "1"]
    g2 = [["3", "4"], ["5", "6"], ["1", "0"]]
    return {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": n_public,
        "vk_alpha_1": g1,
        "vk_beta_2": g2,
        "vk_gamma_2": g2,
        "vk_delta_2": g2,
        "vk_alphabeta_12": [[["1", "2"]]],
        "IC": [g1, ["7", "8", "1"]],
    }


PROOF = {
    "pi_a": ["11", "12", "1"],
    "pi_b": [["13", "14"], ["15", "16"], ["1", "0"]],
    "pi_c": ["17", "18", "1"],
    "protocol": "groth16",
    "curve": "bn128",
}


def test_projective_coordinates_are_dropped():
    vk = normalize_groth16_vk(_vk())
    assert vk["vk_alpha_1"] == [1, 2]
    assert vk["vk_beta_2"] == [[3, 4], [5, 6]]
    assert vk["IC"] == [[1, 2], [7, 8]]
    assert vk["nPublic"] == 1
    assert "vk_alphabeta_12" not in vk


def test_affine_form_accepted():
    vk = _vk()
    vk["vk_alpha_1"] = ["0x1", "2"]
    vk["vk_beta_2"] = [["3", "4"], ["5", "6"]]
    out = normalize_groth16_vk(vk)
    assert out["vk_alpha_1"] == [1, 2]
    assert out["vk_beta_2"] == [[3, 4], [5, 6]]


def test_infinity_and_bad_z():
    vk = _vk()
    vk["IC"][1] = ["0", "1", "0"]
    assert normalize_groth16_vk(vk)["IC"][1] == [0, 0]
    vk["IC"][1] = ["7", "8", "3"]
    with pytest.raises(ValueError):
        normalize_groth16_vk(vk)


def test_n_public_mismatch():
    with pytest.raises(ValueError):
        normalize_groth16_vk(_vk(n_public=2))


def test_not_a_vk():
    with pytest.raises(ValueError):
        normalize_groth16_vk({"IC": []})


def test_proof_flat_and_bundle():
    flat, pubs = normalize_groth16_proof(PROOF)
    assert flat["pi_a"] == [11, 12]
    assert flat["pi_b"] == [[13, 14], [15, 16]]
    assert pubs == []

    bundled, pubs = normalize_groth16_proof({"proof": PROOF, "publicSignals": ["99"]})
    assert bundled == flat
    assert pubs == [99]


def test_proof_missing_field():
    with pytest.raises(ValueError):
        normalize_groth16_proof({"pi_a": PROOF["pi_a"]})


def test_load_groth16_from_files(tmp_path):
    (tmp_path / "vk.json").write_text(json.dumps(_vk()))
    (tmp_path / "proof.json").write_text(json.dumps(PROOF))
    (tmp_path / "public.json").write_text(json.dumps(["0x2a"]))
    vk, proof, pubs = load_groth16(
        tmp_path / "vk.json", tmp_path / "proof.json", tmp_path / "public.json"
    )
    assert vk["IC"][1] == [7, 8]
    assert proof["pi_c"] == [17, 18]
    assert pubs == [42]


def test_load_json_sources(tmp_path):
    assert load_json('{"a": 1}') == {"a": 1}
    assert load_json(b"[1, 2]") == [1, 2]
    assert load_json({"b": 2}) == {"b": 2}
    with pytest.raises(ValueError):
        load_json(str(tmp_path / "nope.json"))


def test_normalize_numbers():
    assert normalize_numbers({"x": ["1", "0x10", "5n", "abc", True]}) == {
        "x": [1, 16, 5, "abc", True]
    }
