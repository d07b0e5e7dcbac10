# MIT License © 2025 Motohiro Suzuki
import json

import qtc_pqhd.crypto.kem as kem_mod
from qtc_pqhd.protocol.failure import ExitCode
from qtc_pqhd.runners.cli import main

TOY = ["--kem", "toy_kem", "--sig", "toy_sig"]


def test_generate_writes_file_and_prints_only_json(tmp_path, capsys, fixed_seed):
    out = tmp_path / "w.json"
    rc = main(["generate", *TOY, "--output", str(out), "--seed-hex", fixed_seed.hex()])
    cap = capsys.readouterr()

    assert rc == ExitCode.OK
    printed = json.loads(cap.out)
    assert printed == json.loads(out.read_text())
    assert printed["address"].startswith("qtc1")
    assert "[OK]" in cap.err
    assert "[OK]" not in cap.out


def test_generate_is_default_subcommand(tmp_path, capsys, fixed_seed):
    out = tmp_path / "w.json"
    rc = main([*TOY, "--output", str(out), "--seed-hex", fixed_seed.hex()])
    assert rc == ExitCode.OK
    assert out.exists()


def test_replayed_seed_gives_same_wallet(tmp_path, capsys, fixed_seed):
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    main(["generate", *TOY, "--output", str(a), "--seed-hex", fixed_seed.hex()])
    main(["generate", *TOY, "--output", str(b), "--seed-hex", fixed_seed.hex()])
    assert json.loads(a.read_text()) == json.loads(b.read_text())


def test_kem_mismatch_exits_nonzero_and_writes_nothing(tmp_path, capsys, monkeypatch, broken_suite):
    monkeypatch.setattr(kem_mod, "get_kem_backend", lambda name: broken_suite.kem)
    out = tmp_path / "w.json"
    rc = main(["generate", "--sig", "toy_sig", "--output", str(out)])
    cap = capsys.readouterr()

    assert rc == ExitCode.KEM_CONSISTENCY
    assert rc != 0
    assert cap.out == ""
    assert "[ERROR]" in cap.err
    assert not out.exists()


def test_bad_seed_hex_is_config_error(tmp_path, capsys):
    rc = main(["generate", *TOY, "--output", str(tmp_path / "w.json"), "--seed-hex", "zz"])
    assert rc == ExitCode.CONFIG


def test_short_seed_is_seed_length_error(tmp_path, capsys):
    out = tmp_path / "w.json"
    rc = main(["generate", *TOY, "--output", str(out), "--seed-hex", "00" * 32])
    assert rc == ExitCode.SEED_LENGTH
    assert not out.exists()


def test_no_file_flag(tmp_path, capsys, monkeypatch, fixed_seed):
    monkeypatch.chdir(tmp_path)
    rc = main(["generate", *TOY, "--no-file", "--seed-hex", fixed_seed.hex()])
    assert rc == ExitCode.OK
    assert json.loads(capsys.readouterr().out)["method"] == "PQ-HD"
    assert list(tmp_path.iterdir()) == []


def test_verify_round_trip_and_tamper(tmp_path, capsys, fixed_seed):
    out = tmp_path / "w.json"
    main(["generate", *TOY, "--output", str(out), "--seed-hex", fixed_seed.hex()])
    capsys.readouterr()

    assert main(["verify", str(out), "--sig", "toy_sig"]) == ExitCode.OK
    assert json.loads(capsys.readouterr().out)["valid"] is True

    d = json.loads(out.read_text())
    d["master_entropy_b64"] = "A" * 88
    out.write_text(json.dumps(d))
    assert main(["verify", str(out), "--sig", "toy_sig"]) == ExitCode.VERIFY


def test_verify_missing_file(tmp_path, capsys):
    rc = main(["verify", str(tmp_path / "missing.json"), "--sig", "toy_sig"])
    assert rc != 0
    assert capsys.readouterr().out == ""


def test_inspect(tmp_path, capsys, fixed_seed):
    out = tmp_path / "w.json"
    main(["generate", *TOY, "--output", str(out), "--seed-hex", fixed_seed.hex()])
    addr = json.loads(out.read_text())["address"]
    capsys.readouterr()

    assert main(["inspect", addr]) == ExitCode.OK
    info = json.loads(capsys.readouterr().out)
    assert info["witness_version"] == 2
    assert info["method"] == "PQ-HD"
    assert len(bytes.fromhex(info["program_hex"])) == 20

    assert main(["inspect", addr[:-1] + ("q" if addr[-1] != "q" else "p")]) == ExitCode.ENCODING


def test_config_file_and_env(tmp_path, capsys, monkeypatch, fixed_seed):
    out = tmp_path / "from_env.json"
    cfg = tmp_path / "wallet.yml"
    cfg.write_text("wallet:\n  kem_alg: toy_kem\n  sig_alg: toy_sig\n")
    monkeypatch.setenv("QTC_PQHD_OUTPUT", str(out))

    rc = main(["--config", str(cfg), "--seed-hex", fixed_seed.hex()])
    assert rc == ExitCode.OK
    assert out.exists()


def test_reserved_witness_version_rejected(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("QTC_PQHD_WITNESS_VERSION", "1")
    rc = main(["generate", *TOY, "--output", str(tmp_path / "w.json")])
    assert rc == ExitCode.CONFIG


def test_verify_rejects_record_relabelled_to_primary(tmp_path, capsys, fixed_seed):
    from qtc_pqhd.wallet.address import decode_address, encode_address

    out = tmp_path / "w.json"
    main(["generate", *TOY, "--output", str(out), "--seed-hex", fixed_seed.hex()])
    d = json.loads(out.read_text())
    program = decode_address(d["address"], "qtc", 2).program
    d["address"] = encode_address("qtc", 1, program)
    d["witness_version"] = 1
    out.write_text(json.dumps(d))
    capsys.readouterr()

    assert main(["verify", str(out), "--sig", "toy_sig"]) == ExitCode.VERIFY
    report = json.loads(capsys.readouterr().out)
    assert {m["field"] for m in report["mismatches"]} >= {"witness_version", "address"}
