import pandas as pd

import main


def _run(tmp_path, *extra):
    out = tmp_path / "out"
    code = main.main(["--out", str(out), "--no-lemmatizer", *extra])
    return code, out


def test_batch_run_on_bundled_sample(tmp_path, capsys):
    code, out = _run(tmp_path)
    assert code == 0

    flags = pd.read_csv(out / "measure-list-errors.csv", dtype={"eem_id": str}).set_index("eem_id")
    assert len(flags) == 18
    assert flags.loc["3", "Error_3"] == 1
    assert flags.loc["5", "Error_5"] == 1
    assert flags.loc["5", "Error_7"] == 1
    assert flags.loc["5", "Error_8"] == 1
    assert flags.loc["8", "Error_6"] == 1
    assert flags.loc["10", "Error_3"] == 1
    assert flags.loc["11", "Error_1"] == 1
    assert flags.loc["18"][["Error_1", "Error_3", "Error_4", "Error_5", "Error_6", "Error_7", "Error_8"]].sum() == 0

    issues = pd.read_csv(out / "issues.csv")
    assert "CollaboratorFailure" in issues["kind"].tolist()
    assert (out / "figure-1.png").exists()
    assert "Distribution of measures and errors" in capsys.readouterr().out


def test_threshold_override(tmp_path):
    code, out = _run(tmp_path, "--threshold", "3")
    assert code == 0
    flags = pd.read_csv(out / "measure-list-errors.csv", dtype={"eem_id": str}).set_index("eem_id")
    assert flags.loc["1", "Error_4"] == 1
    assert flags.loc["2", "Error_4"] == 0


def test_missing_measure_file(tmp_path):
    code, out = _run(tmp_path, "--measures", str(tmp_path / "missing.csv"))
    assert code == 1
    assert not out.exists()


def test_single_name(capsys):
    assert main.main(["--name", "Consider upgrading boilers", "--no-lemmatizer"]) == 0
    printed = capsys.readouterr().out
    assert "[x] Error_1" in printed
    assert "[x] Error_5" in printed
    assert "[ ] Error_4" in printed


def test_single_name_with_a_failing_lemmatizer(monkeypatch, capsys):
    class Broken:
        def lemmatize(self, word):
            raise KeyError(word)

    monkeypatch.setattr(main, "load_default_lemmatizer", lambda: Broken())
    assert main.main(["--name", "Capture condensate"]) == 0
    assert "[x] Error_6" in capsys.readouterr().out
