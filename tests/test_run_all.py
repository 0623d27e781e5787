import math

import pytest

import run_all


def test_parser_accepts_slider_ranges():
    args = run_all.build_parser().parse_args(["--joints", "10", "--angle-deg", "90"])

    assert args.joints == 10
    assert math.radians(args.angle_deg) == pytest.approx(math.pi / 2)
    assert args.mode == "ensemble"


@pytest.mark.parametrize("argv", [
    ["--joints", "1"],
    ["--joints", "11"],
    ["--angle-deg", "-5"],
    ["--angle-deg", "91"],
    ["--steps", "0"],
])
def test_parser_rejects_out_of_range(argv):
    with pytest.raises(SystemExit):
        run_all.build_parser().parse_args(argv)


def test_pipeline_runs_end_to_end(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    played = {}
    monkeypatch.setattr(
        run_all.animator, "animate_ensemble",
        lambda **kwargs: played.update(kwargs),
    )

    run_all.main([
        "--joints", "3", "--angle-deg", "80", "--steps", "150",
        "--instances", "3", "--perturbation", "1e-8", "--processes", "1",
    ])

    out = capsys.readouterr().out
    assert "STEP 2" in out
    assert "COMPLETE!" in out
    assert (tmp_path / "simulation_results.npz").is_file()
    assert played["results_file"] == "simulation_results.npz"
    assert played["save_video"] is False
