import numpy as np
import pytest

from newton_lite.scripts.solve_run import main


def test_runner_sqrt2(tmp_path, capsys) -> None:
    main(["--problem", "sqrt2", "--outdir", str(tmp_path)])

    out = capsys.readouterr().out
    assert "converged=True" in out

    dat = tmp_path / "sqrt2_trajectory.dat"
    assert dat.exists()
    assert (tmp_path / "sqrt2_residuals.png").exists()

    lines = dat.read_text(encoding="utf-8").splitlines()
    n, iterations, converged = (int(v) for v in lines[0].split(","))
    assert n == 1 and converged == 1
    assert len(lines) == iterations + 2
    last = [float(v) for v in lines[-1].split(",")]
    assert abs(last[1] - np.sqrt(2.0)) < 1e-12


@pytest.mark.parametrize("jac", ["complex-step", "central", "scipy"])
def test_runner_numerical_jacobians(tmp_path, capsys, jac) -> None:
    main(["--problem", "quadratic2d", "--variant", "fsolve", "--max-iter", "50", "--jacobian", jac, "--outdir", str(tmp_path)])
    assert "converged=True" in capsys.readouterr().out


def test_runner_non_convergence(tmp_path, capsys) -> None:
    main(["--problem", "exp", "--max-iter", "5", "--no-warnings", "--outdir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "converged=False iterations=5" in out


def test_runner_singular_exits(tmp_path) -> None:
    with pytest.raises(SystemExit, match="SingularJacobianError"):
        # x0 = 0 makes J = [[2x]] singular
        main(["--problem", "sqrt2", "--x0", "0", "--outdir", str(tmp_path)])
