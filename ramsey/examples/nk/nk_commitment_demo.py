from __future__ import annotations

from pathlib import Path

import numpy as np

from ramsey import read_yaml
from ramsey.loss import discounted_loss


def main() -> None:
    here = Path(__file__).resolve().parent
    problem = read_yaml(str(here / "nk_commitment.yaml"))
    p0 = problem.p0()

    report = problem.determinacy_report(p0, cutoffs=[1 + 1e-5, 1 + 1e-8])
    for row in report["by_cutoff"]:
        print(f"cutoff={row['cutoff']:.8f}: {row['n_stable']} stable root(s), {row['status'].name}")

    h = 40
    irf = problem.impulse_response(p0, h=h)["eu"]

    # Under commitment inflation follows pi_t = -(lam/kappa) * (y_t - y_{t-1}).
    para = dict(zip(map(str, problem.parameters), p0))
    dy = np.diff(np.r_[0.0, irf["y"].to_numpy()])
    gap = irf["pi"].to_numpy() + para["lam"] / para["kappa"] * dy
    print(f"targeting rule max|gap| over 0..{h}: {np.max(np.abs(gap)):.3g}")

    A, B, Q, R, U, bet = problem.system_matrices(p0)
    loss = discounted_loss(irf[["u", "pi"]].to_numpy(), irf[["y"]].to_numpy(), Q, R, U, bet)
    print(f"discounted loss along the impulse response: {loss:.6g}")

    out_dir = here / "_out"
    out_dir.mkdir(exist_ok=True)
    irf.to_csv(out_dir / "commitment_irf.csv", index=True)
    print(f"Wrote CSV to: {out_dir}")

    try:
        import matplotlib.pyplot as plt
    except Exception:
        print("matplotlib not available; skipping plot.")
        return

    fig, ax = plt.subplots(3, 1, figsize=(9, 7), sharex=True)
    for axis, col in zip(ax, ["pi", "y", "lagrange_pi"]):
        axis.plot(irf.index, irf[col])
        axis.set_ylabel(col)
    ax[-1].set_xlabel("quarters")
    fig.tight_layout()
    fig.savefig(out_dir / "commitment_irf.png", dpi=150)
    print(f"Wrote plot to: {out_dir / 'commitment_irf.png'}")


if __name__ == "__main__":
    main()
