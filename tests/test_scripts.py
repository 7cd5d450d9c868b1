import random

import pandas as pd

from scripts.run_gof_autotest import run_gof_autotest


def test_run_gof_autotest_end_to_end(tmp_path):
    rng = random.Random(5)
    csv_path = tmp_path / "sample.csv"
    pd.DataFrame({"value": [rng.gauss(50.0, 5.0) for _ in range(120)]}).to_csv(csv_path, index=False)
    out_path = tmp_path / "out" / "rank.csv"

    preview = run_gof_autotest(
        data_path=str(csv_path),
        output_path=str(out_path),
        known_distribution="normal",
    )

    assert preview["summary"]["n"] == 120
    assert preview["recommended"] is not None
    assert preview["accuracy"].distribution_type.value == "normal"
    assert preview["n_failures"] == 0
    saved = pd.read_csv(out_path, encoding="utf-8-sig")
    assert list(saved["rank"]) == list(range(1, 10))
