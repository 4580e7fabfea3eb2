"""Unit tests for the configuration module."""

from __future__ import annotations
import json, sys, tempfile, unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from percolation_engine.config import (
    load_config, build_grid, build_random_source, sweep_parameters, monte_carlo_trials,
)
from percolation_engine.random_source import RandomSource

VALID_CFG = {
    "grid": {"width": 12, "height": 8},
    "parameter": 0.5,
    "seed": 42,
    "monte_carlo": {"trials": 4, "sweep": {"start": 0.2, "stop": 0.8, "num": 4}},
}

def _write_cfg(d):
    f = tempfile.NamedTemporaryFile(suffix=".json", delete=False, mode="w")
    json.dump(d, f); f.close()
    return Path(f.name)


class TestLoadConfig(unittest.TestCase):

    def test_valid_config_loads(self):
        cfg = load_config(_write_cfg(VALID_CFG))
        self.assertEqual(cfg["seed"], 42)

    def test_bundled_configs_load(self):
        package_dir = Path(__file__).parent.parent
        for name in ("config_default.json", "config_small.json"):
            load_config(package_dir / name)

    def test_missing_seed_raises(self):
        bad = {k: v for k, v in VALID_CFG.items() if k != "seed"}
        with self.assertRaises(ValueError):
            load_config(_write_cfg(bad))

    def test_bad_dimensions_raise(self):
        for grid in ({"width": 0, "height": 3}, {"width": 5}, {"width": 2.5, "height": 3}):
            with self.assertRaises(ValueError):
                load_config(_write_cfg({**VALID_CFG, "grid": grid}))

    def test_parameter_out_of_range_raises(self):
        for p in (-0.1, 1.5, "half", True):
            with self.assertRaises(ValueError):
                load_config(_write_cfg({**VALID_CFG, "parameter": p}))

    def test_negative_seed_raises(self):
        with self.assertRaises(ValueError):
            load_config(_write_cfg({**VALID_CFG, "seed": -3}))

    def test_bad_monte_carlo_raises(self):
        bad_blocks = [
            {"trials": 1},
            {"parameters": []},
            {"parameters": [0.1, 1.2]},
            {"parameters": [0.5], "sweep": {"num": 3}},
            {"sweep": {"num": 0}},
        ]
        for block in bad_blocks:
            with self.assertRaises(ValueError, msg=str(block)):
                load_config(_write_cfg({**VALID_CFG, "monte_carlo": block}))

    def test_bad_viewport_raises(self):
        with self.assertRaises(ValueError):
            load_config(_write_cfg({**VALID_CFG, "render": {"viewport_width": 0}}))

    def test_file_not_found_raises(self):
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/path/config.json")


class TestBuilders(unittest.TestCase):

    def test_build_random_source(self):
        rng = build_random_source(VALID_CFG)
        self.assertIsInstance(rng, RandomSource)
        self.assertEqual(rng.seed, 42)

    def test_build_grid(self):
        g = build_grid(VALID_CFG)
        self.assertEqual((g.width, g.height), (12, 8))
        self.assertEqual(g.parameter, 0.5)
        self.assertEqual(g.rng.seed, 42)

    def test_same_config_same_pass(self):
        a = build_grid(VALID_CFG).regenerate()
        b = build_grid(VALID_CFG).regenerate()
        self.assertTrue((a == b).all())

    def test_sweep_expansion(self):
        self.assertEqual(
            [round(p, 6) for p in sweep_parameters(VALID_CFG)],
            [0.2, 0.4, 0.6, 0.8],
        )
        self.assertEqual(monte_carlo_trials(VALID_CFG), 4)

    def test_explicit_parameters_win(self):
        cfg = {**VALID_CFG, "monte_carlo": {"parameters": [0.1, 0.9]}}
        self.assertEqual(sweep_parameters(cfg), [0.1, 0.9])

    def test_no_monte_carlo_block(self):
        cfg = {k: v for k, v in VALID_CFG.items() if k != "monte_carlo"}
        self.assertEqual(sweep_parameters(cfg), [])


if __name__ == "__main__":
    unittest.main()
