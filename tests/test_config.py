from __future__ import annotations

import dataclasses
import datetime as dt
import math
from pathlib import Path
import tempfile
import unittest

from axis_scales.breaks import BreaksWidth
from axis_scales.config import AUTO, ScaleConfig, config_from_dict, load_config
from axis_scales.dates import from_seconds
from axis_scales.errors import ScaleConfigError
from axis_scales.expansion import DEFAULT_DISCRETE_EXPANSION, expansion
from axis_scales.scale import make_scale


class ScaleConfigValidationTests(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = ScaleConfig()
        self.assertEqual(cfg.kind, "continuous")
        self.assertIs(cfg.breaks, AUTO)
        self.assertEqual(cfg.get_expansion(), expansion(mult=0.05))
        self.assertEqual(ScaleConfig(kind="discrete").get_expansion(), DEFAULT_DISCRETE_EXPANSION)

    def test_config_is_immutable(self) -> None:
        cfg = ScaleConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            cfg.kind = "discrete"  # type: ignore[misc]

    def test_invalid_fields_raise_immediately(self) -> None:
        cases = [
            dict(kind="polar"),
            dict(oob="wrap"),
            dict(n_breaks=0),
            dict(position="middle"),
            dict(transform="cube"),
            dict(kind="discrete", transform="log10"),
            dict(limits=(10, 1)),
            dict(limits=(1, 2, 3)),
            dict(limits=("a", 2)),
            dict(transform="log10", limits=(-1, 10)),
            dict(transform="sqrt", limits=(-4, None)),
            dict(kind="datetime", limits=(dt.date(2021, 2, 1), dt.date(2021, 1, 1))),
            dict(kind="date", limits=("someday", None)),
            dict(expand="wide"),
            dict(breaks="auto"),
            dict(labels="roman"),
        ]
        for kwargs in cases:
            with self.subTest(**{k: repr(v) for k, v in kwargs.items()}):
                with self.assertRaises(ScaleConfigError):
                    ScaleConfig(**kwargs)

    def test_valid_partial_limits(self) -> None:
        self.assertEqual(ScaleConfig(transform="log10", limits=(1, None)).limits, (1, None))
        self.assertEqual(ScaleConfig(kind="date", limits=(None, dt.date(2021, 1, 1))).limits[0], None)

    def test_config_errors_are_value_errors(self) -> None:
        with self.assertRaises(ValueError):
            ScaleConfig(kind="polar")

    def test_label_count_must_match_explicit_breaks(self) -> None:
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(breaks=(1, 2, 3), labels=("a", "b"))
        cfg = ScaleConfig(breaks=(1, 2, 3), labels=("a", "b", "c"))
        self.assertEqual(cfg.explicit_break_count(), 3)

    def test_discrete_limits_fix_label_count(self) -> None:
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(kind="discrete", limits=("a", "b"), labels=("x",))
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(kind="discrete", limits=("a", "a"))

    def test_label_mapping_only_on_discrete(self) -> None:
        ScaleConfig(kind="discrete", labels={"a": "Alpha"})
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(labels={"a": "Alpha"})

    def test_date_options_only_on_date_scales(self) -> None:
        ScaleConfig(kind="datetime", date_breaks="1 month", date_labels="%b")
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(date_breaks="1 month")
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(kind="date", date_breaks="1 fortnight")

    def test_date_options_exclude_generic_ones(self) -> None:
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(kind="datetime", breaks=(0, 1), date_breaks="1 month")
        with self.assertRaises(ScaleConfigError):
            ScaleConfig(kind="datetime", labels="date", date_labels="%Y")

    def test_empty_and_none_specs_are_valid(self) -> None:
        ScaleConfig(breaks=None, minor_breaks=(), labels=None)
        ScaleConfig(breaks=(), labels=())

    def test_labeler_resolution(self) -> None:
        self.assertIsNone(ScaleConfig().labeler())
        self.assertEqual(ScaleConfig(labels="percent").labeler()([0.5]), ["50%"])
        self.assertEqual(ScaleConfig(kind="datetime", date_labels="%Y").labeler()([0.0]), ["1970"])


class ConfigFromDictTests(unittest.TestCase):
    def test_auto_bounds_in_limits(self) -> None:
        cfg = config_from_dict({"limits": ["auto", 10]})
        self.assertEqual(cfg.limits, (None, 10))

    def test_width_breaks_table(self) -> None:
        cfg = config_from_dict({"breaks": {"width": 800, "offset": 200}})
        self.assertEqual(cfg.breaks, BreaksWidth(800.0, 200.0))

    def test_target_count_table(self) -> None:
        cfg = config_from_dict({"breaks": {"n": 8}})
        self.assertEqual(cfg.n_breaks, 8)
        self.assertIs(cfg.breaks, AUTO)
        with self.assertRaises(ScaleConfigError):
            config_from_dict({"breaks": {"n": "many"}})

    def test_target_count_keeps_log_breaks(self) -> None:
        cfg = config_from_dict({"transform": "log10", "breaks": {"n": 5}})
        resolved = make_scale("y", cfg).resolve([1, 1e5])
        expected = make_scale("y", ScaleConfig(transform="log10", n_breaks=5)).resolve([1, 1e5])
        self.assertEqual(resolved.breaks, expected.breaks)
        for value in resolved.breaks:
            self.assertAlmostEqual(math.log10(value), round(math.log10(value)))

    def test_target_count_keeps_calendar_breaks(self) -> None:
        cfg = config_from_dict({"kind": "datetime", "breaks": {"n": 5}})
        resolved = make_scale("t", cfg).resolve([dt.datetime(2021, 1, 1), dt.datetime(2021, 12, 31)])
        self.assertGreater(len(resolved.breaks), 1)
        for value in resolved.breaks:
            when = from_seconds(value)
            self.assertEqual((when.day, when.hour, when.minute, when.second), (1, 0, 0, 0))

    def test_lists_become_tuples(self) -> None:
        cfg = config_from_dict({"breaks": [1, 2], "labels": ["one", "two"], "expand": [0.0, 1.0]})
        self.assertEqual(cfg.breaks, (1, 2))
        self.assertEqual(cfg.labels, ("one", "two"))
        self.assertEqual(cfg.get_expansion(), expansion(add=1.0))

    def test_discrete_limits_keep_auto_strings(self) -> None:
        cfg = config_from_dict({"kind": "discrete", "limits": ["auto", "manual"]})
        self.assertEqual(cfg.limits, ("auto", "manual"))

    def test_unknown_keys_raise(self) -> None:
        with self.assertRaises(ScaleConfigError):
            config_from_dict({"colour": "red"})
        with self.assertRaises(ScaleConfigError):
            config_from_dict({"breaks": {"width": 1, "phase": 2}})
        with self.assertRaises(ScaleConfigError):
            config_from_dict({"breaks": {"every": 2}})


class LoadConfigTests(unittest.TestCase):
    def test_loads_one_table_per_aesthetic(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "scales.toml"
            path.write_text(
                """
[x]
limits = [0, 100]
expand = 0
breaks = { width = 25 }

[y]
transform = "log10"
labels = "comma"

[when]
kind = "datetime"
date_breaks = "1 month"
date_labels = "%b"
""".strip(),
                encoding="utf-8",
            )
            configs = load_config(path)
        self.assertEqual(set(configs), {"x", "y", "when"})
        self.assertEqual(configs["x"].limits, (0, 100))
        self.assertTrue(configs["x"].get_expansion().is_zero)
        self.assertEqual(configs["y"].get_transform().name, "log10")
        self.assertEqual(configs["when"].date_breaks, "1 month")

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/scales.toml")

    def test_invalid_toml_and_fields_are_config_errors(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            bad = Path(td) / "bad.toml"
            bad.write_text("[x\nlimits = 1", encoding="utf-8")
            with self.assertRaises(ScaleConfigError):
                load_config(bad)

            wrong = Path(td) / "wrong.toml"
            wrong.write_text('[x]\ntransform = "cube"\n', encoding="utf-8")
            with self.assertRaisesRegex(ScaleConfigError, r"\[x\]"):
                load_config(wrong)

            flat = Path(td) / "flat.toml"
            flat.write_text('kind = "continuous"\n', encoding="utf-8")
            with self.assertRaises(ScaleConfigError):
                load_config(flat)


if __name__ == "__main__":
    unittest.main()
