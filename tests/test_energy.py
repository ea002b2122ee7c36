import unittest

import numpy as np
import pandas as pd

from energy_MethodAttribution.core.columns import resolve_columns
from energy_MethodAttribution.core.energy import counter_total_J, integrate, overlap_seconds
from energy_MethodAttribution.core.errors import EmptyInputError, MissingColumnsError
from energy_MethodAttribution.core.model import ColumnRole, EnergyScope, ObservationWindow, PowerTable
from energy_MethodAttribution.loaders.power_csv_loader import parse_power_table

T0 = pd.Timestamp("2024-01-01 00:00:00", tz="UTC")


def _window(start_s, end_s):
    return ObservationWindow(T0 + pd.Timedelta(seconds=start_s), T0 + pd.Timedelta(seconds=end_s))


def _timed_table(header, rows, scope=EnergyScope()):
    """rows: (seconds after T0, value, ...) -> System Time table"""
    lines = [",".join(["System Time"] + header)]
    for sec, *values in rows:
        stamp = (T0 + pd.Timedelta(seconds=sec)).strftime("%Y-%m-%d %H:%M:%S.%f")
        lines.append(",".join([stamp] + [str(v) for v in values]))
    return parse_power_table(lines, scope=scope, tz="UTC")


def _elapsed_table(header, rows, scope=EnergyScope()):
    lines = [",".join(["Elapsed Time (sec)"] + header)]
    lines += [",".join(str(v) for v in row) for row in rows]
    return parse_power_table(lines, scope=scope)


ENERGY = ["Cumulative Processor Energy_0(Joules)"]
POWER = ["Processor Power_0(Watt)"]


class AlignedIntegrationTests(unittest.TestCase):
    def test_partial_overlap_scales_counter_deltas(self):
        table = _timed_table(ENERGY, [(0, 0), (10, 100), (20, 300)])
        res = integrate(table, _window(5, 15))
        self.assertAlmostEqual(150.0, res.joules, places=6)
        self.assertEqual("aligned-energy", res.strategy)
        self.assertEqual(0, res.counter_resets)

    def test_counter_reset_is_discarded_and_counted(self):
        table = _timed_table(ENERGY, [(0, 0), (10, 100), (20, 50), (30, 150)])
        res = integrate(table, _window(0, 30))
        self.assertAlmostEqual(200.0, res.joules, places=6)
        self.assertEqual(1, res.counter_resets)

    def test_power_uses_left_endpoint_rectangles(self):
        table = _timed_table(POWER, [(0, 10), (10, 20), (20, 30)])
        res = integrate(table, _window(5, 15))
        self.assertAlmostEqual(10 * 5 + 20 * 5, res.joules, places=6)
        self.assertEqual("aligned-power", res.strategy)

    def test_negative_power_contributes_nothing(self):
        table = _timed_table(POWER, [(0, -4), (10, 6), (20, 0)])
        res = integrate(table, _window(0, 20))
        self.assertAlmostEqual(60.0, res.joules, places=6)

    def test_rows_with_bad_timestamps_are_skipped(self):
        lines = ["System Time,Cumulative Processor Energy_0(Joules)",
                 "2024-01-01 00:00:00,0", "not-a-time,50", "2024-01-01 00:00:10,100"]
        table = parse_power_table(lines, tz="UTC")
        res = integrate(table, _window(0, 10))
        self.assertAlmostEqual(100.0, res.joules, places=6)

    def test_overlap_seconds(self):
        ov = overlap_seconds(np.array([0.0, 10.0, 30.0]), np.array([10.0, 20.0, 40.0]), 5.0, 15.0)
        self.assertEqual([5.0, 5.0, 0.0], ov.tolist())


class WholeFileFallbackTests(unittest.TestCase):
    def test_counter_series_with_reset_integrates_to_23(self):
        total, resets, used_last = counter_total_J(np.array([0.0, 5.0, 12.0, 9.0, 20.0]))
        self.assertEqual(23.0, total)
        self.assertEqual(1, resets)
        self.assertFalse(used_last)

        table = _elapsed_table(ENERGY, [(0, 0), (1, 5), (2, 12), (3, 9), (4, 20)])
        res = integrate(table, ObservationWindow())
        self.assertEqual(23.0, res.joules)
        self.assertEqual("file-energy", res.strategy)
        self.assertEqual(1, res.counter_resets)

    def test_no_positive_delta_uses_last_counter_value(self):
        table = _elapsed_table(ENERGY, [(0, 10), (1, 4)])
        res = integrate(table, ObservationWindow())
        self.assertEqual(4.0, res.joules)
        self.assertEqual("file-last-counter", res.strategy)

    def test_power_with_elapsed_time(self):
        table = _elapsed_table(POWER, [(0, 10), (1, -5), (2, 20), (3, 99)])
        res = integrate(table, ObservationWindow())
        self.assertEqual(30.0, res.joules)
        self.assertEqual("file-power", res.strategy)

    def test_degenerate_window_falls_back(self):
        table = _timed_table(ENERGY, [(0, 0), (10, 100), (20, 300)])
        res = integrate(table, _window(5, 5))
        self.assertEqual(300.0, res.joules)
        self.assertEqual("file-energy", res.strategy)

    def test_disjoint_window_falls_back(self):
        table = _timed_table(ENERGY, [(0, 0), (10, 100), (20, 300)])
        res = integrate(table, _window(3600, 3700))
        self.assertEqual(300.0, res.joules)

    def test_power_without_time_axis_is_missing_columns(self):
        table = parse_power_table([POWER[0], "5", "6"])
        with self.assertRaises(MissingColumnsError):
            integrate(table, ObservationWindow())

    def test_empty_rows(self):
        cols = resolve_columns(ENERGY)
        rows = pd.DataFrame(columns=["energy_J", "power_W", "scoped_energy_J",
                                     "scoped_power_W", "elapsed_s", "wall_clock"])
        with self.assertRaises(EmptyInputError):
            integrate(PowerTable(columns=cols, rows=rows), ObservationWindow())


class ScopedIntegrationTests(unittest.TestCase):
    HEADER = ["Processor Power_0(Watt)", "Cumulative Processor Energy_0(Joules)",
              "IA Power_0(Watt)", "Cumulative IA Energy_0(Joules)"]
    ROWS = [(0, 10, 0, 5, 0), (1, 10, 10, 5, 4), (2, 10, 20, 5, 9)]

    def test_package(self):
        res = integrate(_elapsed_table(self.HEADER, self.ROWS), ObservationWindow())
        self.assertEqual(20.0, res.joules)
        self.assertFalse(res.degraded)

    def test_core_zero_uses_per_core_column(self):
        table = _elapsed_table(self.HEADER, self.ROWS, EnergyScope("core", 0))
        res = integrate(table, ObservationWindow())
        self.assertEqual(9.0, res.joules)
        self.assertFalse(res.degraded)

    def test_domain_scope(self):
        table = _elapsed_table(self.HEADER, self.ROWS, EnergyScope("domain"))
        self.assertEqual(9.0, integrate(table, ObservationWindow()).joules)

    def test_unresolvable_core_redelegates_to_package(self):
        table = _elapsed_table(self.HEADER, self.ROWS, EnergyScope("core", 5))
        res = integrate(table, ObservationWindow())
        self.assertEqual(20.0, res.joules)
        self.assertTrue(res.degraded)
        self.assertEqual(EnergyScope("core", 5), res.scope)

    def test_scoped_power_only(self):
        header = ["Cumulative Processor Energy_0(Joules)", "Core 2 Power (W)"]
        rows = [(0, 0, 3), (1, 10, 3), (2, 20, 3)]
        res = integrate(_elapsed_table(header, rows, EnergyScope("core", 2)), ObservationWindow())
        self.assertEqual(6.0, res.joules)
        self.assertEqual("file-power", res.strategy)

    def test_scoped_power_without_time_axis_falls_back_to_package(self):
        lines = ["Cumulative Processor Energy_0(Joules),Core 2 Power (W)", "0,3", "10,3", "20,3"]
        table = parse_power_table(lines, scope=EnergyScope("core", 2))
        res = integrate(table, ObservationWindow())
        self.assertEqual(20.0, res.joules)
        self.assertEqual("file-energy", res.strategy)
        self.assertTrue(res.degraded)

    def test_scoped_zero_energy_falls_back_to_package(self):
        header = ["Cumulative Processor Energy_0(Joules)", "Core 2 Power (W)"]
        rows = [(0, 0, 0), (1, 10, 0), (2, 20, 0)]
        res = integrate(_elapsed_table(header, rows, EnergyScope("core", 2)), ObservationWindow())
        self.assertEqual(20.0, res.joules)
        self.assertTrue(res.degraded)

    def test_core_zero_without_core_or_domain_columns_uses_package(self):
        header = ["Processor Power_0(Watt)", "Cumulative Processor Energy_0(Joules)"]
        rows = [(0, 10, 0), (1, 10, 10), (2, 10, 20)]
        table = _elapsed_table(header, rows, EnergyScope("core", 0))
        self.assertTrue(table.columns.degraded)
        self.assertFalse(table.columns.has(ColumnRole.SCOPED_ENERGY))
        res = integrate(table, ObservationWindow())
        self.assertEqual(20.0, res.joules)
        self.assertTrue(res.degraded)
        self.assertEqual(EnergyScope("core", 0), res.scope)


if __name__ == "__main__":
    unittest.main()
