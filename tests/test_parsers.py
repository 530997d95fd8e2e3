"""Tests for the command-output parsers."""

import pytest

from adminhub.core.models import DiskUsage, MemoryUsage, RunningServiceEntry
from adminhub.parsers import (
    parse_cpu_usage,
    parse_disk,
    parse_load_average,
    parse_memory,
    parse_running_services,
    parse_size,
    parse_uptime,
)

from tests.samples import (
    DF_OUTPUT,
    FREE_OUTPUT,
    SYSTEMCTL_OUTPUT,
    UPTIME_OUTPUT,
    VMSTAT_OUTPUT,
)

MALFORMED_INPUTS = [
    None,
    "",
    "   ",
    "\n\n\n",
    "garbage",
    "Mem:",
    "Mem: lots little",
    "Mem: 0 0 0",
    "/dev/sda 157G 12G 138G x% /",
    "/dev/sda /",
    "up",
    "load average: ., ., .",
    "UNIT LOAD ACTIVE SUB\nfoo.service loaded",
    "procs\nr b\n1 2 3",
    "procs\nr b\n" + " ".join(["x"] * 18),
    "\x00\xff�",
]


class TestParsersAreTotal:
    @pytest.mark.parametrize("text", MALFORMED_INPUTS)
    def test_cpu_returns_zero(self, text):
        assert parse_cpu_usage(text) == 0.0

    @pytest.mark.parametrize("text", MALFORMED_INPUTS)
    def test_memory_returns_zero_percent(self, text):
        assert parse_memory(text).percent == 0.0

    @pytest.mark.parametrize("text", MALFORMED_INPUTS)
    def test_disk_returns_empty(self, text):
        assert parse_disk(text) == DiskUsage()

    @pytest.mark.parametrize("text", MALFORMED_INPUTS)
    def test_uptime_returns_string(self, text):
        assert isinstance(parse_uptime(text), str)

    @pytest.mark.parametrize("text", MALFORMED_INPUTS)
    def test_load_average_returns_zero(self, text):
        assert parse_load_average(text) == 0.0

    @pytest.mark.parametrize("text", MALFORMED_INPUTS)
    def test_services_returns_list(self, text):
        assert parse_running_services(text) == []


class TestCpuUsage:
    def test_default_uses_most_recent_sample(self):
        # Last row has id=88; the since-boot row above it has id=99.
        assert parse_cpu_usage(VMSTAT_OUTPUT) == pytest.approx(12.0)

    def test_explicit_row_selects_since_boot_sample(self):
        assert parse_cpu_usage(VMSTAT_OUTPUT, row=2) == pytest.approx(1.0)

    def test_explicit_row_selects_interval_sample(self):
        assert parse_cpu_usage(VMSTAT_OUTPUT, row=3) == pytest.approx(12.0)

    def test_single_sample_output(self):
        text = "\n".join(VMSTAT_OUTPUT.splitlines()[:3])
        assert parse_cpu_usage(text) == pytest.approx(1.0)

    def test_header_rows_are_never_data(self):
        assert parse_cpu_usage(VMSTAT_OUTPUT, row=0) == 0.0
        assert parse_cpu_usage(VMSTAT_OUTPUT, row=1) == 0.0

    def test_explicit_row_counts_blank_lines(self):
        lines = VMSTAT_OUTPUT.splitlines()
        text = "\n".join(lines[:3] + [""] + lines[3:])
        assert parse_cpu_usage(text, row=3) == 0.0
        assert parse_cpu_usage(text, row=4) == pytest.approx(12.0)
        assert parse_cpu_usage(text) == pytest.approx(12.0)

    def test_row_out_of_range(self):
        assert parse_cpu_usage(VMSTAT_OUTPUT, row=10) == 0.0

    def test_short_row(self):
        text = "procs\n r b\n 1 0 0 100 200 300 0 0 5 6 7 8 9 90\n"
        assert parse_cpu_usage(text) == 0.0


class TestMemory:
    def test_binary_units(self):
        assert parse_memory("Mem: 8Gi 4Gi 4Gi 0 0 0") == MemoryUsage(percent=50.0, total="8Gi", used="4Gi")

    def test_full_free_output(self):
        result = parse_memory(FREE_OUTPUT)
        assert result.percent == pytest.approx(50.0)
        assert result.total == "8Gi"
        assert result.used == "4Gi"

    def test_mixed_units(self):
        result = parse_memory("Mem: 1Gi 256Mi 768Mi")
        assert result.percent == pytest.approx(25.0)

    def test_plain_bytes(self):
        result = parse_memory("Mem: 1000 250 750")
        assert result.percent == pytest.approx(25.0)
        assert result.total == "1000"

    def test_zero_total_keeps_raw_strings(self):
        assert parse_memory("Mem: 0 0 0") == MemoryUsage(percent=0.0, total="0", used="0")

    def test_no_mem_line(self):
        assert parse_memory("Swap: 2Gi 0B 2Gi") == MemoryUsage()


class TestDisk:
    def test_single_root_line(self):
        assert parse_disk("/dev/sda 157G 12G 138G 8% /") == DiskUsage(percent=8.0, total="157G", used="12G")

    def test_full_df_output_picks_root(self):
        assert parse_disk(DF_OUTPUT) == DiskUsage(percent=8.0, total="157G", used="12G")

    def test_ignores_non_root_mounts(self):
        assert parse_disk("/dev/sdb1 500G 250G 250G 50% /data") == DiskUsage()

    def test_ignores_non_device_root(self):
        assert parse_disk("overlay 100G 10G 90G 10% /") == DiskUsage()


class TestUptime:
    def test_bsd_style(self):
        text = "21:00 up 5 days, 6:13, 6 users, load averages: 1.52 1.60 1.71"
        assert parse_uptime(text) == "5 days, 6:13"

    def test_linux_style(self):
        assert parse_uptime(UPTIME_OUTPUT) == "3 days, 2:05"

    def test_fallback_without_user_clause(self):
        assert parse_uptime("12:00:00 up 3 min, load average: 0.00, 0.00, 0.00") == "3 min"

    def test_fallback_takes_rest_of_line(self):
        assert parse_uptime("up 42 days") == "42 days"

    def test_unknown(self):
        assert parse_uptime("the system is fine") == "Unknown"

    def test_load_average_linux(self):
        assert parse_load_average(UPTIME_OUTPUT) == pytest.approx(0.42)

    def test_load_average_bsd(self):
        assert parse_load_average("load averages: 1.52 1.60 1.71") == pytest.approx(1.52)


class TestRunningServices:
    def test_example_line_and_header(self):
        text = "nginx.service loaded active running Web server\nUNIT LOAD ACTIVE SUB DESCRIPTION"
        assert parse_running_services(text) == [
            RunningServiceEntry(name="nginx.service", status="active running", description="Web server")
        ]

    def test_full_listing_preserves_order_and_skips_legend(self):
        services = parse_running_services(SYSTEMCTL_OUTPUT)
        assert [s.name for s in services] == ["cron.service", "nginx.service", "postgresql.service"]
        assert services[1].description == "A high performance web server"
        assert services[2].status == "failed failed"

    def test_short_rows_are_dropped(self):
        assert parse_running_services("foo.service loaded active") == []

    def test_rows_without_unit_suffix_are_dropped(self):
        assert parse_running_services("something loaded active running Thing") == []

    def test_other_unit_types(self):
        services = parse_running_services("ssh.socket loaded active listening OpenBSD Secure Shell socket")
        assert services[0].status == "active listening"

    def test_no_description(self):
        services = parse_running_services("foo.service loaded active running")
        assert services[0].description == ""


class TestSize:
    @pytest.mark.parametrize(
        "value,expected",
        [("1Ki", 1024.0), ("1.5Mi", 1.5 * 1024**2), ("2Gi", 2.0 * 1024**3), ("512", 512.0)],
    )
    def test_conversions(self, value, expected):
        assert parse_size(value) == pytest.approx(expected)

    def test_rejects_non_numeric(self):
        with pytest.raises(ValueError):
            parse_size("lots")
