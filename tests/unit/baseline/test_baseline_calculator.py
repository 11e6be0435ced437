"""Tests for the historical baseline calculator."""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from riskgate.baseline.calculator import BaselineCalculator, parse_transfer_amount
from riskgate.baseline.partitions import LocalPartitionSource, PartitionSource, S3PartitionSource
from riskgate.common.exceptions import HistoryUnavailableError


D = date(2026, 1, 29)


def transfer_line(user_id: str, amount) -> str:
    return json.dumps({"eventType": "TRANSFER", "userId": user_id, "amount": amount})


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path


@pytest.fixture
def calculator(log_dir):
    return BaselineCalculator(LocalPartitionSource(log_dir))


def write_partition(log_dir, day: date, lines):
    (log_dir / f"fds-{day.isoformat()}.json").write_text("\n".join(lines) + "\n")


class TestParseTransferAmount:
    def test_matching_line(self):
        assert parse_transfer_amount(transfer_line("u1", 100), "u1") == 100.0

    def test_string_amount(self):
        assert parse_transfer_amount(transfer_line("u1", " 250 "), "u1") == 250.0

    def test_other_user_or_type_ignored(self):
        assert parse_transfer_amount(transfer_line("u2", 100), "u1") is None
        login = json.dumps({"eventType": "LOGIN", "userId": "u1"})
        assert parse_transfer_amount(login, "u1") is None

    def test_missing_amount_ignored(self):
        line = json.dumps({"eventType": "TRANSFER", "userId": "u1"})
        assert parse_transfer_amount(line, "u1") is None

    def test_oversized_amount_raises_value_error(self):
        line = json.dumps({"eventType": "TRANSFER", "userId": "u1", "amount": 10 ** 400})
        with pytest.raises(ValueError, match="out of range"):
            parse_transfer_amount(line, "u1")

    @pytest.mark.parametrize("line", ["not json", "[1, 2]", transfer_line("u1", "abc"), transfer_line("u1", -5)])
    def test_malformed_lines_raise(self, line):
        with pytest.raises(ValueError):
            parse_transfer_amount(line, "u1")


class TestBaselineCalculator:
    """Average of the most recent day with matching transfers."""

    def test_mean_for_as_of_date(self, calculator, log_dir):
        write_partition(log_dir, D, [transfer_line("u1", 100), transfer_line("u1", 300)])
        assert calculator.average_amount("u1", D) == 200.0

    def test_falls_back_to_earlier_day(self, calculator, log_dir):
        write_partition(log_dir, date(2026, 1, 27), [transfer_line("u1", 50)])
        assert calculator.average_amount("u1", D) == 50.0

    def test_most_recent_day_wins(self, calculator, log_dir):
        write_partition(log_dir, date(2026, 1, 28), [transfer_line("u1", 10)])
        write_partition(log_dir, date(2026, 1, 27), [transfer_line("u1", 1000)])
        assert calculator.average_amount("u1", D) == 10.0

    def test_day_without_matches_is_skipped(self, calculator, log_dir):
        write_partition(log_dir, D, [transfer_line("u2", 999)])
        write_partition(log_dir, date(2026, 1, 26), [transfer_line("u1", 70)])
        assert calculator.average_amount("u1", D) == 70.0

    def test_no_history_returns_zero(self, calculator):
        assert calculator.average_amount("u1", D) == 0.0

    def test_history_beyond_lookback_ignored(self, calculator, log_dir):
        write_partition(log_dir, date(2026, 1, 21), [transfer_line("u1", 500)])
        assert calculator.average_amount("u1", D) == 0.0

    def test_lookback_edge_included(self, calculator, log_dir):
        write_partition(log_dir, date(2026, 1, 22), [transfer_line("u1", 500)])
        assert calculator.average_amount("u1", D) == 500.0

    def test_malformed_lines_skipped(self, calculator, log_dir):
        write_partition(log_dir, D, [
            "garbage",
            "",
            transfer_line("u1", 100),
            transfer_line("u1", "n/a"),
            transfer_line("u1", 200),
        ])
        assert calculator.average_amount("u1", D) == 150.0

    def test_undecodable_line_skipped(self, calculator, log_dir):
        (log_dir / f"fds-{D.isoformat()}.json").write_bytes(
            transfer_line("u1", 100).encode() + b"\n"
            + b'{"bad": "\xff\xfe"}\n'
            + transfer_line("u1", 300).encode() + b"\n"
        )
        assert calculator.average_amount("u1", D) == 200.0

    def test_oversized_amount_skipped(self, calculator, log_dir):
        write_partition(log_dir, D, [
            transfer_line("u1", 100),
            transfer_line("u1", 10 ** 400),
            transfer_line("u1", 300),
        ])
        assert calculator.average_amount("u1", D) == 200.0

    def test_deeply_nested_line_skipped(self, calculator, log_dir):
        write_partition(log_dir, D, [
            transfer_line("u1", 100),
            "[" * 100_000 + "]" * 100_000,
            transfer_line("u1", 300),
        ])
        assert calculator.average_amount("u1", D) == 200.0

    def test_undecodable_s3_line_skipped(self):
        body = MagicMock()
        body.iter_lines.return_value = iter([
            transfer_line("u1", 100).encode(),
            b'{"bad": "\xff\xfe"}',
            transfer_line("u1", 300).encode(),
        ])
        s3_client = MagicMock()
        s3_client.get_object.return_value = {"Body": body}
        source = S3PartitionSource(bucket_name="history-bucket", s3_client=s3_client)
        calculator = BaselineCalculator(source, lookback_days=0)

        assert calculator.average_amount("u1", D) == 200.0
        body.close.assert_called_once()

    def test_scan_counter(self, calculator):
        calculator.average_amount("u1", D)
        assert calculator.scans_performed == 8

    def test_broken_partition_discards_partial_results(self):
        def broken_read(day):
            yield transfer_line("u1", 1_000_000)
            raise HistoryUnavailableError("read failed", partition="p")

        source = MagicMock(spec=PartitionSource)
        source.read_lines.side_effect = broken_read
        calculator = BaselineCalculator(source, lookback_days=0)

        assert calculator.average_amount("u1", D) == 0.0

    def test_negative_lookback_rejected(self, log_dir):
        with pytest.raises(ValueError):
            BaselineCalculator(LocalPartitionSource(log_dir), lookback_days=-1)
