import csv
import io
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared.output import TamperSeekOutput, format_results_table
from shared.results import HostResult, summarize_results
from shared.statuses import ProbeStatus

RESULTS = [
    HostResult("SERVER1", ProbeStatus.PROTECTED, tested_write=False, tested_stop=True,
               stop_status=ProbeStatus.PROTECTED),
    HostResult("SERVER2", ProbeStatus.NOT_PROTECTED, tested_write=True, tested_stop=True,
               stop_status=ProbeStatus.PROTECTED, write_status=ProbeStatus.NOT_PROTECTED),
    HostResult("SERVER1", ProbeStatus.OFFLINE, tested_write=True, tested_stop=True),
]


def test_table_has_header_and_row_per_result():
    table = format_results_table(RESULTS)
    lines = table.splitlines()

    assert lines[0].split() == ["System", "Status", "TestCanWrite", "TestCanStop",
                                "StopProbeStatus", "WriteProbeStatus"]
    assert len(lines) == 2 + len(RESULTS)
    assert lines[2].split() == ["SERVER1", "Protected", "False", "True", "Protected", "-"]
    assert lines[4].split()[:2] == ["SERVER1", "Offline"]


def test_colored_table_wraps_status_only():
    out = TamperSeekOutput(no_colors=False)
    table = out.render_results(RESULTS[:1], "table")
    assert "\033[92m" in table
    assert "SERVER1" in table

    plain = TamperSeekOutput(no_colors=True).render_results(RESULTS[:1], "table")
    assert "\033[" not in plain


def test_csv_rows_in_input_order():
    text = TamperSeekOutput(no_colors=True).render_results(RESULTS, "csv")
    rows = list(csv.DictReader(io.StringIO(text)))

    assert [r["System"] for r in rows] == ["SERVER1", "SERVER2", "SERVER1"]
    assert rows[1]["Status"] == "NotProtected"
    assert rows[0]["WriteProbeStatus"] == ""


def test_json_keeps_booleans_and_nulls():
    data = json.loads(TamperSeekOutput().render_results(RESULTS, "json"))

    assert data[0] == {
        "System": "SERVER1",
        "Status": "Protected",
        "TestCanWrite": False,
        "TestCanStop": True,
        "StopProbeStatus": "Protected",
        "WriteProbeStatus": None,
    }


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        TamperSeekOutput().render_results(RESULTS, "xml")


def test_write_results_to_file(tmp_path):
    stream = io.StringIO()
    out = TamperSeekOutput(no_colors=False, stream=stream)
    target = tmp_path / "results.json"

    out.write_results(RESULTS, "json", str(target))

    assert json.loads(target.read_text(encoding="utf-8"))[1]["System"] == "SERVER2"
    assert "Results written to" in stream.getvalue()


def test_quiet_mode_still_prints_results():
    stream = io.StringIO()
    out = TamperSeekOutput(quiet=True, no_colors=True, stream=stream)

    out.info("progress")
    out.write_results(RESULTS, "csv")

    assert "progress" not in stream.getvalue()
    assert "SERVER2" in stream.getvalue()


def test_errors_go_to_error_stream_even_when_quiet():
    err_stream = io.StringIO()
    out = TamperSeekOutput(quiet=True, no_colors=True, err_stream=err_stream)

    out.error("boom")

    assert "boom" in err_stream.getvalue()


def test_rollup_summary_lists_flagged_hosts():
    stream = io.StringIO()
    out = TamperSeekOutput(no_colors=True, stream=stream)

    out.print_rollup_summary(summarize_results(RESULTS, 1.5))

    text = stream.getvalue()
    assert "Hosts tested:     3" in text
    assert "Hosts requiring attention: SERVER2" in text


def test_summary_counts_duplicates_per_row():
    summary = summarize_results(RESULTS)

    assert summary.hosts_tested == 3
    assert summary.protected_hosts == 1
    assert summary.unprotected_hosts == 1
    assert summary.status_counts["Offline"] == 1
