import io
import json

from rich.console import Console

from cli import main as cli
from cli.ui import ProgressBar, print_banners, print_summary
from core.errors import ScanIncompleteError
from core.models import PortResult, Result
from core.progress import QueueProgress


def test_parse_ports_list_overrides_range():
    assert cli.parse_ports("22, 80,abc,443", 1, 1024) == [22, 80, 443]
    assert cli.parse_ports("", 20, 23) == [20, 21, 22, 23]
    assert cli.parse_ports(None, 5, 4) == []


def test_scan_without_target_fails(capsys):
    assert cli.main(["scan", "--ports", "80"]) == 1
    assert "No target specified" in capsys.readouterr().out


def test_scan_without_valid_ports_fails(capsys):
    assert cli.main(["scan", "--target", "127.0.0.1", "--ports", "x,y"]) == 1
    assert "No valid ports" in capsys.readouterr().out


def test_scan_rejects_zero_workers(capsys):
    assert cli.main(["scan", "--target", "127.0.0.1", "--ports", "80", "--workers", "0"]) == 1
    assert "Invalid configuration" in capsys.readouterr().out


def test_incomplete_scan_exits_nonzero(monkeypatch, capsys):
    def scan_many(self, *a, **kw):
        raise ScanIncompleteError("127.0.0.1: 1 of 2 port outcomes collected")

    monkeypatch.setattr(cli.Orchestrator, "scan_many", scan_many)
    assert cli.main(["scan", "--target", "127.0.0.1", "--ports", "80,81", "--no-progress"]) == 1
    assert "Scan incomplete" in capsys.readouterr().out


def test_scan_prints_summary_and_writes_json(loopback, closed_port, tmp_path, capsys):
    srv = loopback(b"SMTP ready\r\n")
    code = cli.main(
        [
            "scan",
            "--target",
            "127.0.0.1",
            "--ports",
            f"{closed_port},{srv.port}",
            "--workers",
            "2",
            "--timeout",
            "1",
            "--max-retries",
            "1",
            "--json",
            "--out-dir",
            str(tmp_path),
        ]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "SCAN START: 127.0.0.1" in out
    assert "SCAN SUMMARY" in out
    assert "SMTP ready" in out
    assert "BANNERS" in out

    files = list(tmp_path.glob("*-cli-pscan.json"))
    assert len(files) == 1
    data = json.loads(files[0].read_text())
    assert data["targets"] == ["127.0.0.1"]
    assert data["results"][0]["open_ports"] == [{"port": srv.port, "banner": "SMTP ready"}]


def test_progress_bar_finishes_on_close():
    sink = QueueProgress(total=4)
    console = Console(file=io.StringIO(), width=100)
    bar = ProgressBar(sink, description="10.0.0.1", console=console).start()
    for _ in range(4):
        sink.on_port_processed()
    sink.close()
    bar.join(2)
    assert bar.current == 4
    assert bar.finished
    assert "4/4" in console.file.getvalue()


def test_summary_and_banner_panels():
    res = Result(
        target="10.0.0.1",
        open_ports=[PortResult(port=22, banner="SSH-2.0-OpenSSH"), PortResult(port=80)],
        total_ports=3,
        open_count=2,
        duration=0.25,
        cancelled=True,
    )
    console = Console(file=io.StringIO(), width=120)
    print_summary(res, [21, 22, 80], console=console)
    print_banners(res, console=console)
    text = console.file.getvalue()
    assert "SCAN SUMMARY" in text
    assert "22, 80" in text
    assert "0.250s" in text and "cancelled" in text
    assert "SSH-2.0-OpenSSH" in text
    assert "<no banner>" in text
