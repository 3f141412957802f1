# -*- coding: utf-8 -*-
import json

from zipper_merge.main import main


def test_demo_mode_passes(capsys):
    assert main(["--mode", "demo"]) == 0
    out = capsys.readouterr().out
    assert "[FAIL]" not in out
    assert "[SUCCESS]" in out


def test_silent_sim_prints_only_json_stats(capsys):
    assert main(["--mode", "sim", "--silent", "--tmax", "5", "--seed", "3"]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 1
    assert lines[0].startswith("[JSON_STATS] ")
    stats = json.loads(lines[0][len("[JSON_STATS] "):])
    assert stats['sim_time'] <= 5.0
    assert stats['spawned'] > 0


def test_invalid_layout_fails(capsys):
    assert main(["--mode", "sim", "--silent", "--tmax", "1", "--blocked", "2"]) == 1
