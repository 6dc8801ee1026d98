"""Tests for source records and the on-disk store readers."""

import json

from agentwatch.sources import (
    HookSession,
    ManagedSession,
    coerce_records,
    iter_jsonl,
    load_hook_sessions,
    load_managed_sessions,
    load_process_snapshots,
    load_tool_usages,
    load_transcript_messages,
    load_transcripts,
)
from tests.conftest import make_hook_session, make_tool_usage, make_transcript


def _write_jsonl(path, records):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n")


class TestRecords:
    """Tests for record validation."""

    def test_hook_session_accepts_camel_and_snake_case(self):
        camel = HookSession.model_validate(make_hook_session(toolCount=3))
        snake = HookSession.model_validate(
            {"session_id": "s1", "cwd": "/proj", "start_time": 1_000_000, "tool_count": 3}
        )

        assert camel == snake

    def test_tools_used_list_is_counted(self):
        hook = HookSession.model_validate(
            make_hook_session(toolsUsed=["Bash", "Read", "Bash"])
        )
        assert hook.tools_used == {"Bash": 2, "Read": 1}

    def test_commit_hashes_are_accepted(self):
        hook = HookSession.model_validate(make_hook_session(commits=["abc123"]))
        assert hook.commits[0].hash == "abc123"
        assert hook.to_dict()["commit_count"] == 1

    def test_unknown_fields_are_ignored(self):
        hook = HookSession.model_validate(make_hook_session(somethingNew=True))
        assert hook.session_id == "s1"

    def test_managed_duration(self):
        managed = ManagedSession.model_validate(
            {"id": "m1", "cwd": "/proj", "startedAt": 1_000, "endedAt": 4_000}
        )
        assert managed.to_dict()["duration_ms"] == 3_000

        running = ManagedSession.model_validate(
            {"id": "m2", "cwd": "/proj", "startedAt": 1_000}
        )
        assert running.to_dict(now_ms=2_000)["duration_ms"] == 1_000
        assert running.to_dict()["duration_ms"] is None

    def test_coerce_records_counts_failures(self):
        records, dropped = coerce_records(
            HookSession,
            [make_hook_session(), {"cwd": "/proj"}, make_hook_session("s2", toolCount=-1)],
        )

        assert [r.session_id for r in records] == ["s1"]
        assert dropped == 2

    def test_coerce_records_passes_instances_through(self):
        hook = HookSession.model_validate(make_hook_session())
        records, dropped = coerce_records(HookSession, [hook])
        assert records[0] is hook
        assert dropped == 0


class TestIterJsonl:
    """Tests for iter_jsonl."""

    def test_skips_blank_malformed_and_non_object_lines(self, tmp_path):
        path = tmp_path / "data.jsonl"
        _write_jsonl(path, [{"a": 1}, "", "{not json", "[1, 2]", {"b": 2}])

        assert list(iter_jsonl(path)) == [{"a": 1}, {"b": 2}]

    def test_missing_file_yields_nothing(self, tmp_path):
        assert list(iter_jsonl(tmp_path / "missing.jsonl")) == []

    def test_undecodable_line_is_skipped(self, tmp_path):
        path = tmp_path / "data.jsonl"
        path.write_bytes(b'{"a": 1}\n\xff\xfe{"b": 2}\n{"c": 3}\n')

        assert list(iter_jsonl(path)) == [{"a": 1}, {"c": 3}]


class TestLoadHookData:
    """Tests for hook session and tool usage readers."""

    def test_latest_record_per_session_wins(self, tmp_path):
        _write_jsonl(
            tmp_path / "sessions_2025-01-01.jsonl",
            [make_hook_session(), make_hook_session(endTime=1_500_000)],
        )

        sessions = load_hook_sessions(tmp_path)

        assert len(sessions) == 1
        assert sessions[0]["endTime"] == 1_500_000

    def test_legacy_file_is_read_before_dated_files(self, tmp_path):
        _write_jsonl(tmp_path / "sessions.jsonl", [make_hook_session(toolCount=1)])
        _write_jsonl(
            tmp_path / "sessions_2025-01-02.jsonl", [make_hook_session(toolCount=2)]
        )

        sessions = load_hook_sessions(tmp_path)

        assert sessions[0]["toolCount"] == 2

    def test_since_filters_old_sessions(self, tmp_path):
        _write_jsonl(
            tmp_path / "sessions_2025-01-01.jsonl",
            [make_hook_session("old", startTime=1_000), make_hook_session("new", startTime=9_000)],
        )

        sessions = load_hook_sessions(tmp_path, since_ms=5_000)

        assert [s["sessionId"] for s in sessions] == ["new"]

    def test_missing_directory(self, tmp_path):
        assert load_hook_sessions(tmp_path / "missing") == []
        assert load_tool_usages(tmp_path / "missing") == {}

    def test_tool_usages_grouped_by_session(self, tmp_path):
        _write_jsonl(
            tmp_path / "tool_usages_2025-01-01.jsonl",
            [
                make_tool_usage("t1", 1_000, "s1"),
                make_tool_usage("t2", 2_000, "s2"),
                make_tool_usage("t3", 3_000, "s1"),
                {"toolUseId": "orphan", "timestamp": 4_000},
            ],
        )

        usages = load_tool_usages(tmp_path)

        assert sorted(usages) == ["s1", "s2"]
        assert [u["toolUseId"] for u in usages["s1"]] == ["t1", "t3"]


class TestLoadOtherSources:
    """Tests for transcript, snapshot and managed session readers."""

    def test_transcripts_filtered_by_modification_time(self, tmp_path):
        index = tmp_path / "transcripts" / "index.jsonl"
        _write_jsonl(
            index,
            [make_transcript("a", modifiedAt=1_000), make_transcript("b", modifiedAt=9_000)],
        )

        assert len(load_transcripts(index)) == 2
        assert [t["id"] for t in load_transcripts(index, since_ms=5_000)] == ["b"]

    def test_missing_index(self, tmp_path):
        assert load_transcripts(tmp_path / "index.jsonl") == []

    def test_process_snapshots(self, tmp_path):
        _write_jsonl(
            tmp_path / "snapshots_2025-01-01.jsonl",
            [{"timestamp": 1_000, "pid": 1}, {"timestamp": 9_000, "pid": 2}],
        )

        snapshots = load_process_snapshots(tmp_path, since_ms=5_000)

        assert [s["pid"] for s in snapshots] == [2]

    def test_managed_sessions_skip_unreadable_files(self, tmp_path):
        (tmp_path / "m1.json").write_text(
            json.dumps({"id": "m1", "cwd": "/proj", "startedAt": 1_000})
        )
        (tmp_path / "broken.json").write_text("{")
        (tmp_path / "list.json").write_text("[]")

        sessions = load_managed_sessions(tmp_path)

        assert [s["id"] for s in sessions] == ["m1"]

    def test_managed_session_with_invalid_encoding_is_skipped(self, tmp_path):
        (tmp_path / "m1.json").write_text(
            json.dumps({"id": "m1", "cwd": "/proj", "startedAt": 1_000})
        )
        (tmp_path / "m2.json").write_bytes(b'{"id": "m2", "cwd": "\xff"}')

        assert [s["id"] for s in load_managed_sessions(tmp_path)] == ["m1"]

    def test_transcript_messages(self, tmp_path):
        path = tmp_path / "a.jsonl"
        _write_jsonl(path, [{"role": "user"}, {"role": "assistant"}])

        assert [m["role"] for m in load_transcript_messages(path)] == [
            "user",
            "assistant",
        ]
        assert load_transcript_messages(tmp_path / "missing.jsonl") == []

    def test_corrupt_transcript_keeps_readable_messages(self, tmp_path):
        path = tmp_path / "a.jsonl"
        path.write_bytes(b'{"role": "user"}\n\xff\xfe{"role": "x"}\n{"role": "assistant"}\n')

        assert [m["role"] for m in load_transcript_messages(path)] == [
            "user",
            "assistant",
        ]
