"""Tests for managed session, process snapshot and project attachment."""

from agentwatch.correlation import (
    attach_managed_sessions,
    attach_process_snapshots,
    attach_projects,
    correlate,
    get_correlation_stats,
)
from tests.conftest import make_hook_session, make_transcript

NOW_MS = 2_000_000


def _managed(managed_id="m1", **overrides):
    record = {
        "id": managed_id,
        "prompt": "fix the tests",
        "cwd": "/proj",
        "startedAt": 1_000_500,
        "endedAt": 1_100_000,
        "pid": 42,
        "status": "completed",
    }
    record.update(overrides)
    return record


def _snapshot(pid, timestamp, **overrides):
    record = {"timestamp": timestamp, "pid": pid, "label": "claude"}
    record.update(overrides)
    return record


class TestAttachManagedSessions:
    """Tests for attach_managed_sessions."""

    def test_overlapping_run_in_same_directory_is_attached(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])

        result = attach_managed_sessions(conversations, [_managed()], NOW_MS)

        assert len(result) == 1
        assert result[0].managed_session.id == "m1"
        assert result[0].pid == 42

    def test_inputs_are_not_modified(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])

        attach_managed_sessions(conversations, [_managed()], NOW_MS)

        assert conversations[0].managed_session is None

    def test_closest_start_wins(self):
        conversations = correlate(
            [
                make_hook_session("s1", startTime=1_000_000),
                make_hook_session("s2", startTime=1_100_000),
            ],
            [],
        )

        result = attach_managed_sessions(
            conversations, [_managed(startedAt=1_090_000, endedAt=None)], NOW_MS
        )

        by_id = {c.correlation_id: c for c in result}
        assert by_id["s2"].managed_session is not None
        assert by_id["s1"].managed_session is None

    def test_each_conversation_takes_one_run(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])

        result = attach_managed_sessions(
            conversations,
            [_managed("m1"), _managed("m2", startedAt=1_000_600)],
            NOW_MS,
        )

        assert len(result) == 2
        assert result[0].correlation_id != result[1].correlation_id
        leftover = next(c for c in result if c.hook_session is None)
        assert leftover.managed_session.id == "m2"
        assert leftover.match_type == "unmatched"

    def test_unmatched_run_becomes_managed_only_conversation(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])

        result = attach_managed_sessions(
            conversations, [_managed(cwd="/elsewhere", startedAt=1_500_000)], NOW_MS
        )

        assert len(result) == 2
        managed_only = result[0]
        assert managed_only.match_type == "unmatched"
        assert managed_only.correlation_id.startswith("conv-")
        assert managed_only.cwd == "/elsewhere"
        assert managed_only.start_time == 1_500_000

        stats = get_correlation_stats(result)
        assert stats.managed_only == 1
        assert stats.unmatched == 1
        assert stats.with_managed_session == 0

    def test_managed_only_ids_are_stable(self):
        first = attach_managed_sessions([], [_managed()], NOW_MS)
        second = attach_managed_sessions([], [_managed()], NOW_MS)

        assert first[0].correlation_id == second[0].correlation_id

    def test_run_outside_window_is_not_attached(self):
        conversations = correlate([make_hook_session(endTime=1_050_000)], [])

        result = attach_managed_sessions(
            conversations,
            [_managed(startedAt=1_060_000, endedAt=1_070_000)],
            NOW_MS,
        )

        hook_conv = next(c for c in result if c.hook_session is not None)
        assert hook_conv.managed_session is None
        assert sum(1 for c in result if c.match_type == "unmatched") == 1

    def test_counts_conversations_with_runs(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])

        result = attach_managed_sessions(conversations, [_managed()], NOW_MS)

        assert get_correlation_stats(result).with_managed_session == 1


class TestAttachProcessSnapshots:
    """Tests for attach_process_snapshots."""

    def test_snapshot_with_matching_pid_is_attached(self):
        conversations = correlate([make_hook_session(pid=42, endTime=1_200_000)], [])

        result = attach_process_snapshots(
            conversations,
            [_snapshot(42, 1_050_000), _snapshot(7, 1_060_000)],
            NOW_MS,
        )

        assert [s.pid for s in result[0].process_snapshots] == [42]

    def test_pid_inferred_from_managed_run(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])
        conversations = attach_managed_sessions(conversations, [_managed()], NOW_MS)

        result = attach_process_snapshots(
            conversations, [_snapshot(42, 1_050_000)], NOW_MS
        )

        assert len(result[0].process_snapshots) == 1

    def test_cwd_used_when_no_pid_is_known(self):
        conversations = correlate([make_hook_session(endTime=1_200_000)], [])

        result = attach_process_snapshots(
            conversations,
            [
                _snapshot(99, 1_050_000, cwd="/proj"),
                _snapshot(98, 1_050_000, cwd="/other"),
            ],
            NOW_MS,
        )

        assert [s.pid for s in result[0].process_snapshots] == [99]

    def test_snapshot_outside_window_is_ignored(self):
        conversations = correlate([make_hook_session(pid=42, endTime=1_200_000)], [])

        result = attach_process_snapshots(
            conversations, [_snapshot(42, 1_300_000)], NOW_MS
        )

        assert result[0].process_snapshots == []

    def test_open_session_window_extends_to_now(self):
        conversations = correlate([make_hook_session(pid=42)], [])

        result = attach_process_snapshots(
            conversations, [_snapshot(42, 1_900_000)], NOW_MS
        )

        assert len(result[0].process_snapshots) == 1

    def test_snapshots_are_sorted(self):
        conversations = correlate([make_hook_session(pid=42, endTime=1_200_000)], [])

        result = attach_process_snapshots(
            conversations,
            [_snapshot(42, 1_150_000), _snapshot(42, 1_010_000)],
            NOW_MS,
        )

        timestamps = [s.timestamp for s in result[0].process_snapshots]
        assert timestamps == [1_010_000, 1_150_000]

    def test_malformed_snapshots_are_skipped(self):
        conversations = correlate([make_hook_session(pid=42, endTime=1_200_000)], [])

        result = attach_process_snapshots(
            conversations, [{"pid": 42}, _snapshot(42, 1_050_000)], NOW_MS
        )

        assert len(result[0].process_snapshots) == 1

    def test_pid_match_beats_cwd_fallback(self):
        conversations = correlate(
            [make_hook_session("hook", pid=42)],
            [make_transcript("tr", startTime=1_500_000)],
        )
        assert [c.correlation_id for c in conversations] == ["tr", "hook"]

        result = attach_process_snapshots(
            conversations, [_snapshot(42, 1_900_000, cwd="/proj")], NOW_MS
        )

        by_id = {c.correlation_id: c for c in result}
        assert [s.pid for s in by_id["hook"].process_snapshots] == [42]
        assert by_id["tr"].process_snapshots == []

    def test_unclaimed_pid_falls_back_to_cwd(self):
        conversations = correlate(
            [make_hook_session("hook", pid=42)],
            [make_transcript("tr", startTime=1_500_000)],
        )

        result = attach_process_snapshots(
            conversations, [_snapshot(77, 1_900_000, cwd="/proj")], NOW_MS
        )

        by_id = {c.correlation_id: c for c in result}
        assert [s.pid for s in by_id["tr"].process_snapshots] == [77]
        assert by_id["hook"].process_snapshots == []


class TestAttachProjects:
    """Tests for attach_projects."""

    PROJECTS = [
        {"id": "web", "name": "Web", "paths": ["/work/web"]},
        {"id": "all", "name": "Everything", "paths": ["/work"]},
    ]

    def _conversations(self, *cwds):
        return correlate(
            [
                make_hook_session(f"s{i}", cwd=cwd, startTime=1_000 * i)
                for i, cwd in enumerate(cwds, start=1)
            ],
            [],
        )

    def test_first_matching_project_wins(self):
        conversations = self._conversations("/work/web/src", "/work/api")

        result = attach_projects(conversations, self.PROJECTS)

        by_cwd = {c.cwd: c.project.id for c in result}
        assert by_cwd == {"/work/web/src": "web", "/work/api": "all"}

    def test_project_order_matters(self):
        conversations = self._conversations("/work/web/src")

        result = attach_projects(conversations, list(reversed(self.PROJECTS)))

        assert result[0].project.id == "all"

    def test_prefix_respects_path_boundaries(self):
        conversations = self._conversations("/workshop")

        result = attach_projects(conversations, self.PROJECTS)

        assert result[0].project is None

    def test_project_appears_in_dict(self):
        conversations = self._conversations("/work/web")

        result = attach_projects(conversations, self.PROJECTS)

        assert result[0].to_dict()["project"] == {"id": "web", "name": "Web"}
