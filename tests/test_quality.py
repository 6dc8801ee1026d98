"""Tests for the session quality score."""

from agentwatch.share import quality_signals, score_session


def _usage(timestamp, success=True, command=None):
    usage = {"tool_name": "Bash", "timestamp": timestamp, "success": success}
    if command is not None:
        usage["tool_input"] = {"command": command}
    return usage


class TestScoreSession:
    """Tests for score_session."""

    def test_every_signal(self):
        data = {
            "session": {"commits": [{"hash": "abc"}], "end_time": 5, "tool_count": 3},
            "tool_usages": [_usage(0), _usage(60_000), _usage(120_000)],
        }

        assert score_session(data) == 100

    def test_empty_session(self):
        assert score_session({}) == 0

    def test_odd_types_count_as_missing(self):
        assert score_session({"session": "x", "tool_usages": "y"}) == 0

    def test_high_failure_rate(self):
        usages = [_usage(i * 1_000, success=i >= 2) for i in range(5)]

        signals = quality_signals({"tool_usages": usages})

        assert signals.low_failure_rate is False
        assert signals.tool_activity is True

    def test_long_idle_gap(self):
        usages = [_usage(0), _usage(10 * 60 * 1000)]

        assert quality_signals({"tool_usages": usages}).steady_pacing is False

    def test_git_commit_command_counts_as_commit(self):
        data = {"tool_usages": [_usage(0, command="git commit -m 'fix'")]}

        assert quality_signals(data).has_commits is True

    def test_tool_count_from_session(self):
        data = {"session": {"tool_count": 4}}

        assert quality_signals(data).tool_activity is True
        assert score_session(data) == 15

    def test_unknown_outcomes_are_not_scored(self):
        usages = [_usage(0, success=None), _usage(1_000, success=None)]

        assert quality_signals({"tool_usages": usages}).low_failure_rate is False
