import pytest

from stream_config import (
    DECODER_LOCK_MARKER,
    STREAM_ERROR_MARKER,
    TS_LOCK_MARKER,
    MarkerRule,
    Precedence,
    long_push_profile,
    pull_profile,
    push_profile,
)


class TestPullProfile:
    def test_default_duration(self):
        profile = pull_profile()

        assert profile.rules == (
            MarkerRule(TS_LOCK_MARKER, True, 15),
            MarkerRule(STREAM_ERROR_MARKER, False, 5),
        )
        assert profile.hard_timeout == 20

    @pytest.mark.parametrize("duration", [1, 15, 100])
    def test_success_hold_and_timeout_follow_duration(self, duration):
        profile = pull_profile(duration)

        assert profile.rules[0].confirm_delay == duration + 5
        assert profile.rules[1].confirm_delay == 5
        assert profile.hard_timeout == duration + 10


class TestPushProfile:
    def test_default_values(self):
        profile = push_profile()

        assert profile.rules == (
            MarkerRule(DECODER_LOCK_MARKER, True, 15),
            MarkerRule(STREAM_ERROR_MARKER, False, 5),
        )
        assert profile.hard_timeout == 35

    def test_short_duration_keeps_fixed_upper_bound(self):
        assert push_profile(5).hard_timeout == 35

    def test_long_duration_extends_timeout_past_confirmation(self):
        profile = push_profile(60)

        assert profile.rules[0].confirm_delay == 60
        assert profile.hard_timeout == 65


class TestLongPushProfile:
    def test_default_values(self):
        profile = long_push_profile()

        assert profile.rules == (
            MarkerRule(DECODER_LOCK_MARKER, True, 100),
            MarkerRule(STREAM_ERROR_MARKER, False, 5),
        )
        assert profile.hard_timeout == 130

    def test_timeout_follows_duration(self):
        assert long_push_profile(300).hard_timeout == 330


@pytest.mark.parametrize("factory", [pull_profile, push_profile, long_push_profile])
def test_failure_overrides_by_default(factory):
    profile = factory()

    assert profile.precedence is Precedence.FAILURE_OVERRIDES
    assert profile.rules[0].confirm_delay < profile.hard_timeout
