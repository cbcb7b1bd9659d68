"""Unit tests for MatchResolver."""

import pytest

from pte.errors import AuthError, NotFoundError, QuotaError, TransientError
from pte.match.resolver import MatchResolver
from pte.match.scoring import TrustSearchStrategy
from pte.providers.base import Platform, Track
from pte.services.models import Phase
from pte.services.session import AdapterSession
from pte.utils.retry import RetryExecutor
from tests.mocks.fake_adapter import FakeAdapter, make_track


@pytest.fixture
def target():
    adapter = FakeAdapter(Platform.YOUTUBE, catalog={
        "one": make_track("One", 7, Platform.YOUTUBE, artist="U2", external_id="yt-one"),
    })
    session = AdapterSession(adapter, executor=RetryExecutor(base_delay=0, sleep=lambda s: None), max_attempts=2)
    return adapter, session


def test_found_match_takes_source_position(target):
    _, session = target
    source = make_track("One", 3, artist="U2")

    result = MatchResolver().resolve(source, session)

    assert result.found
    assert result.match.external_id == "yt-one"
    assert result.match.platform is Platform.YOUTUBE
    assert result.match.position == 3
    assert result.error is None
    assert result.original is source


def test_absent_track_is_not_found_without_error(target):
    _, session = target
    result = MatchResolver().resolve(make_track("Two", 1), session)
    assert not result.found
    assert result.match is None
    assert result.error is None


def test_rejected_candidate_is_not_found(target):
    adapter, session = target
    adapter.catalog["numb"] = make_track("Completely Different Song", 1, Platform.YOUTUBE, artist="Other")

    result = MatchResolver().resolve(make_track("Numb", 1, artist="U2"), session)

    assert not result.found
    assert result.score is not None


def test_trust_strategy_accepts_rejected_candidate(target):
    adapter, session = target
    adapter.catalog["numb"] = make_track("Completely Different Song", 1, Platform.YOUTUBE, artist="Other")
    result = MatchResolver(TrustSearchStrategy()).resolve(make_track("Numb", 1, artist="U2"), session)
    assert result.found


def test_not_found_error_means_no_match(target):
    adapter, session = target
    adapter.search_errors["One"] = [NotFoundError("404")]
    result = MatchResolver().resolve(make_track("One", 1, artist="U2"), session)
    assert not result.found
    assert result.error is None


def test_exhausted_transient_error_is_recorded(target):
    adapter, session = target
    adapter.search_errors["One"] = [TransientError("503")]

    result = MatchResolver().resolve(make_track("One", 1, artist="U2"), session)

    assert not result.found
    assert result.error.kind == "TransientError"
    assert result.error.phase is Phase.MATCHING
    assert adapter.count("search") == 2


def test_transient_error_then_success_is_found(target):
    adapter, session = target
    adapter.search_errors["One"] = [TransientError("503"), None]

    result = MatchResolver().resolve(make_track("One", 1, artist="U2"), session)

    assert result.found
    assert result.error is None
    assert adapter.count("search") == 2


@pytest.mark.parametrize("error", [AuthError("401"), QuotaError("429")])
def test_fatal_errors_propagate(target, error):
    adapter, session = target
    adapter.search_errors["One"] = [error]
    with pytest.raises(type(error)):
        MatchResolver().resolve(make_track("One", 1, artist="U2"), session)


def test_candidate_without_id_is_ignored(target):
    adapter, session = target
    adapter.catalog["one"] = Track("One", 1, Platform.YOUTUBE, artists=("U2",))
    result = MatchResolver().resolve(make_track("One", 1, artist="U2"), session)
    assert not result.found
