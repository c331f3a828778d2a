from types import SimpleNamespace

from starlette.requests import Request

from services.context_detection import (
    BrowsingEnvironment,
    ExecutionContext,
    classify_context,
    detect_request_context,
    environment_from_request,
    is_cross_origin_embedded,
    should_use_mock_identity,
)


def _request(headers=None, query_string=b""):
    raw_headers = [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()]
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": raw_headers,
            "query_string": query_string,
        }
    )


def _config(**overrides):
    values = {"IFRAME_MODE": False, "EMBED_REFERRER_HOSTS": []}
    values.update(overrides)
    return SimpleNamespace(**values)


def test_missing_environment_is_standalone():
    assert classify_context(None) == ExecutionContext.STANDALONE
    assert classify_context(BrowsingEnvironment(has_window=False)) == ExecutionContext.STANDALONE


def test_opener_wins_over_embedding():
    env = BrowsingEnvironment(has_opener=True, parent_is_self=False)
    assert classify_context(env) == ExecutionContext.POPUP


def test_parent_mismatch_or_unreadable_location_is_iframe():
    assert classify_context(BrowsingEnvironment(parent_is_self=False)) == ExecutionContext.IFRAME
    unreadable = BrowsingEnvironment(parent_location_readable=False)
    assert classify_context(unreadable) == ExecutionContext.IFRAME
    assert is_cross_origin_embedded(unreadable) is True
    assert is_cross_origin_embedded(BrowsingEnvironment()) is False


def test_top_level_window_is_standalone():
    assert classify_context(BrowsingEnvironment()) == ExecutionContext.STANDALONE


def test_mock_identity_only_for_iframe_or_forced():
    assert should_use_mock_identity(ExecutionContext.IFRAME) is True
    assert should_use_mock_identity(ExecutionContext.STANDALONE) is False
    assert should_use_mock_identity(ExecutionContext.POPUP) is False
    assert should_use_mock_identity(ExecutionContext.STANDALONE, force_demo=True) is True


def test_request_signals_map_to_contexts():
    config = _config()
    assert detect_request_context(_request(), config) == ExecutionContext.STANDALONE
    assert detect_request_context(_request({"Sec-Fetch-Dest": "iframe"}), config) == ExecutionContext.IFRAME
    assert detect_request_context(_request({"X-Iframe-Mode": "true"}), config) == ExecutionContext.IFRAME
    assert detect_request_context(_request(query_string=b"iframe=1"), config) == ExecutionContext.IFRAME
    assert detect_request_context(_request({"X-Window-Opener": "true"}), config) == ExecutionContext.POPUP
    assert detect_request_context(_request(query_string=b"popup=true"), config) == ExecutionContext.POPUP


def test_server_hint_marks_every_request_embedded():
    assert detect_request_context(_request(), _config(IFRAME_MODE=True)) == ExecutionContext.IFRAME


def test_embedder_referrer_is_cross_origin():
    config = _config(EMBED_REFERRER_HOSTS=["*.builder.example", "host.example"])

    env = environment_from_request(_request({"Referer": "https://app.builder.example/page"}), config)
    assert classify_context(env) == ExecutionContext.IFRAME
    assert is_cross_origin_embedded(env) is True

    env = environment_from_request(_request({"Referer": "https://host.example/"}), config)
    assert is_cross_origin_embedded(env) is True

    env = environment_from_request(_request({"Referer": "https://elsewhere.example/"}), config)
    assert classify_context(env) == ExecutionContext.STANDALONE
