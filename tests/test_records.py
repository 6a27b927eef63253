from __future__ import annotations

import pytest

from dns_redirector.records import RedirectConfig


@pytest.mark.parametrize("path", ["/", "/source-path", "", "/a/b?c"])
def test_returns_target_if_replace_path_is_false(path):
    redirect = RedirectConfig(target="https://example.com/test/", replace_path=False)
    assert redirect.target_from(path) == "https://example.com/test/"


def test_replaces_path_if_replace_path_is_true():
    redirect = RedirectConfig(target="https://example.com/test/", replace_path=True)
    assert redirect.target_from("/source-path") == "https://example.com/source-path"


def test_replace_path_keeps_port_query_and_fragment():
    redirect = RedirectConfig(target="http://example.com:8080/old?ref=dns#top", replace_path=True)
    assert redirect.target_from("/new/page") == "http://example.com:8080/new/page?ref=dns#top"


def test_empty_request_path_is_root():
    redirect = RedirectConfig(target="https://example.com/test/", replace_path=True)
    assert redirect.target_from("") == "https://example.com/"


def test_request_path_is_not_normalized():
    redirect = RedirectConfig(target="https://example.com", replace_path=True)
    assert redirect.target_from("/a/../b//c%2Fd") == "https://example.com/a/../b//c%2Fd"


def test_request_path_is_encoded_where_required():
    redirect = RedirectConfig(target="https://example.com", replace_path=True)
    assert redirect.target_from("/with space/é") == "https://example.com/with%20space/%C3%A9"


def test_relative_request_path_gets_leading_slash():
    redirect = RedirectConfig(target="https://example.com/x", replace_path=True)
    assert redirect.target_from("page") == "https://example.com/page"


def test_config_is_immutable():
    redirect = RedirectConfig(target="https://example.com")
    with pytest.raises(AttributeError):
        redirect.target = "https://other.example"  # type: ignore[misc]
