from __future__ import annotations

import asyncio

import pytest

from dns_redirector.protocol import DnsTxtLookup, TxtLookupError
from dns_redirector.records import RedirectConfig
from dns_redirector.resolver import (
    NoValidRedirect,
    RedirectResolver,
    ResolverError,
    SeededChoice,
    first_valid,
    lookup_name,
)


class FakeLookup:
    """In-memory TXT lookup recording the names it was asked for."""

    def __init__(self, records=None, error=None):
        self.records = records or {}
        self.error = error
        self.names = []

    async def __call__(self, name):
        self.names.append(name)
        if self.error is not None:
            raise self.error
        return list(self.records.get(name, []))


def resolve(resolver, hostname):
    return asyncio.run(resolver.resolve(hostname))


def test_lookup_name():
    assert lookup_name("example.com") == "_redirect.example.com"


def test_queries_redirect_subdomain():
    lookup = FakeLookup({"_redirect.example.com": ["v=1; target=https://example.org"]})
    resolve(RedirectResolver(lookup), "example.com")
    assert lookup.names == ["_redirect.example.com"]


@pytest.mark.parametrize(
    "error",
    [TxtLookupError("NXDOMAIN"), ConnectionRefusedError("refused"), asyncio.TimeoutError()],
)
def test_lookup_failure_is_resolver_error(error):
    resolver = RedirectResolver(FakeLookup(error=error))
    with pytest.raises(ResolverError) as info:
        resolve(resolver, "example.com")
    assert info.value.__cause__ is error


def test_no_records_is_no_valid_redirect():
    with pytest.raises(NoValidRedirect):
        resolve(RedirectResolver(FakeLookup()), "example.com")


def test_only_malformed_records_is_no_valid_redirect():
    lookup = FakeLookup({"_redirect.example.com": ["", "v=2; target=https://x.example", "v=1; target=junk", "spf"]})
    with pytest.raises(NoValidRedirect):
        resolve(RedirectResolver(lookup), "example.com")


def test_single_valid_record_among_malformed():
    lookup = FakeLookup(
        {"_redirect.example.com": ["v=1;", "v=1; target=https://example.org/; replace_path=true", "junk"]}
    )
    result = resolve(RedirectResolver(lookup), "example.com")
    assert result == RedirectConfig("https://example.org/", True)


def test_multiple_valid_records_pick_first_deterministically():
    lookup = FakeLookup(
        {
            "_redirect.example.com": [
                "v=0; target=https://zero.example",
                "v=1; target=https://one.example",
                "v=1; target=https://two.example",
            ]
        }
    )
    resolver = RedirectResolver(lookup)
    results = {resolve(resolver, "example.com").target for _ in range(10)}
    assert results == {"https://one.example"}


def test_first_valid_policy():
    configs = [RedirectConfig("https://a.example"), RedirectConfig("https://b.example")]
    assert first_valid(configs) is configs[0]


def test_seeded_choice_is_reproducible():
    configs = [RedirectConfig(f"https://{name}.example") for name in ("a", "b", "c")]
    first = SeededChoice(42)
    second = SeededChoice(42)
    picks = [first(configs) for _ in range(20)]
    assert picks == [second(configs) for _ in range(20)]
    assert set(picks) <= set(configs)


def test_resolver_uses_selection_policy_for_several_records():
    records = ["v=1; target=https://a.example", "v=1; target=https://b.example"]
    lookup = FakeLookup({"_redirect.example.com": records})
    resolver = RedirectResolver(lookup, select=lambda configs: configs[-1])
    assert resolve(resolver, "example.com").target == "https://b.example"


def test_selection_policy_not_consulted_for_single_record():
    def explode(configs):
        raise AssertionError("policy called")

    lookup = FakeLookup({"_redirect.example.com": ["v=1; target=https://a.example"]})
    assert resolve(RedirectResolver(lookup, select=explode), "example.com").target == "https://a.example"


@pytest.mark.parametrize("hostname", ["a" * 64 + ".com", "a..b"])
def test_unresolvable_hostname_is_resolver_error(hostname):
    resolver = RedirectResolver(DnsTxtLookup(["127.0.0.1"], timeout=0.5))
    with pytest.raises(ResolverError):
        resolve(resolver, hostname)
