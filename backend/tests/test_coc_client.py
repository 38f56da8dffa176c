import httpx
import pytest

from clanpulse.core.config import Settings
from clanpulse.services.coc_client import CocApiClient, CocApiNotConfigured, encode_tag


def _client(handler) -> CocApiClient:
    settings = Settings(coc_api_token="test-token", coc_api_base_url="https://api.test/v1")
    return CocApiClient(settings=settings, transport=httpx.MockTransport(handler))


def test_encode_tag_adds_hash_and_quotes() -> None:
    assert encode_tag("abc123") == "%23ABC123"
    assert encode_tag("#2PP") == "%232PP"


def test_get_clan_sends_bearer_token_and_encoded_tag() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"tag": "#ABC", "memberList": []})

    with _client(handler) as client:
        payload = client.get_clan("ABC")

    assert payload["tag"] == "#ABC"
    assert seen[0].headers["Authorization"] == "Bearer test-token"
    assert "/v1/clans/%23ABC" in str(seen[0].url)


def test_war_log_passes_limit() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["limit"] == "20"
        return httpx.Response(200, json={"items": [{"result": "win"}]})

    with _client(handler) as client:
        assert client.get_war_log("#ABC")["items"][0]["result"] == "win"


def test_private_war_log_and_missing_current_war_are_absent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/currentwar"):
            return httpx.Response(404, json={"reason": "notFound"})
        return httpx.Response(403, json={"reason": "accessDenied"})

    with _client(handler) as client:
        assert client.get_current_war("#ABC") is None
        assert client.get_war_log("#ABC") == {"items": []}


def test_upstream_failure_raises_status_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"reason": "inMaintenance"})

    with _client(handler) as client:
        with pytest.raises(httpx.HTTPStatusError) as excinfo:
            client.get_raid_seasons("#ABC")
    assert excinfo.value.response.status_code == 503


def test_non_json_body_raises_decoding_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with _client(handler) as client:
        with pytest.raises(httpx.DecodingError):
            client.get_clan("#ABC")


def test_missing_token_is_rejected() -> None:
    with pytest.raises(CocApiNotConfigured):
        CocApiClient(settings=Settings(coc_api_token="  "))
