"""
Tests for HubSpot pagination, lookups and payload processing.
"""

import httpx
import pytest

from portal_sync.integrations.hubspot import HubSpotClient, HubSpotCRMProvider
from portal_sync.integrations.hubspot.client import HubSpotAPIError
from portal_sync.integrations.hubspot.fetchers import collect_service_records, next_cursor
from portal_sync.integrations.hubspot.processors import (
    extract_company_ids,
    process_owner,
    process_service_record,
)


def service(record_id: str, *company_ids: str, **props) -> dict:
    return {
        "id": record_id,
        "properties": {"hs_name": f"Service {record_id}", **props},
        "associations": {
            "companies": {"results": [{"id": cid, "type": "service_to_company"} for cid in company_ids]}
        },
    }


def page(results, after=None) -> dict:
    payload = {"results": results}
    if after:
        payload["paging"] = {"next": {"after": after, "link": "..."}}
    return payload


class PagedServices:
    """Serves the services listing keyed by the ``after`` cursor."""

    def __init__(self, pages_by_cursor, fail_on_cursor=None):
        self.pages_by_cursor = pages_by_cursor
        self.fail_on_cursor = fail_on_cursor
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        cursor = request.url.params.get("after")
        if cursor is not None and cursor == self.fail_on_cursor:
            return httpx.Response(400, json={"message": "bad cursor"})
        return httpx.Response(200, json=self.pages_by_cursor[cursor])


def make_client(handler) -> HubSpotClient:
    async def no_sleep(_seconds):
        return None

    return HubSpotClient(
        access_token="pat-test",
        api_base_url="https://hubspot.test",
        transport=httpx.MockTransport(handler),
        sleep=no_sleep,
    )


@pytest.mark.asyncio
class TestCollectServiceRecords:
    """Cursor walk over the services listing."""

    async def test_page_cap_stops_walk(self):
        """
        SCENARIO: Two pages available, max_pages=1.

        EXPECTED: Only page one's records; the cursor is not followed.
        """
        handler = PagedServices({
            None: page([service("1", "c1"), service("2", "c2")], after="cursor-2"),
            "cursor-2": page([service("3", "c3")]),
        })
        client = make_client(handler)

        records = await collect_service_records(client, page_size=2, max_pages=1)

        assert [r.id for r in records] == ["1", "2"]
        assert len(handler.requests) == 1
        await client.close()

    async def test_walks_until_no_cursor(self):
        handler = PagedServices({
            None: page([service("1", "c1")], after="a"),
            "a": page([service("2", "c2")], after="b"),
            "b": page([service("3", "c3")]),
        })
        client = make_client(handler)

        records = await collect_service_records(client, page_size=1, max_pages=10)

        assert [r.id for r in records] == ["1", "2", "3"]
        assert [req.url.params.get("after") for req in handler.requests] == [None, "a", "b"]
        await client.close()

    async def test_failed_page_aborts(self):
        """
        SCENARIO: Page two answers 400.

        WHY THIS MATTERS: A partial listing would look like deletions
        downstream; nothing partial is returned.

        EXPECTED: HubSpotAPIError propagates.
        """
        handler = PagedServices(
            {None: page([service("1", "c1")], after="broken")},
            fail_on_cursor="broken",
        )
        client = make_client(handler)

        with pytest.raises(HubSpotAPIError) as exc_info:
            await collect_service_records(client, page_size=1, max_pages=5)

        assert exc_info.value.status_code == 400
        await client.close()

    async def test_projection_and_associations_requested(self):
        handler = PagedServices({None: page([])})
        client = make_client(handler)

        await collect_service_records(client, page_size=25, max_pages=1)

        params = handler.requests[0].url.params
        assert handler.requests[0].url.path == "/crm/v3/objects/0-162"
        assert params["limit"] == "25"
        assert params["associations"] == "companies"
        assert "hs_status" in params["properties"].split(",")
        assert "hubspot_owner_id" in params["properties"].split(",")
        await client.close()

    async def test_empty_listing(self):
        handler = PagedServices({None: page([])})
        client = make_client(handler)

        assert await collect_service_records(client, page_size=50, max_pages=3) == []
        await client.close()


@pytest.mark.asyncio
class TestProviderLookups:
    """Single-object lookups through the provider."""

    async def test_company_and_owner(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/crm/v3/objects/companies/c1":
                return httpx.Response(200, json={
                    "id": "c1",
                    "properties": {"name": "Acme", "domain": "acme.io"},
                })
            if request.url.path == "/crm/v3/owners/o1":
                return httpx.Response(200, json={
                    "id": "o1",
                    "firstName": "Grace",
                    "lastName": "Hopper",
                    "email": "grace@acme.io",
                })
            return httpx.Response(404)

        async with HubSpotCRMProvider(make_client(handler)) as provider:
            company = await provider.get_company("c1")
            owner = await provider.get_owner("o1")

            with pytest.raises(HubSpotAPIError):
                await provider.get_owner("missing")

        assert company.name == "Acme"
        assert company.domain == "acme.io"
        assert owner.first_name == "Grace"
        assert owner.email == "grace@acme.io"
        assert provider.get_provider_name() == "HubSpot"


class TestProcessors:
    """Raw payload mapping."""

    def test_company_ids_deduplicated(self):
        raw = service("1", "c1", "c1", "c2")
        assert extract_company_ids(raw) == ["c1", "c2"]

    def test_missing_associations(self):
        assert extract_company_ids({"id": "1", "properties": {}}) == []

    def test_blank_properties_become_none(self):
        record = process_service_record(service("9", "c1", hs_status="", hubspot_owner_id=None))
        assert record.status is None
        assert record.owner_id is None
        assert record.company_count == 1

    def test_record_without_id_rejected(self):
        with pytest.raises(ValueError):
            process_service_record({"properties": {}})

    def test_owner_falls_back_to_requested_id(self):
        owner = process_owner({"firstName": "Ada"}, "o-9")
        assert owner.id == "o-9"
        assert owner.last_name is None

    def test_next_cursor(self):
        assert next_cursor(page([], after="abc")) == "abc"
        assert next_cursor(page([])) is None
        assert next_cursor({"paging": {"next": {}}}) is None
