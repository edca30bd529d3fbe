"""Tests for the per-entity accessors."""

from __future__ import annotations

import pytest

from fm_browser.services.resources import LINE_ITEMS_LIMIT, ResourceAccessors

from conftest import NO_MATCH_BODY, envelope, make_config, record


@pytest.fixture
def resources(config, service) -> ResourceAccessors:
    return ResourceAccessors(config, service)


def test_get_sales_with_date_range_only(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/SLS_Web/_find", body=envelope([record("1")], total=100, found=1))

    result = resources.get_sales(page=2, limit=20, search="", start_date="2024-01-01", end_date="2024-01-31")

    assert result.found_count == 1
    assert fake_fm.last_json() == {
        "query": [{"SalesDate": "01/01/2024...01/31/2024", "IsSale": "1", "Revision_NextCreated": "="}],
        "limit": 20,
        "offset": 21,
        "sort": [{"fieldName": "SalesDate", "sortOrder": "descend"}],
    }


def test_get_sales_without_filters_still_finds_sale_records(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/SLS_Web/_find", body=envelope([], total=0, found=0))

    resources.get_sales()

    assert fake_fm.last_json()["query"] == [{"IsSale": "1", "Revision_NextCreated": "="}]


def test_get_sales_search_and_range_combine_with_and(resources, fake_fm) -> None:
    fake_fm.on("POST", "/_find", body=envelope([], total=0, found=0))

    resources.get_sales(1, 20, "Acme", "2024-01-01", "2024-01-31")

    query = fake_fm.last_json()["query"]
    assert len(query) == 3
    for clause in query:
        assert clause["SalesDate"] == "01/01/2024...01/31/2024"
        assert clause["IsSale"] == "1"
        assert clause["Revision_NextCreated"] == "="
    assert query[1]["ContactName_BillTo"] == "*Acme*"


def test_get_sales_no_match_returns_empty(resources, fake_fm) -> None:
    fake_fm.on("POST", "/_find", status=401, body=NO_MATCH_BODY)

    result = resources.get_sales(1, 20, "nothing")

    assert result.model_dump(by_alias=True) == {"data": [], "totalCount": 0, "foundCount": 0}


def test_get_contacts_search(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/CMT_Web/_find", body=envelope([record("1", ContactName="Alice Smith")], total=2, found=1))

    result = resources.get_contacts(page=1, limit=20, search="Smith")

    body = fake_fm.last_json()
    assert body["query"] == [{"ContactName": "*Smith*"}, {"USSMID": "*Smith*"}]
    assert body["offset"] == 1
    assert result.data[0].get("ContactName") == "Alice Smith"


def test_get_products_without_search_lists(resources, fake_fm) -> None:
    fake_fm.on("GET", "/layouts/PRD_Web/records", body=envelope([record("101")], total=1, found=1))

    result = resources.get_products(page=1, limit=20)

    assert result.total_count == 1
    assert fake_fm.data_requests()[-1].method == "GET"


def test_get_product_by_item_no_swallows_errors(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/PRD_Web/_find", status=500, body={"messages": [{"code": "802"}]})

    assert resources.get_product_by_item_no("SG-001") is None


def test_get_product_by_item_no_uses_exact_match(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/PRD_Web/_find", body=envelope([record("101", ItemNo="SG-001")], found=1))

    product = resources.get_product_by_item_no("SG-001")

    assert product.record_id == "101"
    assert fake_fm.last_json()["query"] == [{"ItemNo": "=SG-001"}]


def test_get_lots_failure_returns_empty_list(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/ITY_Web/_find", status=500, body={"messages": [{"code": "802"}]})

    assert resources.get_lots("SG-001") == []


def test_get_line_items_requests_up_to_limit(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/LIC_Web/_find", body=envelope([record("1"), record("2")], found=2))

    lines = resources.get_line_items("S-9")

    assert len(lines) == 2
    assert fake_fm.last_json() == {"query": [{"SalesKeyProducts": "=S-9"}], "limit": LINE_ITEMS_LIMIT}


def test_get_line_items_no_match_is_empty(resources, fake_fm) -> None:
    fake_fm.on("POST", "/layouts/LIC_Web/_find", status=401, body=NO_MATCH_BODY)

    assert resources.get_line_items("S-9") == []


def test_offline_mode_serves_sample_records() -> None:
    resources = ResourceAccessors(make_config(FM_HOST=""))

    contacts = resources.get_contacts(1, 20)
    assert contacts.found_count == 2
    assert len(contacts.data) == 2
    assert resources.get_product_by_item_no("MW-002").record_id == "102"
    assert resources.get_sale("202").get("SalesKey_Display") == "1002"
    assert resources.get_contact("missing") is None
    assert resources.get_lots("SG-001") == []


@pytest.mark.parametrize("page,expected_ids", [(1, ["1"]), (2, ["2"]), (3, [])])
def test_offline_pages_respect_limit(page, expected_ids) -> None:
    resources = ResourceAccessors(make_config(FM_HOST=""))

    result = resources.get_contacts(page=page, limit=1)

    assert [r.record_id for r in result.data] == expected_ids
    assert len(result.data) <= 1
    assert result.total_count == 2
    assert result.found_count == 2


def test_offline_search_filters_sample_records() -> None:
    resources = ResourceAccessors(make_config(FM_HOST=""))

    contacts = resources.get_contacts(1, 20, "smith")
    assert [r.record_id for r in contacts.data] == ["1"]
    assert contacts.found_count == 1
    assert contacts.total_count == 2

    assert resources.get_products(1, 20, "nothing-like-this").data == []
    # InvoiceNo is matched exactly, not as a substring
    assert resources.get_sales(1, 20, "124").found_count == 1
    assert resources.get_sales(1, 20, "12").found_count == 0
