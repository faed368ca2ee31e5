from datetime import date, timedelta
from pathlib import Path

import pandas as pd
import pytest
import pytest_asyncio

from inventory_api.services.reports import reports_dir, write_dataframe
from tests.conftest import bearer, register


async def _order(client, headers, product_id, quantity):
    resp = await client.post(
        "/api/v1/orders", json={"items": [{"product_id": product_id, "quantity": quantity}]}, headers=headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest_asyncio.fixture
async def sales(client, owner, make_user, make_product):
    """Two live orders from different users and one cancelled order."""
    mug = await make_product("MUG", name="Mug", price_cost=4.0, price_sale=10.0, current_stock=50)
    tee = await make_product("TEE", name="Tee", price_cost=6.0, price_sale=15.0, current_stock=50)
    clerk = await make_user("clerk@acme.com")

    await _order(client, owner["headers"], mug["id"], 2)
    await _order(client, clerk["headers"], tee["id"], 1)
    cancelled = await _order(client, owner["headers"], tee["id"], 10)
    await client.patch(f"/api/v1/orders/{cancelled['id']}", json={"status": "CANCELLED"}, headers=owner["headers"])
    return {"mug": mug, "tee": tee}


def test_write_dataframe_formats(tmp_path: Path):
    df = pd.DataFrame([{"sku": "A", "quantity": 1}])
    for fmt in ("csv", "xlsx", "pdf"):
        path = write_dataframe(df, tmp_path / "nested" / f"out.{fmt}", fmt, "Title", "All time")
        assert path.exists()
        assert path.stat().st_size > 0
    assert (tmp_path / "nested" / "out.csv").read_text().splitlines() == ["sku,quantity", "A,1"]
    assert (tmp_path / "nested" / "out.pdf").read_bytes().startswith(b"%PDF")


async def test_sales_by_day_excludes_cancelled_orders(client, owner, sales):
    points = (await client.get("/api/v1/reports/sales", headers=owner["headers"])).json()
    assert len(points) == 1
    point = points[0]
    assert point["order_count"] == 2
    assert point["total_sales"] == 35.0
    # (2 * 10 - 2 * 4) + (15 - 6)
    assert point["profit"] == 21.0


async def test_sales_window_outside_range_is_empty(client, owner, sales):
    long_ago = date.today() - timedelta(days=2)
    resp = await client.get(
        "/api/v1/reports/sales", params={"end_date": long_ago.isoformat()}, headers=owner["headers"]
    )
    assert resp.json() == []


async def test_top_products_by_revenue(client, owner, sales):
    rows = (await client.get("/api/v1/reports/top-products", headers=owner["headers"])).json()
    assert [(r["sku"], r["quantity_sold"], r["revenue"]) for r in rows] == [("MUG", 2, 20.0), ("TEE", 1, 15.0)]

    limited = (
        await client.get("/api/v1/reports/top-products", params={"limit": 1}, headers=owner["headers"])
    ).json()
    assert [r["sku"] for r in limited] == ["MUG"]


async def test_low_stock_report_is_capped(client, owner, make_product):
    for i in range(12):
        await make_product(f"LOW-{i:02d}", current_stock=i, min_stock=20)
    await make_product("FINE", current_stock=5, min_stock=1)

    rows = (await client.get("/api/v1/reports/low-stock", headers=owner["headers"])).json()
    assert len(rows) == 10
    assert rows[0]["sku"] == "LOW-00"
    assert "FINE" not in {r["sku"] for r in rows}


async def test_kpis(client, owner, sales):
    kpis = (await client.get("/api/v1/reports/kpis", headers=owner["headers"])).json()
    assert kpis == {
        "total_sales": 35.0,
        "total_orders": 2,
        "average_order_value": 17.5,
        "low_stock_count": 0,
        "total_customers": 2,
    }


async def test_kpis_without_orders(client, owner):
    kpis = (await client.get("/api/v1/reports/kpis", headers=owner["headers"])).json()
    assert kpis["total_orders"] == 0
    assert kpis["average_order_value"] == 0.0


@pytest.mark.parametrize(
    "endpoint, fmt, kind",
    [
        ("sales", "csv", "sales"),
        ("top-products", "xlsx", "inventory"),
        ("movements", "pdf", "movements"),
    ],
)
async def test_generate_report_files(client, owner, sales, endpoint, fmt, kind):
    resp = await client.get(
        f"/api/v1/reports/generate/{endpoint}", params={"format": fmt}, headers=owner["headers"]
    )
    assert resp.status_code == 200, resp.text
    url = resp.json()["url"]
    assert url.startswith(f"/uploads/reports/report-{kind}-")
    assert url.endswith(f".{fmt}")

    filename = url.rsplit("/", 1)[1]
    assert (reports_dir() / filename).is_file()

    served = await client.get(url)
    assert served.status_code == 200


async def test_unknown_report_format_is_rejected(client, owner):
    resp = await client.get("/api/v1/reports/generate/sales", params={"format": "docx"}, headers=owner["headers"])
    assert resp.status_code == 422


async def test_report_history_is_newest_first_and_tenant_scoped(client, owner, sales):
    await client.get("/api/v1/reports/generate/sales", params={"format": "csv"}, headers=owner["headers"])
    await client.get("/api/v1/reports/generate/movements", params={"format": "csv"}, headers=owner["headers"])

    history = (await client.get("/api/v1/reports/history", headers=owner["headers"])).json()
    assert [h["type"] for h in history] == ["MOVEMENTS", "SALES"]
    assert history[0]["user_id"] == owner["user"]["id"]

    headers = bearer((await register(client, business="Elsewhere", email="e@elsewhere.com"))["access_token"])
    assert (await client.get("/api/v1/reports/history", headers=headers)).json() == []
