"""
Tests for the Flask JSON API.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from app import app


@pytest.fixture
def client(tmp_path: Path):
    app.config["TESTING"] = True
    app.config["UPLOAD_FOLDER"] = tmp_path
    with app.test_client() as client:
        yield client


def upload(client, url: str, content: bytes, filename: str = "tb.csv"):
    return client.post(
        url,
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


GOOD_CSV = b"Particulars,Debit,Credit\nSales,,135000\nPurchases,50000,\n"


# ======================================================================
# /api/parse
# ======================================================================

class TestParse:
    def test_success(self, client, tmp_path: Path) -> None:
        resp = upload(client, "/api/parse", GOOD_CSV)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["profit_loss"]["net_profit"] == 85000.0
        assert body["audit"]["valid_rows"] == 2
        assert list(tmp_path.iterdir()) == []

    def test_missing_column(self, client) -> None:
        resp = upload(client, "/api/parse", b"Particulars,Debit\nSales,100\n")
        assert resp.status_code == 422
        body = resp.get_json()
        assert body["success"] is False
        assert body["error"] == "missing required column: Credit"
        assert body["audit"]["issues"][0]["severity"] == "error"

    def test_no_file(self, client) -> None:
        resp = client.post("/api/parse", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "No file uploaded"

    def test_empty_filename(self, client) -> None:
        resp = upload(client, "/api/parse", GOOD_CSV, filename="")
        assert resp.status_code == 400

    def test_invalid_extension(self, client) -> None:
        resp = upload(client, "/api/parse", GOOD_CSV, filename="tb.pdf")
        assert resp.status_code == 400
        assert "Invalid file type" in resp.get_json()["error"]

    def test_unreadable_workbook(self, client) -> None:
        resp = upload(client, "/api/parse", b"not a zip file", filename="tb.xlsx")
        assert resp.status_code == 400
        assert resp.get_json()["error"].startswith("Could not read file")


# ======================================================================
# /api/reports and /api/ratios
# ======================================================================

class TestReports:
    def test_from_rows(self, client) -> None:
        resp = client.post("/api/reports", json={"rows": [
            {"particulars": "Sales", "debit": 0, "credit": 900},
            {"particulars": "Rent", "debit": 100, "credit": 0},
        ]})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["profit_loss"]["net_profit"] == 800.0
        assert body["ratios"]["profit_margin"] == pytest.approx(800 / 900 * 100)

    def test_empty_rows(self, client) -> None:
        resp = client.post("/api/reports", json={"rows": []})
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        "payload",
        [None, [], {"rows": "x"}, {"rows": [{"debit": 1}]}, {"rows": [{"particulars": "A", "debit": "x"}]}],
    )
    def test_malformed(self, client, payload) -> None:
        resp = client.post("/api/reports", json=payload)
        assert resp.status_code == 400


class TestRatios:
    def test_compute(self, client) -> None:
        resp = client.post("/api/ratios", json={
            "sales": 1000, "netProfit": 150, "totalAssets": 2000,
            "currentAssets": 600, "currentLiabilities": 200,
            "totalLiabilities": 400, "equity": 1000,
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["ratios"]["current_ratio"] == pytest.approx(3.0)
        assert body["ratio_details"]["Liquidity"]["current_ratio"]["band"] == "good"
        assert body["assessment"]["verdict"] == "strong"

    def test_unknown_input(self, client) -> None:
        resp = client.post("/api/ratios", json={"quickAssets": 5})
        assert resp.status_code == 400


# ======================================================================
# /api/cleanup
# ======================================================================

class TestCleanup:
    def test_reshape(self, client) -> None:
        resp = upload(client, "/api/cleanup", b"Account,Dr,Cr\nSales,,100\nBad,1,2,3\n")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["rows"] == [["Particulars", "Debit", "Credit"], ["Sales", "", "100"]]

    def test_reshape_csv(self, client) -> None:
        resp = client.post(
            "/api/cleanup?format=csv",
            data={"file": (io.BytesIO(b"A,B,C\nSales,,100\n"), "tb.csv")},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert resp.get_data(as_text=True).splitlines()[0] == "Particulars,Debit,Credit"

    def test_wrong_column_count(self, client) -> None:
        resp = upload(client, "/api/cleanup", b"A,B\nx,1\n")
        assert resp.status_code == 422
        assert "exactly 3 columns" in resp.get_json()["error"]


# ======================================================================
# /api/sample and /api/health
# ======================================================================

class TestSample:
    def test_json(self, client) -> None:
        resp = client.get("/api/sample?rows=5&seed=1")
        assert resp.status_code == 200
        rows = resp.get_json()["rows"]
        assert len(rows) == 6
        assert client.get("/api/sample?rows=5&seed=1").get_json()["rows"] == rows

    def test_csv(self, client) -> None:
        resp = client.get("/api/sample?rows=3&format=csv")
        assert resp.mimetype == "text/csv"
        assert len(resp.get_data(as_text=True).splitlines()) == 4

    def test_categories(self, client) -> None:
        resp = client.get("/api/sample?rows=2&categories=income")
        assert resp.status_code == 200

    def test_empty_categories_fall_back(self, client) -> None:
        resp = client.get("/api/sample?rows=2&categories=")
        assert resp.status_code == 200
        rows = resp.get_json()["rows"]
        assert [r[0] for r in rows[1:]] == ["Cash in Hand", "Cash in Hand"]

    @pytest.mark.parametrize(
        "query", ["rows=abc", "seed=x", "rows=-1", "rows=100000", "categories=stock"]
    )
    def test_bad_query(self, client, query: str) -> None:
        assert client.get(f"/api/sample?{query}").status_code == 400


def test_health(client) -> None:
    body = client.get("/api/health").get_json()
    assert body["status"] == "online"
    assert "/api/parse" in body["endpoints"]
    assert body["keywords"] > 0
