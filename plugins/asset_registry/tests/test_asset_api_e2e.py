# plugins/asset_registry/tests/test_asset_api_e2e.py
import json
import pytest
from httpx import AsyncClient

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]

PDF_ASSET = {"cid": "CID_0", "id": "ASSET_0", "type": "PDF", "features": "[]"}


class TestAssetRoutes:

    async def test_ping(self, client: AsyncClient):
        response = await client.get("/api/asset-registry/ping")
        assert response.status_code == 200
        assert response.json()["result"] is None

    async def test_create_read_exists_delete(self, client: AsyncClient):
        response = await client.post("/api/assets", json=PDF_ASSET)
        assert response.status_code == 201
        assert response.json()["cid"] == "CID_0"

        response = await client.get("/api/assets/CID_0")
        assert response.status_code == 200
        assert response.json()["result"] == PDF_ASSET

        response = await client.get("/api/assets/CID_0/exists")
        assert response.json() == {"cid": "CID_0", "exists": True}

        response = await client.delete("/api/assets/CID_0")
        assert response.status_code == 204

        response = await client.get("/api/assets/CID_0/exists")
        assert response.json()["exists"] is False

    async def test_duplicate_create_is_409(self, client: AsyncClient):
        await client.post("/api/assets", json=PDF_ASSET)
        response = await client.post("/api/assets", json={**PDF_ASSET, "type": "PE"})

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "already_exists"
        assert response.json()["detail"]["operation"] == "CreateAsset"

    async def test_unknown_type_is_422_with_allowed_values(self, client: AsyncClient):
        response = await client.post("/api/assets", json={**PDF_ASSET, "type": "EXE"})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "invalid_enum_value"
        assert detail["value"] == "EXE"
        assert detail["allowed"] == ["PDF", "PE"]

        response = await client.get("/api/assets/CID_0/exists")
        assert response.json()["exists"] is False

    async def test_missing_asset_is_404(self, client: AsyncClient):
        response = await client.get("/api/assets/CID_404")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

        response = await client.delete("/api/assets/CID_404")
        assert response.status_code == 404

    async def test_list_pages_with_bookmark(self, client: AsyncClient):
        assert (await client.post("/api/asset-registry/seed")).status_code == 201

        first = (await client.get("/api/assets", params={"page_size": 40})).json()["result"]
        assert first["fetchedRecordsCount"] == 40
        assert len(first["records"]) == 40

        cids = [r["cid"] for r in first["records"]]
        bookmark = first["bookmark"]
        while True:
            page = (await client.get("/api/assets", params={"page_size": 40, "bookmark": bookmark})).json()["result"]
            if page["fetchedRecordsCount"] == 0:
                assert page["bookmark"] == bookmark
                break
            cids.extend(r["cid"] for r in page["records"])
            bookmark = page["bookmark"]

        assert sorted(cids) == sorted(f"CID_{i}" for i in range(100))

    async def test_rich_query(self, client: AsyncClient):
        await client.post("/api/asset-registry/seed")

        response = await client.post(
            "/api/assets/query",
            json={"query": json.dumps({"selector": {"type": "PE"}}), "page_size": 0},
        )

        assert response.status_code == 200
        page = response.json()["result"]
        assert page["fetchedRecordsCount"] == 50
        assert {r["type"] for r in page["records"]} == {"PE"}

    async def test_bad_query_is_503(self, client: AsyncClient):
        response = await client.post("/api/assets/query", json={"query": "{not json"})
        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "store_read_error"

    @pytest.mark.parametrize("cid", ["ping", "seed", "query"])
    async def test_cids_named_like_utility_routes_are_reachable(self, client: AsyncClient, cid):
        response = await client.post("/api/assets", json={**PDF_ASSET, "cid": cid})
        assert response.status_code == 201

        response = await client.get(f"/api/assets/{cid}")
        assert response.status_code == 200
        assert response.json()["result"]["cid"] == cid

        assert (await client.delete(f"/api/assets/{cid}")).status_code == 204
        assert (await client.get(f"/api/assets/{cid}/exists")).json()["exists"] is False

    async def test_seed_and_unseed(self, client: AsyncClient):
        assert (await client.post("/api/asset-registry/seed")).status_code == 201
        assert (await client.post("/api/asset-registry/seed")).status_code == 409

        assert (await client.delete("/api/asset-registry/seed")).status_code == 204
        page = (await client.get("/api/assets")).json()["result"]
        assert page["records"] == []


class TestLedgerGateway:

    async def test_contract_metadata(self, client: AsyncClient):
        response = await client.get("/api/ledger/contracts")
        assert response.status_code == 200

        contracts = {c["name"]: c for c in response.json()}
        transactions = {tx["name"]: tx for tx in contracts["asset"]["transactions"]}
        assert set(transactions) >= {
            "Ping", "CreateAsset", "ReadAsset", "AssetExists", "QueryAssets",
            "ReadAssets", "DeleteAsset", "SeedLedger", "DeleteSeededAssets",
        }
        assert transactions["ReadAsset"]["aliases"] == ["GetAsset"]
        assert transactions["CreateAsset"]["mode"] == "submit"
        assert [p["name"] for p in transactions["CreateAsset"]["parameters"]] == ["cid", "asset_id", "asset_type", "features"]
        assert "schema" in transactions["CreateAsset"]["parameters"][0]

    async def test_submit_and_evaluate(self, client: AsyncClient):
        response = await client.post(
            "/api/ledger/transactions/submit",
            json={"contract": "asset", "function": "CreateAsset", "args": ["CID_7", "ASSET_7", "PE", "[]"]},
        )
        assert response.status_code == 200
        assert response.json()["tx_id"]

        response = await client.post(
            "/api/ledger/transactions/evaluate",
            json={"contract": "asset", "function": "GetAsset", "args": ["CID_7"]},
        )
        assert response.status_code == 200
        assert response.json()["result"]["type"] == "PE"

    async def test_evaluate_does_not_commit(self, client: AsyncClient):
        await client.post(
            "/api/ledger/transactions/evaluate",
            json={"contract": "asset", "function": "CreateAsset", "args": ["CID_8", "ASSET_8", "PDF", "[]"]},
        )
        response = await client.get("/api/assets/CID_8/exists")
        assert response.json()["exists"] is False

    async def test_string_page_size_is_coerced(self, client: AsyncClient):
        await client.post("/api/asset-registry/seed")
        response = await client.post(
            "/api/ledger/transactions/evaluate",
            json={"contract": "asset", "function": "ReadAssets", "args": ["5", ""]},
        )
        assert response.json()["result"]["fetchedRecordsCount"] == 5

    @pytest.mark.parametrize("payload, status, code", [
        ({"contract": "asset", "function": "Nope", "args": []}, 404, "transaction_not_found"),
        ({"contract": "ghost", "function": "Ping", "args": []}, 404, "transaction_not_found"),
        ({"contract": "asset", "function": "ReadAsset", "args": []}, 422, "invalid_argument"),
        ({"contract": "asset", "function": "ReadAssets", "args": ["lots", ""]}, 422, "invalid_argument"),
    ])
    async def test_error_mapping(self, client: AsyncClient, payload, status, code):
        response = await client.post("/api/ledger/transactions/evaluate", json=payload)
        assert response.status_code == status
        assert response.json()["detail"]["error"] == code

    async def test_read_only_paginated_submit_is_accepted(self, client: AsyncClient):
        # ReadAssets 本身不写，提交应当成功
        response = await client.post(
            "/api/ledger/transactions/submit",
            json={"contract": "asset", "function": "ReadAssets", "args": [10, ""]},
        )
        assert response.status_code == 200
