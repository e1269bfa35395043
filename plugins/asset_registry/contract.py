# plugins/asset_registry/contract.py

import logging
from typing import Optional

from plugins.core_ledger.contracts import Contract, TransactionContextInterface, transaction
from plugins.core_world_state.contracts import StoreReadError, StoreWriteError
from .contracts import AlreadyExistsError, InvalidEnumValueError, NotFoundError
from .models import Asset, AssetType, PaginatedQueryResult
from .pagination import (
    get_query_result_for_query_string_with_pagination,
    get_state_by_range_with_pagination,
)

logger = logging.getLogger(__name__)

SEED_ASSET_COUNT = 100
SEED_ASSET_TYPES = (AssetType.PDF, AssetType.PE)


def seed_cid(index: int) -> str:
    return f"CID_{index}"


class AssetContract(Contract):
    """Transaction handlers for creating, reading and listing assets."""

    name = "asset"

    # --- 单键访问 ---

    @staticmethod
    def _read_state(ctx: TransactionContextInterface, cid: str, operation: str) -> Optional[bytes]:
        try:
            return ctx.stub.get_state(cid)
        except StoreReadError as e:
            raise StoreReadError(f"failed to read from world state: {e.message}", operation=operation) from e

    def _exists(self, ctx: TransactionContextInterface, cid: str, operation: str) -> bool:
        # 空值与缺失同样视为不存在
        return bool(self._read_state(ctx, cid, operation))

    def _create(
        self,
        ctx: TransactionContextInterface,
        cid: str,
        asset_id: str,
        asset_type: str,
        features: str,
        operation: str,
    ) -> Asset:
        if self._exists(ctx, cid, operation):
            raise AlreadyExistsError(f"the asset {cid} already exists", operation=operation)

        try:
            parsed_type = AssetType.parse(asset_type)
        except InvalidEnumValueError as e:
            raise InvalidEnumValueError(e.value, e.allowed, operation=operation) from e

        asset = Asset(cid=cid, features=features, id=asset_id, type=parsed_type)
        asset_json = asset.to_bytes(operation=operation)

        try:
            ctx.stub.put_state(cid, asset_json)
        except StoreWriteError as e:
            raise StoreWriteError(f"failed to put asset in world state: {e.message}", operation=operation) from e
        return asset

    # --- 交易函数 ---

    @transaction("evaluate")
    def ping(self, ctx: TransactionContextInterface) -> None:
        """Checks that the contract is installed and answering."""
        return None

    @transaction("submit")
    def create_asset(
        self,
        ctx: TransactionContextInterface,
        cid: str,
        asset_id: str,
        asset_type: str,
        features: str,
    ) -> None:
        """Issues a new asset to the world state under its content identifier."""
        self._create(ctx, cid, asset_id, asset_type, features, operation="CreateAsset")
        logger.debug(f"[{ctx.stub.tx_id}] asset {cid} staged for creation.")

    @transaction("evaluate", aliases=["GetAsset"])
    def read_asset(self, ctx: TransactionContextInterface, cid: str) -> Asset:
        """Returns the asset stored in the world state under the given cid."""
        asset_json = self._read_state(ctx, cid, "ReadAsset")
        if not asset_json:
            raise NotFoundError(f"the asset {cid} does not exist", operation="ReadAsset")
        return Asset.from_bytes(asset_json, operation="ReadAsset")

    @transaction("evaluate")
    def asset_exists(self, ctx: TransactionContextInterface, cid: str) -> bool:
        """Returns true when an asset with the given cid exists in the world state."""
        return self._exists(ctx, cid, "AssetExists")

    @transaction("submit")
    def delete_asset(self, ctx: TransactionContextInterface, cid: str) -> None:
        """Removes an asset from the world state."""
        if not self._exists(ctx, cid, "DeleteAsset"):
            raise NotFoundError(f"the asset {cid} does not exist", operation="DeleteAsset")
        try:
            ctx.stub.del_state(cid)
        except StoreWriteError as e:
            raise StoreWriteError(f"failed to delete asset: {e.message}", operation="DeleteAsset") from e

    @transaction("evaluate")
    def query_assets(
        self,
        ctx: TransactionContextInterface,
        query_string: str,
        page_size: int,
        bookmark: str = "",
    ) -> PaginatedQueryResult:
        """
        Runs a rich query (state database syntax, passed through as is) and
        returns at most page_size assets starting after the bookmark.
        Only available when the state database supports rich queries.
        """
        return get_query_result_for_query_string_with_pagination(
            ctx, query_string, page_size, bookmark, operation="QueryAssets"
        )

    @transaction("evaluate")
    def read_assets(
        self,
        ctx: TransactionContextInterface,
        page_size: int,
        bookmark: str = "",
    ) -> PaginatedQueryResult:
        """Returns one page of assets in key order, resuming from the bookmark."""
        return get_state_by_range_with_pagination(
            ctx, "", "", page_size, bookmark, operation="ReadAssets"
        )

    # --- 种子数据 ---

    @transaction("submit")
    def seed_ledger(self, ctx: TransactionContextInterface) -> None:
        """Creates the demo asset set CID_0..CID_99 in a single transaction."""
        for i in range(SEED_ASSET_COUNT):
            self._create(
                ctx,
                cid=seed_cid(i),
                asset_id=f"ASSET_{i}",
                asset_type=SEED_ASSET_TYPES[i % len(SEED_ASSET_TYPES)].value,
                features="[]",
                operation="SeedLedger",
            )
        logger.info(f"[{ctx.stub.tx_id}] staged {SEED_ASSET_COUNT} seed assets.")

    @transaction("submit")
    def delete_seeded_assets(self, ctx: TransactionContextInterface) -> None:
        """Deletes the demo asset set; keys that are already gone are skipped."""
        for i in range(SEED_ASSET_COUNT):
            try:
                ctx.stub.del_state(seed_cid(i))
            except StoreWriteError as e:
                raise StoreWriteError(f"failed to delete asset: {e.message}", operation="DeleteSeededAssets") from e
