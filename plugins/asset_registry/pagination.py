# plugins/asset_registry/pagination.py
"""
Turns a state iterator into one page of assets.

Both the range-scan and the rich-query entry points end up in
`collect_page`, which owns the iterator for the whole materialization and
closes it on every exit path.
"""

import logging
from typing import List

from plugins.core_ledger.contracts import TransactionContextInterface
from plugins.core_world_state.contracts import (
    QueryResponseMetadata,
    StateQueryIteratorInterface,
    StoreReadError,
)
from .models import Asset, PaginatedQueryResult

logger = logging.getLogger(__name__)


def construct_records_from_iterator(
    results_iterator: StateQueryIteratorInterface, operation: str
) -> List[Asset]:
    records: List[Asset] = []
    while results_iterator.has_next():
        try:
            query_result = results_iterator.next()
        except StoreReadError as e:
            raise StoreReadError(f"failed to read asset from iterator: {e.message}", operation=operation) from e
        records.append(Asset.from_bytes(query_result.value, operation=operation))
    return records


def collect_page(
    results_iterator: StateQueryIteratorInterface,
    metadata: QueryResponseMetadata,
    operation: str,
) -> PaginatedQueryResult:
    with results_iterator:
        records = construct_records_from_iterator(results_iterator, operation)

    logger.debug(f"{operation}: materialized {len(records)} record(s), store fetched {metadata.fetched_records_count}.")
    return PaginatedQueryResult(
        records=records,
        fetched_records_count=metadata.fetched_records_count,
        bookmark=metadata.bookmark,
    )


def get_query_result_for_query_string_with_pagination(
    ctx: TransactionContextInterface,
    query_string: str,
    page_size: int,
    bookmark: str,
    operation: str = "QueryAssets",
) -> PaginatedQueryResult:
    try:
        results_iterator, metadata = ctx.stub.get_query_result_with_pagination(query_string, page_size, bookmark)
    except StoreReadError as e:
        raise StoreReadError(f"failed to get query result: {e.message}", operation=operation) from e
    return collect_page(results_iterator, metadata, operation)


def get_state_by_range_with_pagination(
    ctx: TransactionContextInterface,
    start_key: str,
    end_key: str,
    page_size: int,
    bookmark: str,
    operation: str = "ReadAssets",
) -> PaginatedQueryResult:
    try:
        results_iterator, metadata = ctx.stub.get_state_by_range_with_pagination(
            start_key, end_key, page_size, bookmark
        )
    except StoreReadError as e:
        raise StoreReadError(f"failed to get state by range: {e.message}", operation=operation) from e
    return collect_page(results_iterator, metadata, operation)
