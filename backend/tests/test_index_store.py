import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from compendium.core.errors import RecordValidationError
from compendium.models import ArtworkIndex
from compendium.models.base import utcnow
from compendium.schemas.artwork_index import IndexedArtworkData
from compendium.schemas.nft import NftCreator
from compendium.services.index_store import (
    IndexStore,
    make_nft_uid,
    merge_owners,
    parse_document,
)

WALLET = "0x" + "b" * 40


async def _row_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(ArtworkIndex.id)))).scalar_one()


async def test_store_creates_pending_row(store, make_nft):
    row_id = await store.store_nft(make_nft(title="First"), indexing_wallet=WALLET)

    row = await store.get("0xABCDEFabcdef0000000000000000000000000001", "1")
    assert row.id == row_id
    assert row.contract_address == "0xabcdefabcdef0000000000000000000000000001"
    assert row.nft_uid == "0xabcdefabcdef0000000000000000000000000001:1"
    assert row.import_status == "pending"
    assert row.type == "owned"
    assert row.blockchain == "ethereum"
    assert row.data_source == "opensea"
    assert row.normalized_data["title"] == "First"
    assert row.normalized_data["owners"] == [{"address": WALLET, "quantity": 1}]


async def test_upsert_never_duplicates_natural_key(store, make_nft, session_factory):
    first = await store.store_nft(make_nft(title="v1"))
    second = await store.store_nft(make_nft(title="v2"))
    # contract case must not create a second identity
    third = await store.store_nft(make_nft(contract="0xabcdefabcdef0000000000000000000000000001", title="v3"))

    assert first == second == third
    assert await _row_count(session_factory) == 1
    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "1")
    assert row.normalized_data["title"] == "v3"


async def test_type_upgrade_is_one_way(store, make_nft):
    creator = NftCreator(address=WALLET.upper().replace("0X", "0x"))

    await store.store_nft(make_nft(), type="owned")
    await store.store_nft(make_nft(creator=creator), indexing_wallet=WALLET)
    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "1")
    assert row.type == "created"

    await store.store_nft(make_nft(), type="owned")
    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "1")
    assert row.type == "created"


async def test_owners_accumulate_across_wallets(store, make_nft):
    other = "0x" + "c" * 40
    await store.store_nft(make_nft(), indexing_wallet=WALLET)
    await store.store_nft(make_nft(), indexing_wallet=other)
    await store.store_nft(make_nft(), indexing_wallet=WALLET.upper().replace("0X", "0x"))

    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "1")
    assert [o["address"] for o in row.normalized_data["owners"]] == [WALLET, other]


async def test_tezos_row_attributed_to_objkt(store, make_nft):
    await store.store_nft(make_nft(contract="KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton", token="5"))
    row = await store.get("KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton", "5")
    assert row.blockchain == "tezos"
    assert row.data_source == "objkt"


async def test_missing_natural_key_is_rejected(store, make_nft, session_factory):
    with pytest.raises(RecordValidationError):
        await store.store_nft(make_nft(contract=None))
    with pytest.raises(RecordValidationError):
        await store.store_nft(make_nft(token=None))
    assert await _row_count(session_factory) == 0


async def test_link_skips_when_no_row_exists(store, session_factory):
    document = IndexedArtworkData(id=5, title="Orphan", contract_addr="0xdead", token_id="1")

    linked = await store.link_to_final_record("0xdead", "1", 5, document)

    assert linked is False
    assert await _row_count(session_factory) == 0


async def test_link_marks_row_imported(store, make_nft):
    await store.store_nft(make_nft(contract="KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton", token="5"))
    document = IndexedArtworkData(id=3, title="Linked", token_id="5")

    linked = await store.link_to_final_record(
        "KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton", "5", 3, document,
        raw_response=[{"trait_type": "a", "value": "b"}], blockchain="tezos",
    )

    assert linked is True
    row = await store.get("KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton", "5")
    assert row.import_status == "imported"
    assert row.artwork_id == 3
    assert row.data_source == "teztok"
    assert row.normalized_data["title"] == "Linked"
    assert row.raw_response == [{"trait_type": "a", "value": "b"}]


async def test_mark_failed(store, make_nft):
    await store.store_nft(make_nft())
    assert await store.mark_failed("0xabcdefabcdef0000000000000000000000000001", "1", "boom")
    assert not await store.mark_failed("0xnothing", "1", "boom")

    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "1")
    assert row.import_status == "failed"
    assert row.error_message == "boom"


async def test_stats(store, make_nft):
    await store.store_nft(make_nft(token="1"))
    await store.store_nft(make_nft(token="2"))
    await store.store_nft(make_nft(token="3"))
    await store.mark_failed("0xabcdefabcdef0000000000000000000000000001", "3", "x")

    stats = await store.stats()
    assert (stats.total, stats.pending, stats.imported, stats.failed) == (3, 2, 0, 1)


async def test_writes_invalidate_cache(session_factory, make_nft):
    cache = AsyncMock()
    store = IndexStore(session_factory, cache=cache)

    await store.store_nft(make_nft())

    cache.invalidate.assert_awaited_once()


def test_normalized_data_tolerates_string_storage():
    doc = {"title": "T", "tokenID": "1", "editionSize": 4}
    row = ArtworkIndex(normalized_data=json.dumps(doc))

    normalized = IndexStore.get_normalized(row)

    assert normalized.title == "T"
    assert normalized.edition_size == 4
    assert parse_document("{not json") is None
    assert parse_document('["list"]') is None
    assert parse_document(doc) == doc


def test_nft_uid_placeholders():
    assert make_nft_uid("0xabc", "1") == "0xabc:1"
    assert make_nft_uid(None, "1") == "unknown:1"
    assert make_nft_uid("0xabc", None) == "0xabc:unknown"


async def test_insert_race_updates_the_winning_row(store, make_nft, session_factory, monkeypatch):
    winner_id = await store.store_nft(make_nft(title="winner"), type="owned")

    real_find = IndexStore._find
    lookups = []

    async def stale_first_lookup(session, contract_address, token_id):
        lookups.append(token_id)
        if len(lookups) == 1:
            # the competing writer commits between our read and our insert
            return None
        return await real_find(session, contract_address, token_id)

    monkeypatch.setattr(store, "_find", stale_first_lookup)
    creator = NftCreator(address=WALLET)

    row_id = await store.store_nft(make_nft(title="late", creator=creator), indexing_wallet=WALLET)

    assert row_id == winner_id
    assert await _row_count(session_factory) == 1
    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "1")
    assert row.type == "created"
    assert row.normalized_data["title"] == "late"


def test_merge_owners_drops_malformed_entries():
    owners = merge_owners(
        [{"address": 123}, "junk", {"quantity": 3}, {"address": WALLET, "quantity": 2}],
        None,
    )
    assert [(o.address, o.quantity) for o in owners] == [(WALLET, 2)]

    assert [o.address for o in merge_owners("not-a-list", WALLET)] == [WALLET]
    assert merge_owners(None, None) is None


async def test_explicit_chain_wins_over_contract_detection(store, make_nft):
    await store.store_nft(make_nft(token="7", blockchain="polygon"))

    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "7")
    assert row.blockchain == "polygon"
    assert row.normalized_data["blockchain"] == "polygon"


async def test_rediscovery_keeps_column_and_document_chain_in_step(store, make_nft):
    await store.store_nft(make_nft(token="8"))
    await store.store_nft(make_nft(token="8", blockchain="base"))

    row = await store.get("0xabcdefabcdef0000000000000000000000000001", "8")
    assert row.blockchain == "base"
    assert row.normalized_data["blockchain"] == "base"


def test_utcnow_is_naive_utc():
    now = utcnow()
    assert now.tzinfo is None
    assert abs((datetime.now(timezone.utc).replace(tzinfo=None) - now).total_seconds()) < 5
