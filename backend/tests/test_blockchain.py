from compendium.services.normalization.blockchain import (
    data_source_for,
    detect_blockchain,
    detect_blockchain_from_contract,
    is_excluded_contract,
    is_valid_wallet_address,
    parse_wallet_input,
)

ETH_WALLET = "0x" + "a1" * 20
TEZ_WALLET = "tz1" + "Q" * 33


def test_detect_blockchain_by_address_format():
    assert detect_blockchain(ETH_WALLET) == "ethereum"
    assert detect_blockchain(TEZ_WALLET) == "tezos"
    assert detect_blockchain("KT1" + "a" * 33) == "tezos"
    assert detect_blockchain("  " + ETH_WALLET + "  ") == "ethereum"


def test_detect_blockchain_returns_unknown_sentinel():
    assert detect_blockchain("foo") == "unknown"
    assert detect_blockchain("0x1234") == "unknown"
    assert detect_blockchain("tz1short") == "unknown"
    assert detect_blockchain("") == "unknown"
    assert detect_blockchain(None) == "unknown"
    assert detect_blockchain(12345) == "unknown"


def test_detect_blockchain_from_contract():
    assert detect_blockchain_from_contract("KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton") == "tezos"
    assert detect_blockchain_from_contract("kt1rj6pbjhpwc3m5rw5s2nbmefwbuwbdxton") == "tezos"
    assert detect_blockchain_from_contract("KT2abc") == "tezos"
    assert detect_blockchain_from_contract("0xabc") == "ethereum"
    assert detect_blockchain_from_contract("abc") == "unknown"
    assert detect_blockchain_from_contract(None) == "unknown"


def test_data_source_depends_on_stage_for_tezos():
    assert data_source_for("tezos", "discovery") == "objkt"
    assert data_source_for("tezos", "promotion") == "teztok"
    assert data_source_for("Tezos", "promotion") == "teztok"
    assert data_source_for("ethereum", "discovery") == "opensea"
    assert data_source_for(None, "promotion") == "opensea"


def test_wrapped_tez_is_excluded():
    assert is_excluded_contract("KT1TjnZYs5CGLbmV6yuW169P8Pnr9BiVwwjz")
    assert not is_excluded_contract("KT1RJ6PbjHpwc3M5rw5s2Nbmefwbuwbdxton")


def test_wallet_validation_and_parsing():
    assert is_valid_wallet_address(ETH_WALLET)
    assert is_valid_wallet_address(TEZ_WALLET, "tezos")
    assert not is_valid_wallet_address(TEZ_WALLET, "ethereum")
    assert not is_valid_wallet_address("nope")

    raw = f"{ETH_WALLET}, {TEZ_WALLET};\n\n {ETH_WALLET}"
    assert parse_wallet_input(raw) == [ETH_WALLET, TEZ_WALLET, ETH_WALLET]
    assert parse_wallet_input([" a ", "", "b"]) == ["a", "b"]
    assert parse_wallet_input(None) == []
