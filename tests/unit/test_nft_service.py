"""Unit tests for the NFT resolver and the token metadata fallback."""

import pytest

from solana_portfolio.constants import TOKEN_PROGRAM_ID, UNNAMED_NFT_NAME, USDC_MINT
from solana_portfolio.models.rpc import DasAsset, DasAssetPage
from solana_portfolio.services.metadata_service import MetadataService
from solana_portfolio.services.nft_service import NFTService, holding_from_asset, stub_holding
from solana_portfolio.utils.errors import ProviderError, SchemaMismatchError
from tests.fixtures.common import make_address, make_token_account


def asset_payload(mint, name=None, image=None, collection=None, symbol=None):
    payload = {
        "id": mint,
        "interface": "V1_NFT",
        "content": {
            "metadata": {"name": name, "symbol": symbol, "description": "A test asset"},
            "links": {"image": image},
            "files": []
        },
        "grouping": []
    }
    if collection:
        payload["grouping"].append({"group_key": "collection", "group_value": collection})
    return payload


@pytest.fixture
def nft_service(mock_solana_client, mock_das_client, engine_config):
    return NFTService(mock_solana_client, mock_das_client, engine_config)


def test_holding_from_asset_reads_content():
    collection = make_address(41)
    asset = DasAsset.model_validate(asset_payload(make_address(40), "Degen #1", "https://img/1.png", collection))

    holding = holding_from_asset(asset)

    assert holding.name == "Degen #1"
    assert holding.image == "https://img/1.png"
    assert holding.collection == collection
    assert holding.description == "A test asset"


def test_holding_from_asset_without_metadata():
    payload = asset_payload(make_address(40))
    payload["content"]["links"] = None
    payload["content"]["files"] = [{"uri": "https://arweave/1.json"}]

    holding = holding_from_asset(DasAsset.model_validate(payload))

    assert holding.name == UNNAMED_NFT_NAME
    assert holding.image == "https://arweave/1.json"
    assert holding.collection is None


def test_stub_holding_label():
    mint = make_address(42)
    assert stub_holding(mint).name == f"NFT {mint[:4]}..."
    assert stub_holding(mint).image == ""


@pytest.mark.asyncio
async def test_get_nfts_from_index(nft_service, mock_das_client, mock_solana_client, engine_config, wallet):
    # Setup
    items = [asset_payload(make_address(i), f"NFT {i}") for i in range(50, 90)]
    mock_das_client.get_assets_by_owner.return_value = DasAssetPage.model_validate({"items": items})

    # Execute
    nfts = await nft_service.get_nfts(wallet)

    # Verify
    assert len(nfts) == engine_config.nft_cap
    assert nfts[0].name == "NFT 50"
    mock_das_client.get_assets_by_owner.assert_awaited_once_with(wallet, limit=engine_config.das_page_limit)
    mock_solana_client.get_token_accounts_by_owner.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_nfts_falls_back_to_token_scan(nft_service, mock_das_client, mock_solana_client, wallet):
    """When the index fails, NFT-shaped accounts become stubs; fungible accounts are ignored."""
    nft_mint = make_address(43)
    mock_das_client.get_assets_by_owner.side_effect = SchemaMismatchError("items missing", provider="das")
    mock_solana_client.get_token_accounts_by_owner.return_value = [
        make_token_account(nft_mint, 1, 0),
        make_token_account(USDC_MINT, 1000000, 6),
    ]

    nfts = await nft_service.get_nfts(wallet)

    assert [n.mint for n in nfts] == [nft_mint]
    assert nfts[0].name.startswith("NFT ")
    mock_solana_client.get_token_accounts_by_owner.assert_awaited_once_with(wallet, TOKEN_PROGRAM_ID)


@pytest.mark.asyncio
async def test_get_nfts_fails_when_both_sources_fail(nft_service, mock_das_client, mock_solana_client, wallet):
    mock_das_client.get_assets_by_owner.side_effect = ProviderError("das down", provider="das")
    mock_solana_client.get_token_accounts_by_owner.side_effect = ProviderError("rpc down", provider="solana-rpc")

    with pytest.raises(ProviderError):
        await nft_service.get_nfts(wallet)


@pytest.mark.asyncio
async def test_metadata_prefers_known_registry(mock_das_client):
    other = make_address(44)
    mock_das_client.get_asset_batch.return_value = [
        DasAsset.model_validate(asset_payload(other, "Other Token", symbol="OTH"))
    ]
    service = MetadataService(mock_das_client, cap=30)

    resolved = await service.resolve([USDC_MINT, other])

    assert resolved[USDC_MINT].symbol == "USDC"
    assert resolved[other].name == "Other Token"
    mock_das_client.get_asset_batch.assert_awaited_once_with([other])


@pytest.mark.asyncio
async def test_metadata_caps_and_skips_nameless_assets(mock_das_client):
    mints = [make_address(i) for i in range(100, 140)]
    mock_das_client.get_asset_batch.return_value = [DasAsset.model_validate(asset_payload(mints[0]))]
    service = MetadataService(mock_das_client, cap=30)

    resolved = await service.resolve(mints)

    assert resolved == {}
    assert len(mock_das_client.get_asset_batch.await_args.args[0]) == 30


@pytest.mark.asyncio
async def test_metadata_failure_returns_partial_results(mock_das_client):
    mock_das_client.get_asset_batch.side_effect = ProviderError("das down", provider="das")
    service = MetadataService(mock_das_client)

    resolved = await service.resolve([USDC_MINT, make_address(45)])

    assert list(resolved) == [USDC_MINT]
