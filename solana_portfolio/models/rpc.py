"""
Response schemas for the Solana JSON-RPC and DAS endpoints.

Only the fields the engine reads are declared; everything else is ignored.
A payload that does not fit a schema raises ``pydantic.ValidationError`` and
is treated by callers as unresolved.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RpcModel(BaseModel):
    """Base for provider payloads: unknown keys are ignored, camelCase aliases accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TokenAmount(RpcModel):
    amount: str
    decimals: int
    ui_amount: Optional[float] = Field(None, alias="uiAmount")

    @property
    def raw(self) -> int:
        return int(self.amount)


class TokenAccountInfo(RpcModel):
    mint: str
    owner: Optional[str] = None
    token_amount: TokenAmount = Field(alias="tokenAmount")


class ParsedInfo(RpcModel):
    info: TokenAccountInfo
    type: Optional[str] = None


class ParsedData(RpcModel):
    parsed: ParsedInfo
    program: Optional[str] = None


class ParsedAccount(RpcModel):
    data: ParsedData
    lamports: int = 0


class ParsedTokenAccount(RpcModel):
    """One entry of ``getTokenAccountsByOwner`` with ``jsonParsed`` encoding."""

    pubkey: str
    account: ParsedAccount

    @property
    def mint(self) -> str:
        return self.account.data.parsed.info.mint

    @property
    def amount(self) -> int:
        return self.account.data.parsed.info.token_amount.raw

    @property
    def decimals(self) -> int:
        return self.account.data.parsed.info.token_amount.decimals

    @property
    def looks_like_nft(self) -> bool:
        """Raw amount exactly 1 with zero decimals."""
        return self.amount == 1 and self.decimals == 0


class ProgramAccountData(RpcModel):
    """Account of a ``getProgramAccounts`` entry with ``base64`` encoding."""

    data: List[str]
    lamports: int = 0
    owner: Optional[str] = None


class ProgramAccount(RpcModel):
    pubkey: str
    account: ProgramAccountData


class SignatureInfo(RpcModel):
    """One entry of ``getSignaturesForAddress``."""

    signature: str
    slot: Optional[int] = None
    err: Optional[Any] = None
    block_time: Optional[int] = Field(None, alias="blockTime")
    confirmation_status: Optional[str] = Field(None, alias="confirmationStatus")


class UiTokenAmount(RpcModel):
    amount: str
    decimals: int


class TokenBalance(RpcModel):
    account_index: int = Field(alias="accountIndex")
    mint: str
    owner: Optional[str] = None
    ui_token_amount: UiTokenAmount = Field(alias="uiTokenAmount")


class TransactionMeta(RpcModel):
    fee: int = 0
    err: Optional[Any] = None
    pre_balances: List[int] = Field(default_factory=list, alias="preBalances")
    post_balances: List[int] = Field(default_factory=list, alias="postBalances")
    pre_token_balances: List[TokenBalance] = Field(default_factory=list, alias="preTokenBalances")
    post_token_balances: List[TokenBalance] = Field(default_factory=list, alias="postTokenBalances")


class AccountKey(RpcModel):
    pubkey: str
    signer: bool = False
    writable: bool = False


class TransactionMessage(RpcModel):
    account_keys: List[Union[AccountKey, str]] = Field(default_factory=list, alias="accountKeys")

    @property
    def keys(self) -> List[str]:
        return [key if isinstance(key, str) else key.pubkey for key in self.account_keys]


class TransactionBody(RpcModel):
    message: TransactionMessage


class ParsedTransaction(RpcModel):
    """Result of ``getTransaction`` with ``jsonParsed`` encoding."""

    slot: Optional[int] = None
    block_time: Optional[int] = Field(None, alias="blockTime")
    meta: Optional[TransactionMeta] = None
    transaction: TransactionBody

    @property
    def account_keys(self) -> List[str]:
        return self.transaction.message.keys


class AssetMetadata(RpcModel):
    name: Optional[str] = None
    symbol: Optional[str] = None
    description: Optional[str] = None


class AssetLinks(RpcModel):
    image: Optional[str] = None


class AssetFile(RpcModel):
    uri: Optional[str] = None
    mime: Optional[str] = None


class AssetContent(RpcModel):
    metadata: AssetMetadata = Field(default_factory=AssetMetadata)
    links: Optional[AssetLinks] = None
    files: List[AssetFile] = Field(default_factory=list)


class AssetGrouping(RpcModel):
    group_key: str
    group_value: str


class AssetTokenInfo(RpcModel):
    symbol: Optional[str] = None
    decimals: Optional[int] = None


class DasAsset(RpcModel):
    """An item of a DAS ``getAssetsByOwner`` or ``getAssetBatch`` response."""

    id: str
    interface: Optional[str] = None
    content: AssetContent = Field(default_factory=AssetContent)
    grouping: List[AssetGrouping] = Field(default_factory=list)
    token_info: Optional[AssetTokenInfo] = None

    @property
    def name(self) -> Optional[str]:
        return self.content.metadata.name or None

    @property
    def symbol(self) -> Optional[str]:
        symbol = self.content.metadata.symbol
        if not symbol and self.token_info:
            symbol = self.token_info.symbol
        return symbol or None

    @property
    def image(self) -> Optional[str]:
        if self.content.links and self.content.links.image:
            return self.content.links.image
        if self.content.files and self.content.files[0].uri:
            return self.content.files[0].uri
        return None

    @property
    def collection(self) -> Optional[str]:
        for group in self.grouping:
            if group.group_key == "collection":
                return group.group_value
        return None


class DasAssetPage(RpcModel):
    """Page returned by ``getAssetsByOwner``; ``items`` is mandatory."""

    total: Optional[int] = None
    limit: Optional[int] = None
    page: Optional[int] = None
    items: List[DasAsset]
