"""Constants used throughout the portfolio engine.

This module defines common constants to avoid duplication and ensure consistency.
"""

# Solana program IDs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PE9ZpvbGN8H2Q5"

# Both token program namespaces, scanned in this order
TOKEN_PROGRAM_IDS = (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID)

# Common token mint addresses
SOL_MINT = "So11111111111111111111111111111111111111112"  # Wrapped SOL
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"

# Native unit scale
LAMPORTS_PER_SOL = 1_000_000_000

# CoinGecko id of the native asset
NATIVE_PRICE_ID = "solana"

# Labels used for unresolved tokens and heuristic NFT stubs
UNKNOWN_TOKEN_NAME = "Unknown Token"
UNNAMED_NFT_NAME = "Unnamed NFT"

# Display metadata of well-known mints, used when no other source has it
KNOWN_TOKENS = {
    USDC_MINT: {
        "symbol": "USDC",
        "name": "USD Coin",
        "image": "https://raw.githubusercontent.com/solana-labs/token-list/main/assets/mainnet/"
                 "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v/logo.png",
    },
    USDT_MINT: {
        "symbol": "USDT",
        "name": "Tether USD",
        "image": "https://raw.githubusercontent.com/solana-labs/token-list/main/assets/mainnet/"
                 "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB/logo.svg",
    },
    SOL_MINT: {"symbol": "wSOL", "name": "Wrapped SOL"},
    "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": {"symbol": "JUP", "name": "Jupiter"},
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": {"symbol": "BONK", "name": "Bonk"},
}
