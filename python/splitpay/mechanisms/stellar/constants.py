"""Constants for the Stellar chain client."""

from stellar_sdk import Network

# CAIP-2 network identifiers
STELLAR_TESTNET_CAIP2 = "stellar:testnet"
STELLAR_PUBNET_CAIP2 = "stellar:pubnet"

STELLAR_NETWORK_TO_PASSPHRASE: dict[str, str] = {
    STELLAR_TESTNET_CAIP2: Network.TESTNET_NETWORK_PASSPHRASE,
    STELLAR_PUBNET_CAIP2: Network.PUBLIC_NETWORK_PASSPHRASE,
}

# Endpoints
DEFAULT_TESTNET_RPC_URL = "https://soroban-testnet.stellar.org"
DEFAULT_TESTNET_HORIZON_URL = "https://horizon-testnet.stellar.org"
DEFAULT_PUBNET_HORIZON_URL = "https://horizon.stellar.org"

STELLAR_NETWORK_TO_HORIZON_URL: dict[str, str] = {
    STELLAR_TESTNET_CAIP2: DEFAULT_TESTNET_HORIZON_URL,
    STELLAR_PUBNET_CAIP2: DEFAULT_PUBNET_HORIZON_URL,
}

# Ledger links, filled with the ledger sequence
STELLAR_NETWORK_TO_EXPLORER_URL: dict[str, str] = {
    STELLAR_TESTNET_CAIP2: "https://stellar.expert/explorer/testnet/ledger/{block}",
    STELLAR_PUBNET_CAIP2: "https://stellar.expert/explorer/public/ledger/{block}",
}

# Stellar amounts carry 7 decimal places (1 XLM = 10^7 stroops)
STELLAR_DECIMALS = 7

# Transaction defaults
DEFAULT_BASE_FEE_STROOPS = 100
DEFAULT_TX_TIMEOUT_SECONDS = 300
# Seconds past the validity window after which an unseen transaction is dropped
TX_EXPIRY_GRACE_SECONDS = 10.0
DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0

# Asset notation: "native" or "CODE:ISSUER"
NATIVE_ASSET = "native"
STELLAR_ACCOUNT_REGEX = r"^G[A-Z2-7]{55}$"
STELLAR_DESTINATION_ADDRESS_REGEX = r"^(G[A-Z2-7]{55}|M[A-Z2-7]{68})$"
STELLAR_ASSET_CODE_REGEX = r"^[A-Za-z0-9]{1,12}$"

# Circle USDC on testnet
USDC_TESTNET_ISSUER = "GBBD47IF6LWK7P7MDEVSCWR7DPUWV3NY3DTQEVFL4NAT4AQH3ZLLFLA5"
