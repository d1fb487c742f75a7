"""
Fixed endpoints, contract addresses and ABIs used by the Reppo publisher.

All addresses are on Base mainnet (chain id 8453).
"""

from __future__ import annotations

CONFIG_DIR_NAME = ".config/reppo"
SESSION_FILE_NAME = "privy_session.json"

REPPO_API = "https://reppo.ai/api/v1"
PRIVY_API = "https://auth.privy.io"
PRIVY_APP_ID = "cm6oljano016v9x3xsd1xw36p"
PRIVY_CLIENT = "react-auth:3.13.1"
MOLTBOOK_API = "https://moltbook.com/api"
MOLTBOOK_POST_URL = "https://moltbook.com/post/{id}"
DEFAULT_SUBMOLT = "datatrading"

BASESCAN_TX_URL = "https://basescan.org/tx/{tx_hash}"
DEFAULT_RPC_URL = "https://mainnet.base.org"
CHAIN_ID = 8453
CHAIN_NAME = "Base"

POD_CONTRACT = "0xcfF0511089D0Fbe92E1788E4aFFF3E7930b3D47c"
REPPO_TOKEN = "0xFf8104251E7761163faC3211eF5583FB3F8583d6"
USDC_TOKEN = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
UNISWAP_ROUTER = "0x2626664c2603336E57B271c5C0b26F421741e481"
UNISWAP_QUOTER = "0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a"
UNISWAP_POOL_FEE = 10000
EMISSION_SHARE = 50

REPPO_DECIMALS = 18
USDC_DECIMALS = 6
ETH_DECIMALS = 18

ZERO_TX_HASH = "0x" + "0" * 64

TX_RECEIPT_TIMEOUT = 120  # seconds
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0  # seconds
HTTP_TIMEOUT_SECONDS = 30

# Tokens within this many seconds of expiry are treated as expired.
SESSION_EXPIRY_MARGIN_SECONDS = 60

SIWE_DOMAIN = "reppo.ai"
SIWE_URI = "https://reppo.ai"
SIWE_VERSION = "1"
SIWE_STATEMENT = (
    "By signing, you are proving you own this wallet and logging in. "
    "This does not initiate a transaction or cost any fees."
)
# The auth provider only accepts mainnet SIWE messages, whatever chain we transact on.
SIWE_CHAIN_ID = 1


POD_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint8", "name": "emissionSharePercent", "type": "uint8"},
        ],
        "name": "mintPod",
        "outputs": [{"internalType": "uint256", "name": "podId", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "publishingFee",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "podId", "type": "uint256"}],
        "name": "burnPod",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
            {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
            {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    },
]

ERC20_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "address", "name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

QUOTER_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "tokenIn", "type": "address"},
                    {"internalType": "address", "name": "tokenOut", "type": "address"},
                    {"internalType": "uint256", "name": "amount", "type": "uint256"},
                    {"internalType": "uint24", "name": "fee", "type": "uint24"},
                    {"internalType": "uint160", "name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
                "internalType": "struct IQuoterV2.QuoteExactOutputSingleParams",
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "quoteExactOutputSingle",
        "outputs": [
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "uint160", "name": "sqrtPriceX96After", "type": "uint160"},
            {"internalType": "uint32", "name": "initializedTicksCrossed", "type": "uint32"},
            {"internalType": "uint256", "name": "gasEstimate", "type": "uint256"},
        ],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]

SWAP_ROUTER_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "tokenIn", "type": "address"},
                    {"internalType": "address", "name": "tokenOut", "type": "address"},
                    {"internalType": "uint24", "name": "fee", "type": "uint24"},
                    {"internalType": "address", "name": "recipient", "type": "address"},
                    {"internalType": "uint256", "name": "amountOut", "type": "uint256"},
                    {"internalType": "uint256", "name": "amountInMaximum", "type": "uint256"},
                    {"internalType": "uint160", "name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
                "internalType": "struct IV3SwapRouter.ExactOutputSingleParams",
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "exactOutputSingle",
        "outputs": [{"internalType": "uint256", "name": "amountIn", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function",
    }
]
