"""Split Payment E2E Client for Stellar.

One-shot client that pays an amount from a funded account, 99% to a
recipient and 1% to the fee collector, waits for finality and outputs a
structured JSON result for the e2e test framework to parse.
"""

import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Get environment variables
payer_secret = os.getenv("STELLAR_PRIVATE_KEY", "")
recipient = os.getenv("RECIPIENT_ADDRESS", "")
amount = os.getenv("PAYMENT_AMOUNT", "")
asset_code = os.getenv("PAYMENT_ASSET", "XLM")  # "XLM" or "CODE:ISSUER"

if not payer_secret or not recipient or not amount:
    result = {
        "success": False,
        "error": "Missing required environment variables: STELLAR_PRIVATE_KEY, RECIPIENT_ADDRESS, PAYMENT_AMOUNT",
    }
    print(json.dumps(result))
    sys.exit(1)


async def main() -> dict:
    """Run one split payment. Returns the e2e result dict."""
    from splitpay import Cancelled, PaymentSession, Settings
    from splitpay.mechanisms.stellar import XLM, KeypairSigner, StellarChainClient, stellar_asset

    settings = Settings.from_env(load=False)
    if not settings.fee_recipient:
        return {"success": False, "error": "SPLITPAY_FEE_RECIPIENT is not set"}

    if asset_code == "XLM":
        asset = XLM
    else:
        code, _, issuer = asset_code.partition(":")
        asset = stellar_asset(code, issuer)

    signer = KeypairSigner.from_secret(payer_secret)
    client = StellarChainClient.from_settings(settings)

    def on_progress(event):
        logging.getLogger("e2e").info("%s: %s", event.state.value, event.message)

    try:
        async with PaymentSession(
            client,
            signer,
            payer=signer.address,
            fee_recipient=settings.fee_recipient,
            native=XLM,
            settings=settings,
        ) as session:
            outcome = await session.pay(
                asset, recipient, amount, progress=on_progress, check_balance=True
            )

        if isinstance(outcome, Cancelled):
            return {"success": False, "cancelled": True, "error": outcome.message}

        return {
            "success": True,
            "receipt": outcome.receipt.to_share_data(),
            "message": outcome.receipt.message,
            "fee": {
                "band": outcome.fee.band.value,
                "amount": str(outcome.fee.amount) if outcome.fee.amount is not None else None,
                "asset": outcome.fee.asset,
                "message": outcome.fee.message,
            },
        }

    except Exception as e:
        return {
            "success": False,
            "error": str(e),
        }


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    e2e_result = asyncio.run(main())
    print(json.dumps(e2e_result))
    sys.exit(0 if e2e_result.get("success") else 1)
