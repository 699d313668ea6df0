"""
Minimal script that initializes an EPS payment and then checks its status.
"""

from __future__ import annotations

import argparse
import logging
import sys

from eps_gateway import (
    ConfigError,
    GatewayError,
    PaymentRequest,
    create_gateway_client,
    generate_transaction_id,
    load_gateway_config,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a sandbox EPS payment end to end")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing EPS_* settings",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument(
        "--amount",
        default="100",
        help="Amount to charge in BDT (default: 100)",
    )
    parser.add_argument(
        "--verify",
        metavar="MERCHANT_TRANSACTION_ID",
        help="Skip initialization and only check this transaction",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = load_gateway_config(env_file=args.env_file, sandbox=True)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_gateway_client(config=config)

    if args.verify:
        paid = client.is_payment_successful(args.verify)
        logging.info("Transaction %s successful: %s", args.verify, paid)
        return 0 if paid else 1

    transaction_id = generate_transaction_id()
    request = PaymentRequest(
        customer_order_id=f"ORD-{transaction_id}",
        merchant_transaction_id=transaction_id,
        total_amount=args.amount,
        success_url="https://example.com/payment/success",
        fail_url="https://example.com/payment/fail",
        cancel_url="https://example.com/payment/cancel",
        customer_name="John Doe",
        customer_email="john@example.com",
        customer_address="House 1, Road 2",
        customer_city="Dhaka",
        customer_state="Dhaka",
        customer_postcode="1200",
        customer_phone="01712345678",
        product_name="Test Product",
        value_a="example-order",
    )

    try:
        payment = client.initialize_payment(request)
    except GatewayError as exc:
        logging.error("Payment initialization failed: %s", exc)
        return 1

    logging.info("EPS transaction id: %s", payment.transaction_id)
    logging.info("Redirect the customer to %s", payment.redirect_url)
    logging.info(
        "Afterwards run: python %s --verify %s", sys.argv[0], transaction_id
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
