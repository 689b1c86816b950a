# ABOUTME: Verifies ticket payments against the payment gateway's REST API.
# ABOUTME: Used by the desktop and mobile payment-complete handlers.

import logging
import requests
from requests.exceptions import RequestException

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

def verify_payment(api_url: str | None, api_key: str | None, payment_id: str, merchant_uid: str, expected_amount: int) -> dict | None:
    """
    Fetch a payment from the gateway and check it settles the given order.

    Returns the payment record when it is paid, belongs to ``merchant_uid`` and
    matches ``expected_amount``; otherwise None.
    """
    if not api_url or not api_key:
        logging.error("Payment gateway is not configured, cannot verify payment.")
        return None
    if not payment_id:
        logging.warning("No payment id provided for verification.")
        return None

    payment_url = f"{api_url}/payments/{payment_id}"
    headers = {
        'Authorization': f'Bearer {api_key}',
        'Accept': 'application/json'
    }
    logging.info(f"Verifying payment {payment_id} for order {merchant_uid} via GET {payment_url}")

    try:
        response = requests.get(payment_url, headers=headers, timeout=15)
        response.raise_for_status()
        payment = response.json()
    except RequestException as e:
        logging.error(f"Error requesting payment {payment_id} from {payment_url}: {e}")
        return None
    except ValueError as e:
        logging.error(f"Could not parse payment response as JSON: {e}")
        return None

    # Some gateways wrap the record in a 'response' envelope
    if isinstance(payment, dict) and isinstance(payment.get('response'), dict):
        payment = payment['response']
    if not isinstance(payment, dict):
        logging.error(f"Unexpected payment response format: {type(payment)}")
        return None

    if payment.get('merchant_uid') != merchant_uid:
        logging.error(f"Payment {payment_id} belongs to order {payment.get('merchant_uid')}, expected {merchant_uid}")
        return None
    if payment.get('status') != 'paid':
        logging.warning(f"Payment {payment_id} is not paid (status: {payment.get('status')})")
        return None
    try:
        amount = int(payment.get('amount'))
    except (TypeError, ValueError):
        logging.error(f"Payment {payment_id} has no usable amount: {payment.get('amount')!r}")
        return None
    if amount != expected_amount:
        logging.error(f"Payment {payment_id} amount {amount} does not match ticket amount {expected_amount}")
        return None

    logging.info(f"Payment {payment_id} verified for order {merchant_uid}")
    return payment
