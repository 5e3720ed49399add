"""
SATIM gateway codes, per-endpoint error tables and status vocabularies.

All tables are read-only. Lookups that may miss go through the helpers at the
bottom of the module, which fall back instead of raising.
"""
from __future__ import annotations

from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping, Optional


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_PROTOCOL_ERROR = 60001
    SIGNATURE_ERROR = 60002
    TIMEOUT = 60003
    NETWORK_ERROR = 60004
    PAYMENT_NOT_FOUND = 60005
    PAYMENT_EXPIRED = 60006


class GatewayEndpoint(str, Enum):
    REGISTER = "register"
    ACKNOWLEDGE = "acknowledge"
    REFUND = "refund"


SATIM_URLS = MappingProxyType({
    "sandbox": "https://test2.satim.dz/payment/rest",
    "production": "https://satim.dz/payment/rest",
})

API_ENDPOINTS = MappingProxyType({
    GatewayEndpoint.REGISTER: "/register.do",
    GatewayEndpoint.ACKNOWLEDGE: "/public/acknowledgeTransaction.do",
    GatewayEndpoint.REFUND: "/refund.do",
})

# Gateway-side error codes (string on the wire)
GATEWAY_SUCCESS = "0"
GATEWAY_DUPLICATE_ORDER = "1"
GATEWAY_UNKNOWN_CURRENCY = "3"
GATEWAY_MISSING_PARAMETER = "4"
GATEWAY_INVALID_PARAMETER = "5"
GATEWAY_UNREGISTERED_ORDER = "6"
GATEWAY_SYSTEM_ERROR = "7"
GATEWAY_INVALID_PAYMENTWAY = "14"

MIN_AMOUNT = 5000  # 50 DA
MIN_REFUND_AMOUNT = 100  # 1 DA
AMOUNT_STEP = 100

CURRENCY_DZD = "012"
CURRENCY_CODES = MappingProxyType({
    "DZD": CURRENCY_DZD,
    CURRENCY_DZD: CURRENCY_DZD,
})

ORDER_STATUS_DESCRIPTIONS: Mapping[int, str] = MappingProxyType({
    0: "Order registered, but not paid.",
    -1: "Transaction declined - none of the specified statuses is suitable.",
    1: "Transaction has been approved (one-phase payment) or preauthorization amount was put on hold (two-phase payment).",
    2: "Amount was deposited successfully.",
    3: "Authorization has been reversed.",
    4: "Transaction has been refunded.",
    6: "Authorization is declined.",
    7: "Card Added.",
    8: "Card Updated.",
    9: "Card verified.",
    10: "Recurring Template Added.",
    11: "Debited.",
})

# Status strings as delivered in callback notifications
CALLBACK_STATUS_TO_INTERNAL: Mapping[str, str] = MappingProxyType({
    "0": "success",
    "1": "success",
    "2": "success",
    "3": "failed",
    "4": "pending",
    "5": "failed",
    "6": "cancelled",
    "DEPOSITED": "success",
    "REVERSED": "success",
    "DECLINED": "failed",
    "CANCELLED": "cancelled",
    "PENDING": "pending",
})

REGISTER_ERROR_MESSAGES: Mapping[str, str] = MappingProxyType({
    "0": "No system error.",
    "1": "Order with given order number has already been processed or the childId is incorrect. Order with this number was registered but not paid. Submerchant is blocked or deleted.",
    "3": "Unknown currency.",
    "4": "Order number is not specified. Merchant user name is not specified. Amount is not specified. Return URL cannot be empty. Password cannot be empty.",
    "5": "Incorrect value of a request parameter. Incorrect value in the Language parameter. Access is denied. Merchant must change the password. Invalid jsonParams[].",
    "7": "System error.",
    "14": "Paymentway is invalid.",
})

ACKNOWLEDGE_ERROR_MESSAGES: Mapping[str, str] = MappingProxyType({
    "0": "Success.",
    "2": "The order is declined because of an error in the payment credentials.",
    "5": "Access is denied. The user must change the password. orderId is empty.",
    "6": "Unregistered order Id.",
    "7": "System error.",
})

REFUND_ERROR_MESSAGES: Mapping[str, str] = MappingProxyType({
    "0": "No system error",
    "5": "Access is denied. The user must change their password. Invalid amount. Deposit amount must be zero, or more than 1 currency unit (for example, 1 euro). Refund with this externalRefundId already exists for merchant.",
    "6": "Unregistered OrderId.",
    "7": "System error. Payment must be in a correct state.",
})

REFUND_ERROR_HINTS: Mapping[str, str] = MappingProxyType({
    "5": "POSSIBLE CAUSES: 1) Refund already processed for this payment, 2) Payment not in correct state for refund, 3) Sandbox account may not support refunds, 4) Invalid amount format.",
    "6": "The payment ID does not exist or is invalid.",
    "7": "The payment must be fully settled (OrderStatus=2) before refund.",
})

GATEWAY_ERROR_TABLES: Mapping[GatewayEndpoint, Mapping[str, str]] = MappingProxyType({
    GatewayEndpoint.REGISTER: REGISTER_ERROR_MESSAGES,
    GatewayEndpoint.ACKNOWLEDGE: ACKNOWLEDGE_ERROR_MESSAGES,
    GatewayEndpoint.REFUND: REFUND_ERROR_MESSAGES,
})

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def gateway_error_message(
    endpoint: GatewayEndpoint,
    code: object,
    fallback: Optional[str] = None,
) -> str:
    """Human-readable message for a gateway error code on a given endpoint."""
    table = GATEWAY_ERROR_TABLES.get(endpoint, {})
    return table.get(str(code)) or fallback or UNKNOWN_ERROR_MESSAGE


def refund_error_hint(code: object) -> Optional[str]:
    return REFUND_ERROR_HINTS.get(str(code))
