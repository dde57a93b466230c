"""
Field normalizer: maps the payment processor's payload shapes onto one
RegistrationRecord.

Each canonical field has an ordered list of extractors; the first one that
yields a non-empty value wins. Checkout integrations post either a flat
body, an `order` object with a nested `customer`, or only query parameters.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from backend.webhook.errors import InvalidField, MissingField
from backend.webhook.reader import coerce_number
from config.settings import PROFILE_TYPES, SUBSCRIPTION_PLANS

logger = logging.getLogger(__name__)

Extractor = Callable[[Mapping[str, Any], Mapping[str, Any]], Any]

ANNUAL_MARKERS = ("ANNUAL", "YEARLY", "ANUAL")


@dataclass
class RegistrationRecord:
    email: str
    profile_type: str
    subscription_plan: str
    name: Optional[str] = None
    password: Optional[str] = None
    transaction_id: Optional[str] = None
    amount: Optional[Union[int, float]] = None

    @property
    def is_test_signup(self) -> bool:
        """Zero or missing amount marks a test signup."""
        return not self.amount


def _dict(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _order(body: Mapping[str, Any]) -> Mapping[str, Any]:
    return _dict(body.get("order"))


def _customer(body: Mapping[str, Any]) -> Mapping[str, Any]:
    return _dict(body.get("customer")) or _dict(_order(body).get("customer"))


def _key(key: str) -> Extractor:
    return lambda body, query: body.get(key)


def _order_key(key: str) -> Extractor:
    return lambda body, query: _order(body).get(key)


def _customer_key(key: str) -> Extractor:
    return lambda body, query: _customer(body).get(key)


def _query_key(key: str) -> Extractor:
    return lambda body, query: query.get(key)


def _customer_first_last(body: Mapping[str, Any], query: Mapping[str, Any]) -> Optional[str]:
    customer = _customer(body)
    parts = [str(customer.get(k) or "").strip() for k in ("first_name", "last_name")]
    joined = " ".join(p for p in parts if p)
    return joined or None


def _plan_from_line_items(body: Mapping[str, Any], query: Mapping[str, Any]) -> Optional[str]:
    """Infer the plan from the first purchased item's SKU, title and variant."""
    items = _order(body).get("line_items") or body.get("line_items")
    if not isinstance(items, list) or not items or not isinstance(items[0], Mapping):
        return None
    item = items[0]
    haystack = "".join(str(item.get(k) or "") for k in ("sku", "title", "variant_title")).upper()
    if any(marker in haystack for marker in ANNUAL_MARKERS):
        return "annual"
    return "monthly"


FIELD_EXTRACTORS: Dict[str, Sequence[Extractor]] = {
    "email": (_key("email"), _order_key("email"), _customer_key("email"), _query_key("email")),
    "name": (
        _key("name"),
        _customer_key("full_name"),
        _customer_first_last,
        _query_key("name"),
    ),
    "profile_type": (_key("profile_type"), _order_key("profile_type"), _query_key("profile_type")),
    "subscription_plan": (
        _key("subscription_plan"),
        _key("plan"),
        _query_key("subscription_plan"),
        _plan_from_line_items,
    ),
    "password": (_key("password"), _query_key("password")),
    "transaction_id": (_key("transaction_id"), _order_key("id"), _query_key("transaction_id")),
    "amount": (_key("amount"), _order_key("total_price"), _query_key("amount")),
}

# Secret sources, highest priority first: query string, body, header
SECRET_KEYS = ("secret", "webhook_secret", "auth_token")
SECRET_HEADER = "x-webhook-secret"


def first_value(extractors: Sequence[Extractor], body: Mapping[str, Any], query: Mapping[str, Any]) -> Any:
    for extract in extractors:
        value = extract(body, query)
        if isinstance(value, str):
            value = value.strip()
        if value is not None and value != "":
            return value
    return None


def extract_secret(body: Mapping[str, Any], query: Mapping[str, Any], headers: Mapping[str, str]) -> Optional[str]:
    extractors: List[Extractor] = [_query_key(k) for k in SECRET_KEYS]
    extractors += [_key(k) for k in SECRET_KEYS]
    extractors.append(lambda body, query: headers.get(SECRET_HEADER))
    value = first_value(extractors, body, query)
    return str(value) if value is not None else None


def normalize_registration(body: Mapping[str, Any], query: Mapping[str, Any]) -> RegistrationRecord:
    """
    Resolve every canonical field from the raw body and query parameters.

    Raises:
        MissingField: email, profile_type or subscription_plan absent
        InvalidField: profile_type or subscription_plan outside the allowed set
    """
    values = {field: first_value(extractors, body, query) for field, extractors in FIELD_EXTRACTORS.items()}

    missing = [f for f in ("email", "profile_type", "subscription_plan") if not values[f]]
    if missing:
        raise MissingField(*missing)

    profile_type = str(values["profile_type"]).lower()
    if profile_type not in PROFILE_TYPES:
        raise InvalidField(f"Unknown profile_type '{profile_type}'")

    plan = str(values["subscription_plan"]).lower()
    if plan not in SUBSCRIPTION_PLANS:
        raise InvalidField(f"Unknown subscription_plan '{plan}'")

    amount = coerce_number(values["amount"])
    transaction_id = values["transaction_id"]

    record = RegistrationRecord(
        email=str(values["email"]).lower(),
        name=str(values["name"]) if values["name"] else None,
        profile_type=profile_type,
        subscription_plan=plan,
        password=str(values["password"]) if values["password"] else None,
        transaction_id=str(transaction_id) if transaction_id is not None else None,
        amount=amount,
    )
    logger.info(
        f"Normalized registration: plan={record.subscription_plan} profile={record.profile_type} "
        f"transaction={record.transaction_id} amount={record.amount}"
    )
    return record
