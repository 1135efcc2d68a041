"""
Share Links

A share link carries the expenses and groups of a tab in the URL itself,
so a read-only copy can be opened anywhere without shared storage.

Payload: compact JSON with abbreviated keys, base64url encoded without
padding. Debts are NOT carried; the receiver recalculates them.
"""

import base64
import binascii
import json
from typing import Optional
from urllib.parse import urlencode

from pydantic import ValidationError

from expense_splitter.config import get_settings
from expense_splitter.models.expense import (
    Expense,
    ExpenseGroup,
    SharedExpense,
    SharedGroup,
    ShareableState,
    SplitterState,
    generate_expense_id,
)


class ShareDecodeError(ValueError):
    """The share payload couldn't be decoded."""
    pass


def state_to_shareable(state: SplitterState) -> ShareableState:
    """Convert state to the minimal shareable format."""
    return ShareableState(
        e=[
            SharedExpense(p=expense.person, a=expense.amount, g=expense.group_id)
            for expense in state.expenses
        ],
        gr=[
            SharedGroup(i=group.id, n=group.name, p=list(group.participants))
            for group in state.groups
        ] or None,
    )


def encode_state_for_url(state: SplitterState) -> str:
    """Encode state as a URL-safe base64 string."""
    shareable = state_to_shareable(state)
    payload = shareable.model_dump(exclude_none=True)
    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(data.encode("utf-8")).decode("ascii").rstrip("=")


def generate_share_url(
    state: SplitterState,
    base_url: Optional[str] = None,
    max_length: Optional[int] = None,
) -> Optional[str]:
    """
    Build a share URL for the state.

    Returns None when the URL would exceed the configured maximum length.
    """
    settings = get_settings().sharing
    base_url = settings.base_url if base_url is None else base_url
    max_length = settings.max_url_length if max_length is None else max_length

    query = urlencode({"data": encode_state_for_url(state), "view": "true"})
    url = f"{base_url.rstrip('/')}?{query}"

    if len(url) > max_length:
        return None
    return url


def decode_shared_state(encoded: str) -> SplitterState:
    """
    Decode a share payload back into a state.

    Shared expenses carry no ids, so fresh ones are generated.

    Raises:
        ShareDecodeError: If the payload is not valid base64url JSON
            in the shareable format
    """
    padded = encoded.strip() + "=" * (-len(encoded.strip()) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        shareable = ShareableState.model_validate(data)
    except (binascii.Error, UnicodeError, json.JSONDecodeError, ValidationError) as e:
        raise ShareDecodeError(f"Invalid share data: {e}") from e

    return SplitterState(
        expenses=[
            Expense(id=generate_expense_id(), person=item.p, amount=item.a, group_id=item.g)
            for item in shareable.e
        ],
        groups=[
            ExpenseGroup(id=item.i, name=item.n, participants=item.p)
            for item in shareable.gr or []
        ],
    )
