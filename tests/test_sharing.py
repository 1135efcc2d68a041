"""Tests for share links."""

import base64
import json
from urllib.parse import parse_qs, urlparse

import pytest

from expense_splitter.models.expense import Expense, ExpenseGroup, SplitterState
from expense_splitter.services.sharing import (
    ShareDecodeError,
    decode_shared_state,
    encode_state_for_url,
    generate_share_url,
    state_to_shareable,
)


@pytest.fixture
def state():
    return SplitterState(
        expenses=[
            Expense(id="e1", person="Ana", amount=30, group_id="g1"),
            Expense(id="e2", person="Luis", amount=12.5),
        ],
        groups=[ExpenseGroup(id="g1", name="Kayak", participants=["Ana", "Luis"])],
    )


def decode_payload(encoded: str) -> dict:
    padded = encoded + "=" * (-len(encoded) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


class TestShareableState:
    """Tests for the abbreviated share format."""

    def test_abbreviated_keys(self, state):
        """Test that expenses and groups use short keys."""
        payload = decode_payload(encode_state_for_url(state))

        assert payload["e"] == [
            {"p": "Ana", "a": 30.0, "g": "g1"},
            {"p": "Luis", "a": 12.5},
        ]
        assert payload["gr"] == [{"i": "g1", "n": "Kayak", "p": ["Ana", "Luis"]}]

    def test_groups_omitted_when_none_exist(self):
        """Test that 'gr' is left out for a state without groups."""
        shareable = state_to_shareable(SplitterState(expenses=[Expense(id="e", person="Ana", amount=1)]))
        assert shareable.gr is None
        assert "gr" not in decode_payload(encode_state_for_url(SplitterState()))

    def test_encoding_is_url_safe(self, state):
        """Test there is no padding and no '+' or '/'."""
        encoded = encode_state_for_url(state)
        assert "=" not in encoded
        assert "+" not in encoded
        assert "/" not in encoded


class TestShareUrl:
    """Tests for generate_share_url."""

    def test_url_shape(self, state):
        """Test the query string carries data and view."""
        url = generate_share_url(state, base_url="https://split.example/", max_length=2000)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}" == "https://split.example"
        assert query["view"] == ["true"]
        assert query["data"] == [encode_state_for_url(state)]

    def test_too_long_returns_none(self, state):
        """Test the URL length limit."""
        assert generate_share_url(state, base_url="https://split.example", max_length=100) is None

    def test_large_state_exceeds_default_limit(self):
        """Test that a big tab doesn't fit in the default 2000 characters."""
        big = SplitterState(expenses=[
            Expense(id=str(i), person=f"Person number {i}", amount=i * 1.25)
            for i in range(200)
        ])
        assert generate_share_url(big, base_url="https://split.example", max_length=2000) is None


class TestDecodeSharedState:
    """Tests for decode_shared_state."""

    def test_decodes_expenses_and_groups(self, state):
        """Test that a share link restores the tab."""
        restored = decode_shared_state(encode_state_for_url(state))

        assert [(e.person, e.amount, e.group_id) for e in restored.expenses] == [
            ("Ana", 30.0, "g1"),
            ("Luis", 12.5, None),
        ]
        assert restored.groups == state.groups
        assert restored.debts is None

    def test_fresh_expense_ids(self, state):
        """Test that shared expenses get new ids."""
        restored = decode_shared_state(encode_state_for_url(state))
        ids = [e.id for e in restored.expenses]
        assert len(set(ids)) == 2
        assert "e1" not in ids

    def test_non_ascii_names(self):
        """Test that accents survive the round trip."""
        shared = SplitterState(expenses=[Expense(id="e", person="Begoña", amount=5)])
        restored = decode_shared_state(encode_state_for_url(shared))
        assert restored.expenses[0].person == "Begoña"

    @pytest.mark.parametrize("encoded", [
        "not base64 at all!",
        base64.urlsafe_b64encode(b"{broken json").decode(),
        base64.urlsafe_b64encode(b'{"e": [{"p": "Ana"}]}').decode(),
        base64.urlsafe_b64encode(b"[1, 2]").decode(),
    ])
    def test_malformed_payload(self, encoded):
        """Test that garbage raises ShareDecodeError."""
        with pytest.raises(ShareDecodeError):
            decode_shared_state(encoded)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
