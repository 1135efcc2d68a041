"""
Expense Summary

Read-only aggregates the UI shows next to the payment list:
totals, who paid what, and how many payments are still pending.

Everything here is DETERMINISTIC and computed from stored data only.
"""

from typing import Iterable

from pydantic import BaseModel, Field

from expense_splitter.core import collect_participants
from expense_splitter.models.expense import Expense, SplitterState


class PersonTotal(BaseModel):
    """What one person paid, and how many expenses that covers."""

    person: str
    paid: float = 0.0
    expense_count: int = 0


class ExpenseSummary(BaseModel):
    """Aggregates over one state."""

    total_spent: float = Field(
        default=0.0,
        description="Sum of all expense amounts"
    )
    expense_count: int = 0
    people: list[str] = Field(
        default_factory=list,
        description="Everyone involved, in first-seen order"
    )
    per_person: list[PersonTotal] = Field(default_factory=list)
    zero_contributors: list[str] = Field(
        default_factory=list,
        description="People who paid nothing"
    )
    pending_debts: int = 0
    settled_debts: int = 0
    pending_amount: float = 0.0

    @property
    def all_settled(self) -> bool:
        """True when debts exist and every one of them is settled."""
        return self.settled_debts > 0 and self.pending_debts == 0


def calculate_total_expenses(expenses: Iterable[Expense]) -> float:
    """Sum of all expense amounts."""
    return sum(float(expense.amount) for expense in expenses)


def build_summary(state: SplitterState) -> ExpenseSummary:
    """Aggregate a state for display."""
    people = collect_participants(state.expenses, state.groups)

    totals = {person: PersonTotal(person=person) for person in people}
    for expense in state.expenses:
        entry = totals[expense.person]
        entry.paid += expense.amount
        entry.expense_count += 1

    debts = state.debts or []
    pending = [debt for debt in debts if not debt.settled]

    return ExpenseSummary(
        total_spent=calculate_total_expenses(state.expenses),
        expense_count=len(state.expenses),
        people=people,
        per_person=list(totals.values()),
        zero_contributors=[entry.person for entry in totals.values() if entry.paid == 0],
        pending_debts=len(pending),
        settled_debts=len(debts) - len(pending),
        pending_amount=sum(debt.amount for debt in pending),
    )
