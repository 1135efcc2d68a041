"""
Balance Calculator

Turns a list of expenses into one net balance per participant.

Positive balance: the rest of the group owes this person.
Negative balance: this person owes the rest of the group.

The calculation is a pure function of its inputs. It never validates
amounts and never raises: garbage in propagates as NaN out. Callers
sanitise input through ExpenseValidator first.
"""

from typing import Iterable

import structlog

from expense_splitter.models.expense import Balance, Expense, ExpenseGroup


logger = structlog.get_logger(__name__)


def collect_participants(
    expenses: Iterable[Expense],
    groups: Iterable[ExpenseGroup],
) -> list[str]:
    """
    Build the universal participant set.

    Payers come first in expense order, then group members in group order.
    A name keeps the position of its first appearance.
    """
    seen: dict[str, None] = {}
    for expense in expenses:
        seen.setdefault(expense.person, None)
    for group in groups:
        for person in group.participants:
            seen.setdefault(person, None)
    return list(seen)


def compute_balances(
    expenses: list[Expense],
    groups: list[ExpenseGroup],
) -> list[Balance]:
    """
    Compute each participant's net balance.

    Every expense credits its payer with the full amount and debits each
    member of its sharing set with an equal share. The sharing set is the
    expense's group when `group_id` resolves, otherwise everyone.

    An expense whose sharing set is empty still credits the payer but
    debits nobody, so the result no longer sums to zero.

    Returns balances in participant first-appearance order.
    """
    if not expenses:
        return []

    groups_by_id = {group.id: group for group in groups}
    participants = collect_participants(expenses, groups)
    balances = {person: 0.0 for person in participants}

    for expense in expenses:
        balances[expense.person] += expense.amount

        group = groups_by_id.get(expense.group_id) if expense.group_id else None
        sharing_set = group.participants if group is not None else participants

        if not sharing_set:
            logger.debug(
                "empty_sharing_set",
                expense_id=expense.id,
                group_id=expense.group_id,
            )
            continue

        share = expense.amount / len(sharing_set)
        for person in sharing_set:
            balances[person] -= share

    return [Balance(person=person, amount=amount) for person, amount in balances.items()]
