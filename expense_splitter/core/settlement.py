"""
Settlement Planner

Turns net balances into a list of point-to-point payments.

Greedy largest-first matching: the biggest outstanding debtor pays the
biggest outstanding creditor as much as either side allows, and whichever
side reaches zero moves on. This needs at most
(debtors + creditors - 1) payments. It is not guaranteed to find the
minimum number of payments (that problem is NP-hard).
"""

from dataclasses import dataclass

import structlog

from expense_splitter.models.expense import Balance, Debt


logger = structlog.get_logger(__name__)


@dataclass
class _Position:
    """Working copy of one side of a balance."""
    person: str
    remaining: float


def _split_positions(balances: list[Balance]) -> tuple[list[_Position], list[_Position]]:
    """Split balances into (debtors, creditors), largest first, ties in input order."""
    debtors = [_Position(b.person, -b.amount) for b in balances if b.amount < 0]
    creditors = [_Position(b.person, b.amount) for b in balances if b.amount > 0]

    # list.sort is stable
    debtors.sort(key=lambda p: p.remaining, reverse=True)
    creditors.sort(key=lambda p: p.remaining, reverse=True)
    return debtors, creditors


def organize_payments(balances: list[Balance]) -> list[Debt]:
    """
    Produce the payments that settle all balances.

    Zero balances are ignored. The input balances are never modified.
    Payments come out in matching order, which is roughly largest first.
    """
    debtors, creditors = _split_positions(balances)

    payments: list[Debt] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        transfer = min(debtor.remaining, creditor.remaining)
        if transfer > 0:
            payments.append(Debt(
                person=debtor.person,
                amount=transfer,
                creditor=creditor.person,
            ))

        debtor.remaining -= transfer
        creditor.remaining -= transfer

        # Exhausted means exactly zero; NaN left by infinite input counts too
        if not debtor.remaining > 0:
            i += 1
        if not creditor.remaining > 0:
            j += 1

    logger.debug(
        "payments_organized",
        debtors=len(debtors),
        creditors=len(creditors),
        payments=len(payments),
    )
    return payments
