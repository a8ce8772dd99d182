"""Payout resolution of a drawn triple against the paytable."""
from collections.abc import Sequence

from coinslot.logic.models import Resolution
from coinslot.logic.paytable import WILDCARD, Paytable


class PayoutResolver:
    """
    Matches a triple against a paytable, first hit wins:

    1. exact 3-of-a-kind (t0, t1, t2)
    2. leading pair (t0, t0, *), only when t0 == t1
    3. leading single (t0, *, *)
    4. no win, payout 0

    The pair rule looks at reels 0 and 1 only; a pair on reels 1 and 2
    is not a pair.
    """

    def __init__(self, paytable: Paytable):
        self.paytable = paytable

    def resolve(self, triple: Sequence[int]) -> Resolution:
        if len(triple) != 3:
            raise ValueError(f"Expected 3 symbols, got {len(triple)}")
        first, second, third = triple

        payout = self.paytable.payout_for((first, second, third))
        if payout is not None:
            return Resolution(win=True, payout=payout)

        if first == second:
            payout = self.paytable.payout_for((first, second, WILDCARD))
            if payout is not None:
                return Resolution(win=True, payout=payout)

        payout = self.paytable.payout_for((first, WILDCARD, WILDCARD))
        if payout is not None:
            return Resolution(win=True, payout=payout)

        return Resolution(win=False, payout=0)
