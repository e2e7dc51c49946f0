"""
CapitalGainsLedger — arena of capital-gains transactions for an editing session.

Each transaction gets a stable integer id from a monotonic counter that lives
on the ledger, so ids are never reused after removal. Every operation returns
a NEW ledger; existing ledgers (and the CapitalGainsInputs exported from them)
never change underneath the engine.

    ledger = CapitalGainsLedger.empty()
    ledger, stcg_id = ledger.add("stcg", 100_000)
    ledger = ledger.update(stcg_id, date_bucket="before_cutoff")
    ledger = ledger.remove(stcg_id)
    compute(..., capital_gains=ledger.to_inputs())
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal, Tuple

from taxregime.intake.schemas import (
    CapitalGainsInputs,
    CapitalGainsTransaction,
    DateBucket,
)

Term = Literal["stcg", "ltcg"]


@dataclass(frozen=True)
class CapitalGainsLedger:
    stcg: Tuple[CapitalGainsTransaction, ...] = ()
    ltcg: Tuple[CapitalGainsTransaction, ...] = ()
    next_id: int = 1

    @classmethod
    def empty(cls) -> "CapitalGainsLedger":
        return cls()

    @classmethod
    def from_inputs(cls, inputs: CapitalGainsInputs) -> "CapitalGainsLedger":
        """Rebuild a ledger; the counter resumes above the highest id seen."""
        ids = [tx.id for tx in (*inputs.stcg, *inputs.ltcg)]
        return cls(stcg=inputs.stcg, ltcg=inputs.ltcg, next_id=max(ids, default=0) + 1)

    def add(
        self,
        term: Term,
        amount: Any = 0,
        date_bucket: str = DateBucket.after_cutoff.value,
    ) -> Tuple["CapitalGainsLedger", int]:
        """Append a transaction to the term's list. Returns (new_ledger, new_id)."""
        tx = CapitalGainsTransaction(id=self.next_id, amount=amount, date_bucket=date_bucket)
        transactions = self._list(term) + (tx,)
        return replace(self, **{term: transactions}, next_id=self.next_id + 1), tx.id

    def remove(self, transaction_id: int) -> "CapitalGainsLedger":
        """Filter the id out of both lists. Unknown ids are a no-op."""
        return replace(
            self,
            stcg=tuple(tx for tx in self.stcg if tx.id != transaction_id),
            ltcg=tuple(tx for tx in self.ltcg if tx.id != transaction_id),
        )

    def update(self, transaction_id: int, **changes: Any) -> "CapitalGainsLedger":
        """
        Replace amount and/or date_bucket of one transaction, keeping its position.
        Changes are re-validated so lenient amount coercion still applies.
        Raises KeyError for an unknown id.
        """
        unknown = set(changes) - {"amount", "date_bucket"}
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        def _apply(transactions: Tuple[CapitalGainsTransaction, ...]):
            return tuple(
                CapitalGainsTransaction.model_validate({**tx.model_dump(), **changes})
                if tx.id == transaction_id else tx
                for tx in transactions
            )

        if transaction_id not in self.ids():
            raise KeyError(transaction_id)
        return replace(self, stcg=_apply(self.stcg), ltcg=_apply(self.ltcg))

    def ids(self) -> set[int]:
        return {tx.id for tx in (*self.stcg, *self.ltcg)}

    def to_inputs(self) -> CapitalGainsInputs:
        return CapitalGainsInputs(stcg=self.stcg, ltcg=self.ltcg)

    def _list(self, term: Term) -> Tuple[CapitalGainsTransaction, ...]:
        if term == "stcg":
            return self.stcg
        if term == "ltcg":
            return self.ltcg
        raise ValueError(f"Unknown capital-gains term {term!r} — expected 'stcg' or 'ltcg'")
