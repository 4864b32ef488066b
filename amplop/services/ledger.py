"""
Ledger facade.

Composes the store, derivation services and writers behind the calls a
presentation layer makes. Each Ledger owns one injected LedgerStore, so any
number of independent ledgers can coexist (e.g. in tests).

Structure:
- Reads delegate to BalanceCalculator, AllocationResolver and OrderingManager
- Writes go through TransactionWriter / TransferOrchestrator or edit the
  configuration entities directly
- After every successful write the snapshot is handed to the persistence
  collaborator (fire-and-forget: failures are logged, not raised)
"""

import logging
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

from amplop.config import (
    MAX_DUE_DAY,
    MAX_NAME_LENGTH,
    MIN_DUE_DAY,
    get_db_path,
    load_environment,
)
from amplop.dates import DateLike, Period, current_month_period, month_key, utc_now
from amplop.db.persistence import LedgerPersistence, SQLitePersistence
from amplop.db.store import LedgerStore
from amplop.exceptions import (
    AccountNotFoundError,
    EnvelopeNotFoundError,
    InvalidAmountError,
    LedgerNotReadyError,
    PayeeNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from amplop.models import (
    Account,
    AccountType,
    Envelope,
    MonthlyAllocation,
    Payee,
    Transaction,
    TransactionType,
)

from .allocations import AllocationResolver
from .balances import BalanceCalculator
from .ordering import OrderingManager
from .transactions import TransactionDraft, TransactionWriter, new_id
from .transfers import TransferOrchestrator, TransferResult

logger = logging.getLogger(__name__)

# Marks an update argument the caller did not pass
_UNSET: Any = object()


def _clean_name(name: Any, field: str = "name") -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{field} is required", field=field)
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{field} longer than {MAX_NAME_LENGTH} characters", field=field
        )
    return name


def _clean_number(value: Any, field: str, allow_negative: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
        raise InvalidAmountError(value, f"{field} must be a number")
    if not allow_negative and value < 0:
        raise InvalidAmountError(value, f"{field} must be >= 0")
    return float(value)


def _clean_due_day(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid due day: {value!r}", field="due_day")
    if value < MIN_DUE_DAY or value > MAX_DUE_DAY:
        raise ValidationError(
            f"due_day must be between {MIN_DUE_DAY} and {MAX_DUE_DAY}, got {value}",
            field="due_day",
        )
    return value


def _clean_created_at(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clean_account_type(value: Union[AccountType, str, None]) -> Optional[AccountType]:
    if value is None or value == "":
        return None
    try:
        return AccountType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid account type: {value!r}", field="account_type"
        ) from None


class Ledger:
    """Budgeting ledger engine over one LedgerStore."""

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        persistence: Optional[LedgerPersistence] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize the ledger.

        Args:
            store: Store to operate on (a fresh one by default)
            persistence: Optional load/save collaborator. When given, the
                ledger is not ready until load() completes.
            clock: Returns "today"; defaults to date.today
        """
        self.store = store or LedgerStore()
        self.persistence = persistence
        self.clock = clock or date.today

        self.allocations = AllocationResolver(self.store)
        self.balances = BalanceCalculator(self.store, self.allocations)
        self.writer = TransactionWriter(self.store)
        self.transfers = TransferOrchestrator(self.store, self.writer)
        self.ordering = OrderingManager(self.store)

        self._ready = persistence is None
        self.last_save_error: Optional[Exception] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_ready(self) -> bool:
        return self._ready

    def today(self) -> date:
        return self.clock()

    def load(self) -> "Ledger":
        """
        Load the ledger from the persistence collaborator and mark it ready.

        Raises:
            PersistenceError: If the collaborator cannot load
        """
        if self.persistence is not None:
            self.store.restore(self.persistence.load())
            logger.info(
                f"Ledger loaded: {len(self.store.accounts)} accounts, "
                f"{len(self.store.transactions)} transactions"
            )
        self._ready = True
        return self

    def _require_ready(self):
        if not self._ready:
            raise LedgerNotReadyError()

    def _persist(self):
        """Hand the current snapshot to the collaborator without waiting on it."""
        if self.persistence is None:
            return
        try:
            self.persistence.save(self.store.snapshot())
            self.last_save_error = None
        except Exception as e:
            self.last_save_error = e
            logger.error(f"Failed to persist ledger: {e}", exc_info=True)

    # =========================================================================
    # Lookups
    # =========================================================================

    @property
    def accounts(self) -> list[Account]:
        return sorted(self.store.accounts.values(), key=lambda a: a.name.lower())

    @property
    def envelopes(self) -> list[Envelope]:
        return sorted(self.store.envelopes.values(), key=lambda e: e.order_index)

    @property
    def payees(self) -> list[Payee]:
        return sorted(self.store.payees.values(), key=lambda p: p.name.lower())

    @property
    def transactions(self) -> list[Transaction]:
        return list(self.store.transactions)

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.store.get_account(account_id)

    def get_envelope(self, envelope_id: str) -> Optional[Envelope]:
        return self.store.get_envelope(envelope_id)

    def get_payee(self, payee_id: str) -> Optional[Payee]:
        return self.store.get_payee(payee_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.store.get_transaction(transaction_id)

    def find_payee_by_name(self, name: str) -> Optional[Payee]:
        return self.store.find_payee_by_name(name)

    def transfer_legs(self, transfer_group_id: str) -> list[Transaction]:
        return [
            tx
            for tx in self.store.transactions
            if transfer_group_id and tx.transfer_group_id == transfer_group_id
        ]

    # =========================================================================
    # Accounts
    # =========================================================================

    def add_account(
        self,
        name: str,
        initial_balance: float = 0.0,
        account_type: Union[AccountType, str, None] = None,
    ) -> Account:
        """
        Create an account.

        Raises:
            ValidationError: If the name is empty or too long, the type is
                unknown, or the initial balance is not a number
        """
        self._require_ready()
        account = Account(
            id=new_id(),
            name=_clean_name(name),
            initial_balance=_clean_number(
                initial_balance, "initial_balance", allow_negative=True
            ),
            created_at=utc_now(),
            account_type=_clean_account_type(account_type),
        )
        self.store.accounts[account.id] = account
        logger.info(f"Created account {account.name!r} ({account.id})")
        self._persist()
        return account

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        initial_balance: Optional[float] = None,
        account_type: Union[AccountType, str, None] = _UNSET,
    ) -> Account:
        """
        Update an account's name, initial balance or type.

        name and initial_balance change only when not None. account_type
        changes whenever it is passed; passing None clears the tag.
        """
        self._require_ready()
        account = self.store.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        new_name = _clean_name(name) if name is not None else account.name
        new_balance = (
            _clean_number(initial_balance, "initial_balance", allow_negative=True)
            if initial_balance is not None
            else account.initial_balance
        )
        new_type = (
            _clean_account_type(account_type)
            if account_type is not _UNSET
            else account.account_type
        )

        account.name = new_name
        account.initial_balance = new_balance
        account.account_type = new_type
        logger.info(f"Updated account {account_id}")
        self._persist()
        return account

    # =========================================================================
    # Envelopes
    # =========================================================================

    def add_envelope(
        self,
        name: str,
        category: str,
        budget_amount: float = 0.0,
        estimated_amount: Optional[float] = None,
        due_day: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> Envelope:
        """
        Create an envelope.

        Funding starts in the creation month. ``created_at`` defaults to the
        start of today; a naive value is taken as UTC. A new category is
        appended to the category order.

        Raises:
            ValidationError: If name/category are empty, budget_amount is
                negative, or due_day is outside 1-31
        """
        self._require_ready()
        envelope = Envelope(
            id=new_id(),
            name=_clean_name(name),
            category=_clean_name(category, "category"),
            budget_amount=_clean_number(budget_amount, "budget_amount"),
            created_at=_clean_created_at(created_at)
            or datetime.combine(self.today(), time.min, tzinfo=timezone.utc),
            order_index=self.ordering.next_order_index(),
            estimated_amount=(
                _clean_number(estimated_amount, "estimated_amount")
                if estimated_amount is not None
                else None
            ),
            due_day=_clean_due_day(due_day),
        )
        self.store.envelopes[envelope.id] = envelope
        self.ordering.sync_categories()
        logger.info(
            f"Created envelope {envelope.name!r} in {envelope.category!r} "
            f"({envelope.id}) with budget {envelope.budget_amount}"
        )
        self._persist()
        return envelope

    def update_envelope(self, envelope_id: str, **fields: Any) -> Envelope:
        """
        Update envelope fields.

        Accepts name, category, budget_amount, estimated_amount, due_day.
        Passing None for estimated_amount or due_day clears it. Moving an
        envelope to a new category updates the category order. Changing
        budget_amount applies from the current month on; elapsed months
        without an override keep the previous amount.
        """
        self._require_ready()
        envelope = self.store.get_envelope(envelope_id)
        if envelope is None:
            raise EnvelopeNotFoundError(envelope_id)

        allowed = {"name", "category", "budget_amount", "estimated_amount", "due_day"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(
                f"Cannot update fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )

        changes: dict[str, Any] = {}
        if "name" in fields:
            changes["name"] = _clean_name(fields["name"])
        if "category" in fields:
            changes["category"] = _clean_name(fields["category"], "category")
        if "budget_amount" in fields:
            changes["budget_amount"] = _clean_number(
                fields["budget_amount"], "budget_amount"
            )
        if "estimated_amount" in fields:
            value = fields["estimated_amount"]
            changes["estimated_amount"] = (
                _clean_number(value, "estimated_amount") if value is not None else None
            )
        if "due_day" in fields:
            changes["due_day"] = _clean_due_day(fields["due_day"])

        if changes.get("budget_amount", envelope.budget_amount) != envelope.budget_amount:
            self.allocations.pin_past_months(envelope, self.today())
        for name, value in changes.items():
            setattr(envelope, name, value)
        if "category" in changes:
            self.ordering.sync_categories()

        logger.info(f"Updated envelope {envelope_id}: {sorted(changes)}")
        self._persist()
        return envelope

    def delete_envelope(self, envelope_id: str) -> Envelope:
        """
        Delete an envelope.

        Its monthly allocations are removed, transactions referencing it keep
        their amounts but lose the envelope link, and the category order drops
        the category if it is now empty.
        """
        self._require_ready()
        envelope = self.store.envelopes.pop(envelope_id, None)
        if envelope is None:
            raise EnvelopeNotFoundError(envelope_id)

        unlinked = 0
        for tx in self.store.transactions:
            if tx.envelope_id == envelope_id:
                tx.envelope_id = None
                unlinked += 1
        for key in [k for k in self.store.allocations if k[0] == envelope_id]:
            del self.store.allocations[key]
        self.ordering.sync_categories()

        logger.info(
            f"Deleted envelope {envelope.name!r} ({envelope_id}), "
            f"unlinked {unlinked} transactions"
        )
        self._persist()
        return envelope

    # =========================================================================
    # Payees
    # =========================================================================

    def add_payee(self, name: str, category: Optional[str] = None) -> Payee:
        self._require_ready()
        payee = Payee(
            id=new_id(), name=_clean_name(name), created_at=utc_now(), category=category
        )
        self.store.payees[payee.id] = payee
        logger.info(f"Created payee {payee.name!r} ({payee.id})")
        self._persist()
        return payee

    def update_payee(
        self, payee_id: str, name: Optional[str] = None, category: Optional[str] = _UNSET
    ) -> Payee:
        """
        Rename a payee or change its category.

        name changes only when not None. category changes whenever it is
        passed; None or a blank string clears it.
        """
        self._require_ready()
        payee = self.store.get_payee(payee_id)
        if payee is None:
            raise PayeeNotFoundError(payee_id)

        if name is not None:
            payee.name = _clean_name(name)
        if category is not _UNSET:
            payee.category = category.strip() or None if category else None
        logger.info(f"Updated payee {payee_id}")
        self._persist()
        return payee

    # =========================================================================
    # Transactions
    # =========================================================================

    def add_transaction(
        self,
        account_id: str,
        payee_id: str,
        amount: float,
        type: Union[TransactionType, str],
        date: DateLike,
        envelope_id: Optional[str] = None,
        description: Optional[str] = None,
        is_transfer: bool = False,
    ) -> Transaction:
        self._require_ready()
        transaction = self.writer.add(
            TransactionDraft(
                account_id=account_id,
                payee_id=payee_id,
                amount=amount,
                type=type,
                date=date,
                envelope_id=envelope_id,
                description=description,
                is_transfer=is_transfer,
            )
        )
        self._persist()
        return transaction

    def update_transaction(self, transaction_id: str, **fields: Any) -> Transaction:
        self._require_ready()
        transaction = self.writer.update(transaction_id, **fields)
        self._persist()
        return transaction

    def delete_transaction(self, transaction_id: str) -> list[Transaction]:
        """
        Delete a transaction.

        When the transaction is a transfer leg, its sibling leg is deleted
        too so no one-sided transfer is left behind.

        Returns:
            Every transaction that was removed
        """
        self._require_ready()
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)

        targets = [transaction]
        if transaction.transfer_group_id:
            targets = self.transfer_legs(transaction.transfer_group_id)
        removed = [self.writer.remove(tx.id) for tx in targets]
        self._persist()
        return removed

    # =========================================================================
    # Transfers
    # =========================================================================

    def transfer_between_accounts(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        date: DateLike,
        description: Optional[str] = None,
    ) -> TransferResult:
        self._require_ready()
        result = self.transfers.transfer_between_accounts(
            from_account_id, to_account_id, amount, date, description
        )
        self._persist()
        return result

    def transfer_between_envelopes(
        self,
        from_envelope_id: str,
        to_envelope_id: str,
        amount: float,
        account_id: str,
        date: DateLike,
        description: Optional[str] = None,
    ) -> TransferResult:
        self._require_ready()
        result = self.transfers.transfer_between_envelopes(
            from_envelope_id, to_envelope_id, amount, account_id, date, description
        )
        self._persist()
        return result

    # =========================================================================
    # Ordering
    # =========================================================================

    @property
    def categories(self) -> list[str]:
        return self.store.categories()

    def ordered_categories(self) -> list[str]:
        return self.ordering.ordered_categories()

    def envelopes_in_category(self, category: str) -> list[Envelope]:
        return self.ordering.envelopes_in_category(category)

    def reorder_categories(self, new_order: list[str]) -> list[str]:
        self._require_ready()
        order = self.ordering.reorder_categories(new_order)
        self._persist()
        return order

    def reorder_envelopes_within_category(
        self, category: str, envelope_ids: list[str]
    ) -> list[Envelope]:
        self._require_ready()
        envelopes = self.ordering.reorder_envelopes_within_category(category, envelope_ids)
        self._persist()
        return envelopes

    # =========================================================================
    # Monthly allocations
    # =========================================================================

    def set_monthly_allocation(
        self, envelope_id: str, month: str, amount: float
    ) -> MonthlyAllocation:
        self._require_ready()
        allocation = self.allocations.set_monthly_allocation(envelope_id, month, amount)
        self._persist()
        return allocation

    def clear_monthly_allocation(self, envelope_id: str, month: str) -> bool:
        self._require_ready()
        removed = self.allocations.clear_monthly_allocation(envelope_id, month)
        if removed:
            self._persist()
        return removed

    # =========================================================================
    # Derivations
    # =========================================================================

    def account_balance(self, account_id: str) -> float:
        return self.balances.account_balance(account_id)

    def total_balance(self) -> float:
        return self.balances.total_balance()

    def envelope_spending(self, envelope_id: str, period: Optional[Period] = None) -> float:
        return self.balances.envelope_spending(
            envelope_id, period or current_month_period(self.today())
        )

    def envelope_balance_with_rollover(self, envelope_id: str) -> float:
        return self.balances.envelope_balance_with_rollover(envelope_id, self.today())

    def effective_monthly_budget(self, envelope_id: str, month: Optional[str] = None) -> float:
        return self.allocations.effective_monthly_budget(
            envelope_id, month or month_key(self.today())
        )

    def total_monthly_budgeted(self, month: Optional[str] = None) -> float:
        return self.allocations.total_monthly_budgeted(month or month_key(self.today()))

    def monthly_income_total(self, month: Optional[str] = None) -> float:
        return self.balances.monthly_income_total(month or month_key(self.today()))

    def monthly_spending_total(self, month: Optional[str] = None) -> float:
        return self.balances.monthly_spending_total(month or month_key(self.today()))

    def ytd_income_total(self) -> float:
        return self.balances.ytd_income_total(self.today())

    def ytd_spending_total(self) -> float:
        return self.balances.ytd_spending_total(self.today())

    def payee_transactions(self, payee_id: str) -> list[Transaction]:
        return self.balances.payee_transactions(payee_id)

    def account_transactions(self, account_id: str) -> list[Transaction]:
        return self.balances.account_transactions(account_id)

    def envelope_transactions(self, envelope_id: str) -> list[Transaction]:
        return self.balances.envelope_transactions(envelope_id)


def open_ledger(
    db_path: Optional[Path] = None, clock: Optional[Callable[[], date]] = None
) -> Ledger:
    """
    Open a SQLite-backed ledger and load it.

    Without an explicit path, a .env file is loaded first so AMPLOP_DB_PATH
    can point at the database.

    Args:
        db_path: Database file, defaults to the configured path
        clock: Optional "today" provider

    Returns:
        A ready Ledger
    """
    if db_path is None:
        load_environment()
        db_path = get_db_path()
    ledger = Ledger(persistence=SQLitePersistence(db_path), clock=clock)
    return ledger.load()
