"""Orchestrating engine for the DSC stablecoin.

Every public mutating operation runs inside ``_operation()``, which:

1. Acquires the non-reentrancy flag.
2. Lets the operation validate parameters (guards) and apply its ledger
   changes to a ``LedgerTransaction``, scheduling external token calls.
3. Checks invariants on every account the operation must leave healthy.
4. Runs the external calls: pulls and burns first, then at most one push.
5. Commits the transaction, releases the flag and publishes buffered events.

Any error in steps 2-4 discards the transaction, undoes the external calls
that already completed (in reverse order) and propagates. Nothing an aborted
operation did is visible afterwards.

Each operation returns the events it emitted. ``step(params)`` is the
data-driven entry point; it returns a ``StepResult`` instead of raising.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Sequence, Union

from .errors import (
    ArraysMustBeSameLength,
    DSCEngineError,
    InvariantViolation,
    MintFailed,
    ReentrantCall,
    TransferFailed,
)
from .guards import (
    require_allowed_token,
    require_can_burn,
    require_health_factor_broken,
    require_health_factor_improved,
    require_health_factor_ok,
    require_more_than_zero,
)
from .interfaces import CollateralToken, StablecoinController
from .invariants import AccountSnapshot, check_all
from .ledger import Ledger, LedgerTransaction
from .math import (
    ADDITIONAL_FEED_PRECISION,
    FEED_DECIMALS,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    PRECISION,
    calculate_health_factor,
    checked_add,
    token_amount_from_usd,
    total_collateral_to_redeem,
    usd_value,
)
from .oracle import TIMEOUT, PriceSource, quote
from .types import (
    AccountInformation,
    Action,
    ActionParams,
    Address,
    CollateralDeposited,
    CollateralRedeemed,
    Event,
    StepResult,
    ZERO_ADDRESS,
)

logger = logging.getLogger(__name__)

ENGINE_ADDRESS: Address = "0x" + "d5" * 20

Clock = Callable[[], int]
LedgerView = Union[Ledger, LedgerTransaction]


def _now() -> int:
    return int(time.time())


def _external(error: type[DSCEngineError], message: str, call: Callable[[], object]) -> None:
    """Run one external call; ``False`` or a foreign exception becomes ``error``.

    Engine errors raised from inside the call (e.g. a reentrant attempt made
    by a token hook) propagate unchanged.
    """
    try:
        result = call()
    except DSCEngineError:
        raise
    except Exception as exc:
        raise error(message) from exc
    if result is False:
        raise error(message)


class _Valuation:
    """Prices and account values over one ledger view at one instant.

    Quotes are cached per token, so one operation reads each feed at most once.
    """

    def __init__(
        self,
        view: LedgerView,
        price_feeds: dict[Address, PriceSource],
        collateral_tokens: Sequence[Address],
        now: int,
    ) -> None:
        self.view = view
        self.now = now
        self._price_feeds = price_feeds
        self._collateral_tokens = collateral_tokens
        self._prices: dict[Address, int] = {}

    def price(self, token: Address) -> int:
        if token not in self._prices:
            self._prices[token] = quote(self._price_feeds[token], self.now).price
        return self._prices[token]

    def usd_value(self, token: Address, amount: int) -> int:
        return usd_value(self.price(token), amount)

    def snapshot(self, user: Address) -> AccountSnapshot:
        collateral: dict[Address, int] = {}
        value = 0
        for token in self._collateral_tokens:
            amount = self.view.collateral(user, token)
            if amount == 0:
                continue
            collateral[token] = amount
            value = checked_add(value, self.usd_value(token, amount))
        return AccountSnapshot(
            user=user,
            dsc_minted=self.view.dsc_minted(user),
            collateral_value_in_usd=value,
            collateral=collateral,
        )

    def health_factor(self, user: Address) -> int:
        return self.snapshot(user).health_factor


class _Operation:
    """Scratch space of one in-flight operation."""

    def __init__(self, action: Action, caller: Address, valuation: _Valuation, tx: LedgerTransaction) -> None:
        self.action = action
        self.caller = caller
        self.valuation = valuation
        self.tx = tx
        self.events: list[Event] = []
        self.must_stay_healthy: list[Address] = []
        self.pulls: list[tuple[Callable[[], None], Callable[[], None]]] = []
        self.pushes: list[Callable[[], None]] = []

    def require_healthy(self, user: Address) -> None:
        if user not in self.must_stay_healthy:
            self.must_stay_healthy.append(user)

    def pull(self, call: Callable[[], None], undo: Callable[[], None]) -> None:
        self.pulls.append((call, undo))

    def push(self, call: Callable[[], None]) -> None:
        self.pushes.append(call)


class DSCEngine:
    """Collateral ledger, debt ledger and liquidation for one DSC deployment.

    ``collateral_tokens[i]`` is priced by ``price_feeds[i]``; registration
    order is the enumeration order of ``get_collateral_tokens()``.
    """

    def __init__(
        self,
        collateral_tokens: Sequence[CollateralToken],
        price_feeds: Sequence[PriceSource],
        dsc: StablecoinController,
        *,
        address: Address = ENGINE_ADDRESS,
        clock: Clock | None = None,
        ledger: Ledger | None = None,
    ) -> None:
        if len(collateral_tokens) != len(price_feeds):
            raise ArraysMustBeSameLength(len(collateral_tokens), len(price_feeds))

        self.address = address
        self._dsc = dsc
        self._clock: Clock = clock if clock is not None else _now
        self._ledger = ledger if ledger is not None else Ledger()

        self._tokens: dict[Address, CollateralToken] = {}
        self._price_feeds: dict[Address, PriceSource] = {}
        self._collateral_tokens: list[Address] = []
        for token, feed in zip(collateral_tokens, price_feeds):
            if token.address in self._tokens:
                raise ValueError(f"duplicate collateral token: {token.address}")
            if feed.decimals != FEED_DECIMALS:
                raise ValueError(f"price feed {feed.address} quotes {feed.decimals} decimals, expected {FEED_DECIMALS}")
            self._tokens[token.address] = token
            self._price_feeds[token.address] = feed
            self._collateral_tokens.append(token.address)

        self._entered = False
        self._events: list[Event] = []
        self._subscribers: list[Callable[[Event], None]] = []

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def deposit_collateral_and_mint_dsc(
        self,
        caller: Address,
        token_collateral_address: Address,
        amount_collateral: int,
        amount_dsc_to_mint: int,
    ) -> tuple[Event, ...]:
        """Deposit collateral and mint DSC against it in one step."""
        with self._operation(Action.DEPOSIT_COLLATERAL_AND_MINT_DSC, caller) as op:
            self._deposit_collateral(op, token_collateral_address, amount_collateral)
            self._mint_dsc(op, amount_dsc_to_mint)
        return tuple(op.events)

    def deposit_collateral(
        self, caller: Address, token_collateral_address: Address, amount_collateral: int,
    ) -> tuple[Event, ...]:
        with self._operation(Action.DEPOSIT_COLLATERAL, caller) as op:
            self._deposit_collateral(op, token_collateral_address, amount_collateral)
        return tuple(op.events)

    def mint_dsc(self, caller: Address, amount_dsc_to_mint: int) -> tuple[Event, ...]:
        """Mint DSC to ``caller``; fails with ``BreaksHealthFactor`` if undercollateralized."""
        with self._operation(Action.MINT_DSC, caller) as op:
            self._mint_dsc(op, amount_dsc_to_mint)
        return tuple(op.events)

    def redeem_collateral_for_dsc(
        self,
        caller: Address,
        token_collateral_address: Address,
        amount_collateral: int,
        amount_dsc_to_burn: int,
    ) -> tuple[Event, ...]:
        """Burn DSC and redeem collateral in one step."""
        with self._operation(Action.REDEEM_COLLATERAL_FOR_DSC, caller) as op:
            require_more_than_zero(amount_collateral)
            self._burn_dsc(op, amount_dsc_to_burn, on_behalf_of=caller, dsc_from=caller)
            self._redeem_collateral(op, token_collateral_address, amount_collateral, caller, caller)
            op.require_healthy(caller)
        return tuple(op.events)

    def redeem_collateral(
        self, caller: Address, token_collateral_address: Address, amount_collateral: int,
    ) -> tuple[Event, ...]:
        with self._operation(Action.REDEEM_COLLATERAL, caller) as op:
            require_more_than_zero(amount_collateral)
            self._redeem_collateral(op, token_collateral_address, amount_collateral, caller, caller)
            op.require_healthy(caller)
        return tuple(op.events)

    def burn_dsc(self, caller: Address, amount: int) -> tuple[Event, ...]:
        with self._operation(Action.BURN_DSC, caller) as op:
            self._burn_dsc(op, amount, on_behalf_of=caller, dsc_from=caller)
            op.require_healthy(caller)
        return tuple(op.events)

    def liquidate(self, caller: Address, collateral: Address, user: Address, debt_to_cover: int) -> tuple[Event, ...]:
        """Repay ``debt_to_cover`` of ``user``'s debt for bonus-weighted collateral.

        ``user`` must be below ``MIN_HEALTH_FACTOR`` and must end strictly
        healthier than it started; ``caller`` must end healthy. Seizing more
        of ``collateral`` than ``user`` holds fails with ``ArithmeticUnderflow``;
        a seizure that rounds down to zero is not rejected on its own.
        """
        with self._operation(Action.LIQUIDATE, caller) as op:
            require_more_than_zero(debt_to_cover)
            require_allowed_token(self._price_feeds, collateral)

            starting_user_health_factor = op.valuation.health_factor(user)
            require_health_factor_broken(user, starting_user_health_factor)

            total_to_seize = total_collateral_to_redeem(op.valuation.price(collateral), debt_to_cover)
            self._redeem_collateral(op, collateral, total_to_seize, user, caller)
            self._burn_dsc(op, debt_to_cover, on_behalf_of=user, dsc_from=caller)

            ending_user_health_factor = op.valuation.health_factor(user)
            require_health_factor_improved(user, starting_user_health_factor, ending_user_health_factor)
            op.require_healthy(caller)

            logger.info(
                "liquidating %s: %s covers %d debt for %d of %s (health factor %d -> %d)",
                user, caller, debt_to_cover, total_to_seize, collateral,
                starting_user_health_factor, ending_user_health_factor,
            )
        return tuple(op.events)

    # ------------------------------------------------------------------
    # Step-style dispatch
    # ------------------------------------------------------------------

    def step(self, params: ActionParams) -> StepResult:
        """Execute one action; engine errors become ``accepted=False`` results."""
        try:
            return self.step_or_raise(params)
        except DSCEngineError as exc:
            return StepResult(accepted=False, rejection=exc.code)

    def step_or_raise(self, params: ActionParams) -> StepResult:
        """Like ``step()`` but raises the engine error on rejection."""
        handler = _DISPATCH.get(params.action)
        if handler is None:
            raise ValueError(f"unknown action: {params.action}")
        return StepResult(accepted=True, events=handler(self, params))

    # ------------------------------------------------------------------
    # Read-only queries (committed state only)
    # ------------------------------------------------------------------

    def get_usd_value(self, token: Address, amount: int) -> int:
        require_allowed_token(self._price_feeds, token)
        return self._valuation().usd_value(token, amount)

    def get_token_amount_from_usd(self, token: Address, usd_amount_in_wei: int) -> int:
        require_allowed_token(self._price_feeds, token)
        return token_amount_from_usd(self._valuation().price(token), usd_amount_in_wei)

    def get_account_collateral_value(self, user: Address) -> int:
        return self._valuation().snapshot(user).collateral_value_in_usd

    def get_account_information(self, user: Address) -> AccountInformation:
        snapshot = self._valuation().snapshot(user)
        return AccountInformation(
            total_dsc_minted=snapshot.dsc_minted,
            collateral_value_in_usd=snapshot.collateral_value_in_usd,
        )

    def get_health_factor(self, user: Address) -> int:
        return self._valuation().health_factor(user)

    @staticmethod
    def calculate_health_factor(total_dsc_minted: int, collateral_value_in_usd: int) -> int:
        return calculate_health_factor(total_dsc_minted, collateral_value_in_usd)

    def get_collateral_balance_of_user(self, user: Address, token: Address) -> int:
        return self._ledger.collateral(user, token)

    def get_dsc_minted(self, user: Address) -> int:
        return self._ledger.dsc_minted(user)

    def get_collateral_tokens(self) -> list[Address]:
        return list(self._collateral_tokens)

    def get_collateral_token_price_feed(self, token: Address) -> Address:
        """Feed address for ``token``; the zero address if it is not registered."""
        feed = self._price_feeds.get(token)
        return feed.address if feed is not None else ZERO_ADDRESS

    def get_dsc(self) -> Address:
        return self._dsc.address

    def get_precision(self) -> int:
        return PRECISION

    def get_additional_feed_precision(self) -> int:
        return ADDITIONAL_FEED_PRECISION

    def get_liquidation_threshold(self) -> int:
        return LIQUIDATION_THRESHOLD

    def get_liquidation_bonus(self) -> int:
        return LIQUIDATION_BONUS

    def get_liquidation_precision(self) -> int:
        return LIQUIDATION_PRECISION

    def get_min_health_factor(self) -> int:
        return MIN_HEALTH_FACTOR

    def get_timeout(self) -> int:
        return TIMEOUT

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._events)

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        """Call ``callback`` for every event of every committed operation.

        Callbacks run after the commit; one that raises is logged and skipped.
        """
        self._subscribers.append(callback)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _valuation(self, view: LedgerView | None = None, now: int | None = None) -> _Valuation:
        return _Valuation(
            self._ledger if view is None else view,
            self._price_feeds,
            self._collateral_tokens,
            self._clock() if now is None else now,
        )

    @contextmanager
    def _operation(self, action: Action, caller: Address) -> Iterator[_Operation]:
        if self._entered:
            raise ReentrantCall(f"{action.value} called while another operation is in progress")
        self._entered = True
        tx = self._ledger.begin()
        op = _Operation(action, caller, self._valuation(tx), tx)
        try:
            yield op
            self._check_invariants(op)
            self._interact(op)
            tx.commit()
        except DSCEngineError as exc:
            tx.discard()
            logger.warning("%s by %s rejected: %s: %s", action.value, caller, exc.code, exc)
            raise
        except BaseException:
            tx.discard()
            raise
        finally:
            self._entered = False

        logger.debug("%s by %s committed (%d events)", action.value, caller, len(op.events))
        self._publish(op.events)

    def _check_invariants(self, op: _Operation) -> None:
        for user in op.must_stay_healthy:
            snapshot = op.valuation.snapshot(user)
            require_health_factor_ok(user, snapshot.health_factor)
            violations = check_all(snapshot)
            if violations:
                raise InvariantViolation(user, violations)

    def _interact(self, op: _Operation) -> None:
        completed: list[Callable[[], None]] = []
        try:
            for call, undo in op.pulls:
                call()
                completed.append(undo)
            for call in op.pushes:
                call()
        except BaseException as exc:
            for undo in reversed(completed):
                try:
                    undo()
                except Exception:
                    logger.critical("could not undo external call of %s after %r", op.action.value, exc)
                    raise
            raise

    def _publish(self, events: list[Event]) -> None:
        self._events.extend(events)
        for event in events:
            for callback in self._subscribers:
                try:
                    callback(event)
                except Exception:
                    logger.exception("subscriber %r failed on %s", callback, type(event).__name__)

    # -- ledger steps (operate on the transaction, schedule external calls) --

    def _deposit_collateral(self, op: _Operation, token_address: Address, amount: int) -> None:
        require_more_than_zero(amount)
        require_allowed_token(self._price_feeds, token_address)
        token = self._tokens[token_address]
        user = op.caller

        op.tx.add_collateral(user, token_address, amount)
        op.events.append(CollateralDeposited(user=user, token=token_address, amount=amount))
        op.pull(
            lambda: self._transfer_in(token, user, amount),
            lambda: self._transfer_out(token, user, amount),
        )

    def _mint_dsc(self, op: _Operation, amount: int) -> None:
        require_more_than_zero(amount)
        user = op.caller

        op.tx.add_dsc_minted(user, amount)
        op.require_healthy(user)
        op.push(lambda: self._mint(user, amount))

    def _redeem_collateral(
        self,
        op: _Operation,
        token_address: Address,
        amount: int,
        redeemed_from: Address,
        redeemed_to: Address,
    ) -> None:
        require_allowed_token(self._price_feeds, token_address)
        token = self._tokens[token_address]

        op.tx.remove_collateral(redeemed_from, token_address, amount)
        op.events.append(
            CollateralRedeemed(
                redeemed_from=redeemed_from,
                redeemed_to=redeemed_to,
                token=token_address,
                amount=amount,
            )
        )
        op.push(lambda: self._transfer_out(token, redeemed_to, amount))

    def _burn_dsc(self, op: _Operation, amount: int, *, on_behalf_of: Address, dsc_from: Address) -> None:
        require_more_than_zero(amount)
        require_can_burn(op.tx.dsc_minted(on_behalf_of), amount)

        op.tx.remove_dsc_minted(on_behalf_of, amount)
        op.pull(
            lambda: self._transfer_in(self._dsc, dsc_from, amount),
            lambda: self._transfer_out(self._dsc, dsc_from, amount),
        )
        op.pull(
            lambda: self._burn(amount),
            lambda: self._mint(self.address, amount),
        )

    # -- external calls --------------------------------------------------

    def _transfer_in(self, token: CollateralToken, sender: Address, amount: int) -> None:
        _external(
            TransferFailed,
            f"transfer of {amount} {token.address} from {sender} failed",
            lambda: token.transfer_from(self.address, sender, self.address, amount),
        )

    def _transfer_out(self, token: CollateralToken, recipient: Address, amount: int) -> None:
        _external(
            TransferFailed,
            f"transfer of {amount} {token.address} to {recipient} failed",
            lambda: token.transfer(self.address, recipient, amount),
        )

    def _mint(self, to: Address, amount: int) -> None:
        _external(
            MintFailed,
            f"minting {amount} DSC to {to} failed",
            lambda: self._dsc.mint(self.address, to, amount),
        )

    def _burn(self, amount: int) -> None:
        _external(
            TransferFailed,
            f"burning {amount} DSC failed",
            lambda: self._dsc.burn(self.address, amount),
        )

    def __repr__(self) -> str:
        return f"DSCEngine({self.address}, {len(self._collateral_tokens)} collateral tokens)"


_DISPATCH: dict[Action, Callable[[DSCEngine, ActionParams], tuple[Event, ...]]] = {
    Action.DEPOSIT_COLLATERAL: lambda e, p: e.deposit_collateral(
        p.caller, p.token, p.amount_collateral,
    ),
    Action.MINT_DSC: lambda e, p: e.mint_dsc(p.caller, p.amount_dsc),
    Action.DEPOSIT_COLLATERAL_AND_MINT_DSC: lambda e, p: e.deposit_collateral_and_mint_dsc(
        p.caller, p.token, p.amount_collateral, p.amount_dsc,
    ),
    Action.REDEEM_COLLATERAL: lambda e, p: e.redeem_collateral(
        p.caller, p.token, p.amount_collateral,
    ),
    Action.BURN_DSC: lambda e, p: e.burn_dsc(p.caller, p.amount_dsc),
    Action.REDEEM_COLLATERAL_FOR_DSC: lambda e, p: e.redeem_collateral_for_dsc(
        p.caller, p.token, p.amount_collateral, p.amount_dsc,
    ),
    Action.LIQUIDATE: lambda e, p: e.liquidate(
        p.caller, p.token, p.user, p.debt_to_cover,
    ),
}
