"""Savings goals: one active goal per child, projections and auto-completion."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from .allowances import AllowanceService, is_allowance_day
from .balances import BalanceService
from .clock import Clock
from .exceptions import ActiveGoalExistsError, GoalNotFoundError, ValidationError
from .models import DESCRIPTION_MAX_LENGTH, Child, Goal, GoalCalculation, GoalState, Transaction
from .money import ZERO, AmountLike, format_currency, to_decimal
from .ops import StructuredLogger
from .storage import LedgerStore

PROJECTION_DAYS = 365


@dataclass(slots=True)
class GoalStatus:
    """A goal paired with its completion projection."""

    goal: Goal
    calculation: GoalCalculation


def validate_goal_description(description: str) -> str:
    cleaned = (description or "").strip()
    if not cleaned:
        raise ValidationError("Goal description cannot be empty")
    if len(cleaned) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Goal description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
    return cleaned


class GoalService:
    """Create and track savings goals against the running balance."""

    __slots__ = ("_store", "_balances", "_allowances", "_clock", "_logger")

    def __init__(
        self,
        store: LedgerStore,
        balances: BalanceService,
        allowances: AllowanceService,
        clock: Clock,
        logger: StructuredLogger,
    ) -> None:
        self._store = store
        self._balances = balances
        self._allowances = allowances
        self._clock = clock
        self._logger = logger

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def current_goal(self, child_id: str) -> Optional[Goal]:
        for goal in reversed(self._store.list_goals(child_id)):
            if goal.state is GoalState.ACTIVE:
                return goal
        return None

    def current_status(self, child_id: str) -> Optional[GoalStatus]:
        goal = self.current_goal(child_id)
        if goal is None:
            return None
        return GoalStatus(goal=goal, calculation=self.calculate(child_id, goal.target_amount))

    def history(self, child_id: str, limit: Optional[int] = None) -> List[Goal]:
        """All goals newest first."""

        goals = list(reversed(self._store.list_goals(child_id)))
        return goals[:limit] if limit else goals

    def calculate(self, child_id: str, target_amount: AmountLike) -> GoalCalculation:
        """Project when the weekly allowance alone would reach ``target_amount``."""

        current = self._balances.current_balance(child_id)
        needed = to_decimal(target_amount) - current
        today = self._clock.today()
        if needed <= ZERO:
            return GoalCalculation(
                current_balance=current,
                amount_needed=ZERO,
                projected_completion_date=today,
                allowances_needed=0,
                is_achievable=True,
                exceeds_time_limit=False,
            )

        config = self._allowances.get_config(child_id)
        if config is None or not config.is_active or config.amount <= ZERO:
            return GoalCalculation(
                current_balance=current,
                amount_needed=needed,
                projected_completion_date=None,
                allowances_needed=0,
                is_achievable=False,
                exceeds_time_limit=False,
            )

        allowances_needed = math.ceil(needed / config.amount)
        counted = 0
        day = today
        limit = today + timedelta(days=PROJECTION_DAYS)
        while counted < allowances_needed:
            day += timedelta(days=1)
            if day > limit:
                return GoalCalculation(
                    current_balance=current,
                    amount_needed=needed,
                    projected_completion_date=None,
                    allowances_needed=allowances_needed,
                    is_achievable=False,
                    exceeds_time_limit=True,
                )
            if is_allowance_day(day, config.day_of_week):
                counted += 1
        return GoalCalculation(
            current_balance=current,
            amount_needed=needed,
            projected_completion_date=day,
            allowances_needed=allowances_needed,
            is_achievable=True,
            exceeds_time_limit=False,
        )

    def progression(self, goal: Goal) -> List[Transaction]:
        """Entries since the goal was created plus projected allowances until completion."""

        since = self._clock.localize(goal.created_at).date()
        history = [
            tx for tx in self._store.list_transactions(goal.child_id) if self._clock.localize(tx.date).date() >= since
        ]
        calculation = self.calculate(goal.child_id, goal.target_amount)
        if calculation.amount_needed <= ZERO or not calculation.is_achievable:
            return history
        today = self._clock.today()
        end = calculation.projected_completion_date or today + timedelta(days=PROJECTION_DAYS)
        running = calculation.current_balance
        projected = self._allowances.generate_future_allowances(goal.child_id, today + timedelta(days=1), end)
        for allowance in projected:
            running += allowance.amount
            allowance.balance = running
        return history + projected

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def _check_target(self, child_id: str, target_amount: AmountLike) -> Decimal:
        target = to_decimal(target_amount)
        if target <= ZERO:
            raise ValidationError("Goal target amount must be positive")
        balance = self._balances.current_balance(child_id)
        if balance >= target:
            raise ValidationError(
                f"Target amount ({format_currency(target)}) must be greater than "
                f"current balance ({format_currency(balance)})"
            )
        return target

    def create_goal(self, child: Child, description: str, target_amount: AmountLike) -> GoalStatus:
        cleaned = validate_goal_description(description)
        if self.current_goal(child.id) is not None:
            raise ActiveGoalExistsError(
                "Child already has an active goal. Cancel or complete the existing goal first."
            )
        target = self._check_target(child.id, target_amount)
        taken = {existing.id for existing in self._store.list_goals(child.id)}
        millis = time.time_ns() // 1_000_000
        while f"goal::{child.id}_{millis}" in taken:
            millis += 1
        goal = Goal(
            id=f"goal::{child.id}_{millis}",
            child_id=child.id,
            description=cleaned,
            target_amount=target,
            created_at=self._clock.now(),
            updated_at=self._clock.now(),
        )
        self._store.save_goal(goal)
        self._logger.log("goal_created", child_id=child.id, goal_id=goal.id, target=str(target))
        return GoalStatus(goal=goal, calculation=self.calculate(child.id, target))

    def update_goal(
        self,
        child: Child,
        *,
        description: Optional[str] = None,
        target_amount: Optional[AmountLike] = None,
    ) -> GoalStatus:
        goal = self.current_goal(child.id)
        if goal is None:
            raise GoalNotFoundError("No active goal found to update")
        if description is not None:
            goal.description = validate_goal_description(description)
        if target_amount is not None:
            goal.target_amount = self._check_target(child.id, target_amount)
        goal.updated_at = self._clock.now()
        self._store.save_goal(goal)
        self._logger.log("goal_updated", child_id=child.id, goal_id=goal.id)
        return GoalStatus(goal=goal, calculation=self.calculate(child.id, goal.target_amount))

    def cancel_goal(self, child: Child) -> Goal:
        goal = self.current_goal(child.id)
        if goal is None:
            raise GoalNotFoundError("No active goal found to cancel")
        goal.state = GoalState.CANCELLED
        goal.updated_at = self._clock.now()
        self._store.save_goal(goal)
        self._logger.log("goal_cancelled", child_id=child.id, goal_id=goal.id)
        return goal

    def check_and_complete(self, child_id: str) -> Optional[Goal]:
        """Mark the active goal completed once the balance has reached it."""

        goal = self.current_goal(child_id)
        if goal is None:
            return None
        balance = self._balances.current_balance(child_id)
        if balance < goal.target_amount:
            return None
        goal.state = GoalState.COMPLETED
        goal.updated_at = self._clock.now()
        self._store.save_goal(goal)
        self._logger.log("goal_completed", child_id=child_id, goal_id=goal.id, balance=str(balance))
        return goal


__all__ = ["GoalService", "GoalStatus", "PROJECTION_DAYS", "validate_goal_description"]
