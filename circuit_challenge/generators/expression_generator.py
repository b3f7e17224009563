"""
Arithmetic expression synthesis for puzzle cells.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple
import numpy as np

from .. import config
from ..core.puzzle import Cell, Coordinate
from ..core.expression import Operation, Expression
from ..core.difficulty import DifficultySettings, OperationWeights
from ..core.utils import setup_logger, random_int, random_choice

# Chance of forcing division on a cell that leads over a division connector
DIVISION_PRIORITY = 0.8


@dataclass
class ExpressionFillResult:
    """Result from filling in cell expressions"""
    success: bool
    grid: List[List[Cell]] = field(default_factory=list)
    failed_cell: Optional[Coordinate] = None
    failed_answer: Optional[int] = None
    message: str = ""

    def __repr__(self):
        status = "Success" if self.success else f"Failed at {self.failed_cell}"
        return f"ExpressionFillResult({status})"


def multiplication_boost(target: int, max_factor: int) -> float:
    """
    Chance of forcing multiplication for a target.

    Zero without a factor pair in [2, max_factor]; otherwise 40% up to 25,
    60% from 50, linear in between.
    """
    if not factor_pairs(target, max_factor):
        return 0.0
    if target <= 25:
        return 0.40
    if target >= 50:
        return 0.60
    return 0.40 + (target - 25) * 0.008


def factor_pairs(target: int, max_factor: int) -> List[Tuple[int, int]]:
    """Pairs (a, b) with a <= b, a * b == target and 2 <= a, b <= max_factor"""
    pairs = []
    if target < 4:
        return pairs
    upper = min(max_factor, math.isqrt(target))
    for a in range(2, upper + 1):
        if target % a == 0:
            b = target // a
            if 2 <= b <= max_factor:
                pairs.append((a, b))
    return pairs


class ExpressionGenerator:
    """Generates expressions that evaluate to a given cell answer"""

    def __init__(self, attempts: int = config.EXPRESSION_ATTEMPTS,
                 max_dividend: int = config.MAX_DIVIDEND):
        self.attempts = attempts
        self.max_dividend = max_dividend
        self.logger = setup_logger(self.__class__.__name__)

    # Individual operations

    @staticmethod
    def generate_addition(target: int, max_operand: int,
                          rng: np.random.Generator) -> Optional[Expression]:
        """a + b = target with 1 <= a, b <= max_operand"""
        if target < 2:
            return None
        low = max(1, target - max_operand)
        high = min(max_operand, target - 1)
        if low > high:
            return None
        a = random_int(rng, low, high)
        return Expression.build(Operation.ADDITION, a, target - a, target)

    @staticmethod
    def generate_subtraction(target: int, max_operand: int,
                             rng: np.random.Generator) -> Optional[Expression]:
        """a − b = target with a > b >= 1 and a <= max_operand"""
        if target < 1:
            return None
        max_b = max_operand - target
        if max_b < 1:
            return None
        b = random_int(rng, 1, max_b)
        return Expression.build(Operation.SUBTRACTION, target + b, b, target)

    @staticmethod
    def generate_multiplication(target: int, max_factor: int,
                                rng: np.random.Generator) -> Optional[Expression]:
        """a × b = target with 2 <= a, b <= max_factor, operands in random order"""
        pairs = factor_pairs(target, max_factor)
        if not pairs:
            return None
        a, b = random_choice(rng, pairs)
        if rng.random() < 0.5:
            a, b = b, a
        return Expression.build(Operation.MULTIPLICATION, a, b, target)

    @staticmethod
    def generate_division(target: int, max_divisor: int, rng: np.random.Generator,
                          max_dividend: int = config.MAX_DIVIDEND) -> Optional[Expression]:
        """a ÷ b = target with 2 <= b <= min(max_divisor, 12) and a <= max_dividend"""
        if target < 1:
            return None
        divisors = [b for b in range(2, min(max_divisor, config.MAX_DIVISOR_CAP) + 1)
                    if target * b <= max_dividend]
        if not divisors:
            return None
        b = random_choice(rng, divisors)
        return Expression.build(Operation.DIVISION, target * b, b, target)

    # Selection

    @staticmethod
    def select_operation(weights: OperationWeights, settings: DifficultySettings,
                         rng: np.random.Generator) -> Optional[Operation]:
        """Weighted pick among enabled operations with positive weight"""
        options = [(op, weights.for_operation(op)) for op in Operation
                   if settings.is_enabled(op) and weights.for_operation(op) > 0]
        if not options:
            return None

        roll = int(rng.integers(sum(weight for _, weight in options)))
        for operation, weight in options:
            roll -= weight
            if roll < 0:
                return operation
        return options[-1][0]

    def _generate_for(self, operation: Operation, target: int, difficulty: DifficultySettings,
                      rng: np.random.Generator) -> Optional[Expression]:
        if operation == Operation.ADDITION:
            return self.generate_addition(target, difficulty.add_sub_range, rng)
        if operation == Operation.SUBTRACTION:
            return self.generate_subtraction(target, difficulty.add_sub_range, rng)
        if operation == Operation.MULTIPLICATION:
            return self.generate_multiplication(target, difficulty.mult_div_range, rng)
        # Division answers stay within the times tables in play
        if target > difficulty.mult_div_range:
            return None
        return self.generate_division(target, difficulty.mult_div_range, rng, self.max_dividend)

    def _pick_operation(self, target: int, difficulty: DifficultySettings,
                        rng: np.random.Generator, prioritize_division: bool) -> Optional[Operation]:
        if (prioritize_division and difficulty.division_enabled
                and target <= difficulty.mult_div_range):
            if rng.random() < DIVISION_PRIORITY:
                return Operation.DIVISION
        elif difficulty.multiplication_enabled and not prioritize_division:
            boost = multiplication_boost(target, difficulty.mult_div_range)
            if boost > 0 and rng.random() < boost:
                return Operation.MULTIPLICATION
        return self.select_operation(difficulty.weights, difficulty, rng)

    @staticmethod
    def _relaxed(operation: Operation, target: int) -> Optional[Expression]:
        """Deterministic form of an operation ignoring operand limits"""
        if operation == Operation.ADDITION and target >= 2:
            a = target // 2
            return Expression.build(Operation.ADDITION, a, target - a, target)
        if operation == Operation.SUBTRACTION:
            return Expression.build(Operation.SUBTRACTION, target + 1, 1, target)
        if operation == Operation.MULTIPLICATION:
            pairs = factor_pairs(target, target)
            if pairs:
                a, b = pairs[0]
                return Expression.build(Operation.MULTIPLICATION, a, b, target)
            return None
        if operation == Operation.DIVISION:
            return Expression.build(Operation.DIVISION, target * 2, 2, target)
        return None

    def generate_expression(self, target: int, difficulty: DifficultySettings,
                            rng: np.random.Generator,
                            prioritize_division: bool = False) -> Optional[Expression]:
        """
        Generate an expression evaluating to target.

        Tries weighted picks first, then every enabled operation in the order
        + − × ÷, then each enabled operation without operand limits, and
        finally "2 − 1" for 1 or an addition of halves.

        Returns:
            The expression, or None when target is below 1
        """
        if target < 1:
            return None

        for _ in range(self.attempts):
            operation = self._pick_operation(target, difficulty, rng, prioritize_division)
            if operation is None:
                break
            expression = self._generate_for(operation, target, difficulty, rng)
            if expression is not None:
                return expression

        for operation in difficulty.enabled_operations:
            expression = self._generate_for(operation, target, difficulty, rng)
            if expression is not None:
                return expression

        for operation in difficulty.enabled_operations:
            expression = self._relaxed(operation, target)
            if expression is not None:
                self.logger.debug(f"Relaxed {operation.name.lower()} used for {target}")
                return expression

        self.logger.debug(f"Last-resort expression used for {target}")
        if target == 1:
            return Expression.build(Operation.SUBTRACTION, 2, 1, 1)
        return self._relaxed(Operation.ADDITION, target)

    def apply_expressions(self, grid: List[List[Cell]], difficulty: DifficultySettings,
                          rng: np.random.Generator,
                          division_cells: Optional[Set[Coordinate]] = None) -> ExpressionFillResult:
        """
        Fill in the expression of every cell with an answer.

        FINISH keeps an empty expression. On failure the result names the
        first cell whose answer has no expression.
        """
        division_cells = division_cells or set()
        filled = []
        for row in grid:
            new_row = []
            for cell in row:
                if cell.is_finish or cell.answer is None:
                    new_row.append(Cell(cell.row, cell.col, "", None, cell.is_start, cell.is_finish))
                    continue
                expression = self.generate_expression(
                    cell.answer, difficulty, rng,
                    prioritize_division=cell.coordinate in division_cells)
                if expression is None:
                    message = f"No expression for answer {cell.answer} at {cell.coordinate}"
                    self.logger.debug(message)
                    return ExpressionFillResult(False, failed_cell=cell.coordinate,
                                                failed_answer=cell.answer, message=message)
                new_row.append(Cell(cell.row, cell.col, expression.text, cell.answer,
                                    cell.is_start, cell.is_finish))
            filled.append(new_row)
        return ExpressionFillResult(True, grid=filled)
