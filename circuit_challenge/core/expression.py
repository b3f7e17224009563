"""
Arithmetic expressions shown in puzzle cells.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Operation(Enum):
    """Arithmetic operations used in expressions"""
    ADDITION = "+"
    SUBTRACTION = "−"  # Unicode minus
    MULTIPLICATION = "×"
    DIVISION = "÷"

    @property
    def symbol(self) -> str:
        return self.value


@dataclass(frozen=True)
class Expression:
    """A generated expression and its integer result"""
    text: str
    operation: Operation
    operand_a: int
    operand_b: int
    result: int

    @classmethod
    def build(cls, operation: Operation, a: int, b: int, result: int) -> 'Expression':
        return cls(f"{a} {operation.symbol} {b}", operation, a, b, result)


# Labels displayed on START/FINISH in place of an expression
PLACEHOLDER_LABELS = frozenset({"START", "FINISH"})

_ASCII_OPERATORS = {
    "−": "-",
    "×": "*",
    "÷": "/",
}

_BINARY_PATTERN = re.compile(r'^\s*(\d+)\s*([+\-*/])\s*(\d+)\s*$')


def evaluate_expression(text: str) -> Optional[int]:
    """
    Evaluate a strict binary expression "A op B".

    Accepts the display operators + − × ÷ and their ASCII forms + - * /.

    Returns:
        The integer result, or None for labels, malformed input,
        division by zero and divisions that do not come out exact.
    """
    if not text or text.strip() in PLACEHOLDER_LABELS:
        return None

    normalized = text
    for symbol, ascii_op in _ASCII_OPERATORS.items():
        normalized = normalized.replace(symbol, ascii_op)

    match = _BINARY_PATTERN.match(normalized)
    if not match:
        return None

    a = int(match.group(1))
    op = match.group(2)
    b = int(match.group(3))

    if op == '+':
        return a + b
    if op == '-':
        return a - b
    if op == '*':
        return a * b
    # Division
    if b == 0 or a % b != 0:
        return None
    return a // b
