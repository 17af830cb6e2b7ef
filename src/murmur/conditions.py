import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional
from .variables import VariableStore

logger = logging.getLogger(__name__)

INT_PATTERN = re.compile(r"^[+-]?\d+$")

@dataclass(frozen=True)
class ConditionOperator:
    """
    A binary operator in the condition language.
    Integer operators require an integer right hand side. Otherwise the right
    hand side is kept as a literal and interpreted by the operator.
    """
    token: str
    integer_rhs: bool
    test: Callable[[VariableStore, str, str], bool]

@dataclass
class ParsedCondition:
    raw: str
    operator: Optional[ConditionOperator] = None
    left: Optional[str] = None
    right: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.raw

    @property
    def is_flag(self) -> bool:
        return bool(self.raw) and self.operator is None and self.error is None

def parse_bool_literal(text: str) -> Optional[bool]:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None

def parse_int_literal(text: str) -> Optional[int]:
    text = text.strip()
    if not INT_PATTERN.match(text):
        return None
    return int(text)

def equality_holds(store: VariableStore, left: str, right: str) -> bool:
    # Literal type decides the comparison: bool, then int, then string
    bool_target = parse_bool_literal(right)
    if bool_target is not None:
        return store.get_bool(left) == bool_target

    int_target = parse_int_literal(right)
    if int_target is not None:
        return store.get_int(left) == int_target

    return store.get_string(left).casefold() == right.casefold()

def inequality_holds(store: VariableStore, left: str, right: str) -> bool:
    return not equality_holds(store, left, right)

# Checked in order. Longer tokens come before their prefixes.
OPERATORS: list[ConditionOperator] = [
    ConditionOperator(">=", True, lambda store, left, right: store.get_int(left) >= int(right)),
    ConditionOperator("<=", True, lambda store, left, right: store.get_int(left) <= int(right)),
    ConditionOperator(">", True, lambda store, left, right: store.get_int(left) > int(right)),
    ConditionOperator("<", True, lambda store, left, right: store.get_int(left) < int(right)),
    ConditionOperator("==", False, equality_holds),
    ConditionOperator("!=", False, inequality_holds),
]

def register_operator(operators: list[ConditionOperator], operator: ConditionOperator, before: Optional[str] = None):
    """
    Add an operator to an operator table, optionally ahead of an existing token.
    Pass a copy of OPERATORS to extend the language for one caller only.
    """
    if before is None:
        operators.append(operator)
        return
    index = next((i for i, op in enumerate(operators) if op.token == before), len(operators))
    operators.insert(index, operator)

def parse_condition(expression: Optional[str], operators: Optional[list[ConditionOperator]] = None) -> ParsedCondition:
    raw = expression.strip() if expression else ""
    parsed = ParsedCondition(raw=raw)
    if not raw:
        return parsed

    for operator in (operators if operators is not None else OPERATORS):
        index = raw.find(operator.token)
        if index <= 0:
            continue

        left = raw[:index].strip()
        right = raw[index + len(operator.token):].strip()

        if operator.integer_rhs:
            if not left:
                continue
            value = parse_int_literal(right)
            if value is None:
                parsed.error = f"Expected an integer after '{operator.token}' but found '{right}'."
                return parsed
            right = str(value)
        elif not left or not right:
            continue

        parsed.operator = operator
        parsed.left = left
        parsed.right = right
        return parsed

    # No operator: the whole expression names a flag
    return parsed

def evaluate(
    expression: Optional[str],
    store: VariableStore,
    operators: Optional[list[ConditionOperator]] = None,
) -> bool:
    """
    Evaluates expressions such as "courage >= 30", "ending == good" or
    "journal_found" against the variable store.
    Empty expressions are true. Malformed expressions are false, and never raise.
    """
    parsed = parse_condition(expression, operators)
    if parsed.is_empty:
        return True

    if parsed.error:
        logger.warning("Failed to evaluate condition '%s': %s", parsed.raw, parsed.error)
        return False

    try:
        if parsed.operator is None or parsed.left is None or parsed.right is None:
            return store.get_bool(parsed.raw)

        return parsed.operator.test(store, parsed.left, parsed.right)
    except Exception as exc:
        logger.warning("Failed to evaluate condition '%s': %s", parsed.raw, exc)
        return False
