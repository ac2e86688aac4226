#!/usr/bin/env python3
"""
Validation utilities for linear-quadratic policy problems.

This module provides functions for validating problem specifications and
detecting common errors before the problem is compiled to numeric matrices.
"""

from typing import Any, Dict, List, Sequence

import sympy
from sympy import Symbol

# names sympy would otherwise read as functions or constants
reserved_names = ['E', 'I', 'N', 'O', 'Q', 'S', 'exp', 'log', 'sqrt', 'lambda']


def find_duplicate_names(groups: Dict[str, Sequence[str]]) -> List[str]:
    """
    Return the names declared more than once across all declaration groups.

    Args:
        groups: Mapping from group name (e.g. 'predetermined') to declared names

    Returns:
        Sorted list of duplicated names
    """
    seen = set()
    duplicates = set()
    for names in groups.values():
        for name in names:
            if name in seen:
                duplicates.add(name)
            seen.add(name)
    return sorted(duplicates)


def validate_declarations(declarations: Dict[str, Any]) -> List[str]:
    """
    Check the declaration block of a problem.

    Args:
        declarations: The 'declarations' section of a problem file

    Returns:
        List of validation error messages (empty if no errors)
    """
    errors = []
    groups = {key: list(declarations.get(key, []))
              for key in ['predetermined', 'forward', 'controls', 'shocks',
                          'parameters', 'auxiliary_parameters']}

    if not groups['predetermined'] and not groups['forward']:
        errors.append("At least one predetermined or forward-looking state is required")

    duplicates = find_duplicate_names(groups)
    if duplicates:
        errors.append(f"Names declared more than once: {', '.join(duplicates)}")

    reserved = sorted(set(sum(groups.values(), [])) & set(reserved_names))
    if reserved:
        errors.append(f"Reserved names cannot be declared: {', '.join(reserved)}")

    return errors


def validate_transition(
    transition: Dict[str, sympy.Expr],
    states: List[Symbol],
    forward: List[Symbol],
    variables: List[Symbol],
    shocks: List[Symbol]
) -> List[str]:
    """
    Check that each state has exactly one linear, homogeneous law of motion
    and that shocks only hit predetermined states.

    Args:
        transition: Mapping from state name to its next-period (expected) value
        states: All states, predetermined first
        forward: The forward-looking states
        variables: States, controls and shocks
        shocks: The innovations

    Returns:
        List of validation error messages (empty if no errors)
    """
    errors = []
    state_names = [str(s) for s in states]

    missing = [s for s in state_names if s not in transition]
    if missing:
        errors.append(f"No law of motion for state(s): {', '.join(missing)}")
    extra = [s for s in transition if s not in state_names]
    if extra:
        errors.append(f"Law of motion given for undeclared state(s): {', '.join(extra)}")

    at_zero = {v: 0 for v in variables}
    for name, rhs in transition.items():
        for v in variables:
            if rhs.diff(v).free_symbols & set(variables):
                errors.append(f"Law of motion for {name} is not linear in {v}")
        if sympy.simplify(rhs.subs(at_zero)) != 0:
            errors.append(f"Law of motion for {name} has a constant term")

    forward_names = [str(f) for f in forward]
    for name, rhs in transition.items():
        if name in forward_names and rhs.free_symbols & set(shocks):
            errors.append(f"Shocks cannot enter the expected law of motion of forward-looking state {name}")

    return errors


def validate_problem_consistency(problem_dict: Dict[str, Any]) -> List[str]:
    """
    Perform general consistency checks on a problem.

    Args:
        problem_dict: Dictionary containing the problem specification

    Returns:
        List of warning messages (empty if no issues found)
    """
    warnings = []

    parameters = problem_dict.get('parameters', [])
    calibration = problem_dict.get('calibration', {})
    uncalibrated = [str(p) for p in parameters if str(p) not in calibration]
    if uncalibrated:
        warnings.append(f"Parameters without calibration: {', '.join(uncalibrated)}")

    used = set()
    for rhs in problem_dict.get('transition', {}).values():
        used |= rhs.free_symbols
    if 'loss' in problem_dict:
        used |= problem_dict['loss'].free_symbols
    if 'discount' in problem_dict:
        used |= sympy.sympify(problem_dict['discount']).free_symbols
    for expr in problem_dict.get('auxiliary_parameters', {}).values():
        used |= sympy.sympify(expr).free_symbols
    for expr in problem_dict.get('covariance', {}).values():
        used |= sympy.sympify(expr).free_symbols

    unused = [str(p) for p in parameters if p not in used]
    if unused:
        warnings.append(f"Declared parameters not used: {', '.join(unused)}")

    controls = problem_dict.get('controls', [])
    idle = [str(c) for c in controls if c not in used]
    if idle:
        warnings.append(f"Controls that appear nowhere in the problem: {', '.join(idle)}")

    return warnings
