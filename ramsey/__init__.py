"""
ramsey: optimal linear-quadratic policy under commitment.

This package solves discounted linear-quadratic control problems with
predetermined and forward-looking states when the policy maker can commit,
using a generalized Schur (QZ) factorization of the first-order conditions.
"""

# Configure logging first
from .logging_config import configure_logging, get_logger

# Core solver
from .commitment import (solve_commitment,
                         determinacy_report,
                         CommitmentSolution,
                         SolutionStatus,
                         CommitmentError,
                         InsufficientStableRoots,
                         ExcessStableRoots,
                         RankDeficientTransform)

# Problems, YAML parsing and simulation
from .problem import LQProblem
from .parse_yaml import read_yaml
from .simulation import impulse_response, simulate

__version__ = '0.1.0'
