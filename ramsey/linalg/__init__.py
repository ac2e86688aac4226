from .qz import (SchurForm,
                 Finite,
                 Infinite,
                 generalized_eigenvalues,
                 qz_decompose,
                 reorder,
                 stable_roots,
                 stable_selector)

__all__ = ["SchurForm", "Finite", "Infinite", "generalized_eigenvalues",
           "qz_decompose", "reorder", "stable_roots", "stable_selector"]
