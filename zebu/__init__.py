# File: zebu/__init__.py
# Location: zebu/zebu/__init__.py

"""
zebu Package.

Local association measures between categorical variables: for every
combination of categories, how far the observed co-occurrence deviates from
independence, with permutation and chi-squared significance tests.

Public API
----------
lassie / estimate  : Estimate local and global association
lassie_get         : Retrieve local, observed, expected or p-value arrays
permtest           : Permutation test (any measure)
chisqtest          : Chi-squared residual test (measure 'chisq', two variables)
LassieResult       : Result dataclass
Measure            : Measure identifiers (d, z, pmi, npmi, npmi2, chisq)
"""

from .errors import (
    FieldNotAvailableError,
    InsufficientDataError,
    InvalidMeasureError,
    InvalidVariableError,
    UnsupportedArityError,
    UnsupportedMeasureError,
    ZebuError,
)
from .lassie import LassieResult, SignificanceState, estimate, lassie, lassie_get
from .measures import Measure
from .significance import chisqtest, permtest
from .version import __version__

__all__ = [
    "FieldNotAvailableError",
    "InsufficientDataError",
    "InvalidMeasureError",
    "InvalidVariableError",
    "LassieResult",
    "Measure",
    "SignificanceState",
    "UnsupportedArityError",
    "UnsupportedMeasureError",
    "ZebuError",
    "__version__",
    "chisqtest",
    "estimate",
    "lassie",
    "lassie_get",
    "permtest",
]
