# File: zebu/significance/__init__.py
# Location: zebu/zebu/significance/__init__.py
"""
zebu.significance: p-values for local association arrays.

Public API
----------
permtest          : Permutation test, any measure, optional worker processes
chisqtest         : Normal-approximation test of chi-squared residuals (two variables)
apply_correction  : Multiple testing correction over an array of any shape
"""

from zebu.significance.chisq import chisqtest
from zebu.significance.correction import apply_correction
from zebu.significance.permutation import permtest

__all__ = [
    "apply_correction",
    "chisqtest",
    "permtest",
]
