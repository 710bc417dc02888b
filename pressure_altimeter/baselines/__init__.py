# Offline replay and evaluation of the pressure filter
from .replay import (
    run_filter,
    evaluate,
    load_trace,
)
from .synthetic import make_trace, SyntheticTrace

__all__ = [
    "run_filter",
    "evaluate",
    "load_trace",
    "make_trace",
    "SyntheticTrace",
]
