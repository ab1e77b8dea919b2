"""
Exit codes

0 success, 1 failure, 2 invalid arguments, 3 upstream computation failure,
4 rendering failure, 130 interrupted (Ctrl-C).
"""

SUCCESS = 0
FAILURE = 1
INVALID_ARGS = 2
UPSTREAM_FAILURE = 3
RENDERING_FAILURE = 4
INTERRUPTED = 130
