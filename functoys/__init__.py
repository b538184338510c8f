"""
Closures, memoization, call-by-need thunks and currying, as small explicit objects.
Import what you need from the submodules.
"""
