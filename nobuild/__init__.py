"""
nobuild compiles a single target from its dependencies with one compiler call.
"""
