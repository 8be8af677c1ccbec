"""
This module contains the build part of nobuild (usable from the command line with `nobuild build`).

It's separated into four parts with the following purposes:

- items.py: append only lists of flags and build objects
- compiler.py: compiler command with its flags
- rule.py: build rule that combines compiler, target, dependencies and output path
- engine.py: executes a build rule as a child process
"""
