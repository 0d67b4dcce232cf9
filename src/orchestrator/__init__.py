"""
Pipeline orchestration and the command-line entry point.
"""
