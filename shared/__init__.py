"""
Value types shared by the script helpers and the balloon notifier.
"""
