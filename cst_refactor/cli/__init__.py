"""
Command-line interface for cst-refactor.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""
