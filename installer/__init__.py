"""
Workstation setup steps.

Each module provides one or more ``BaseStep`` subclasses; ``step_catalog``
assembles them in execution order.
"""
