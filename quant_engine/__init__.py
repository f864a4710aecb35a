"""
Quant Engine: sandboxed strategy execution, trade ledger, DQN training and a
parallel task dispatcher.
"""

__version__ = "0.1.0"
