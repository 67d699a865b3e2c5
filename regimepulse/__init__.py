"""
RegimePulse
===========
Motor de régimen de mercado (NORMAL / EVENT) para un instrumento a la vez.
"""

__version__ = "0.1.0"
