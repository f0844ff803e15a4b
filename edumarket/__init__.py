"""edumarket - e-learning marketplace API.

Credentials, purchases and enrollment-gated course content.
"""

__version__ = "0.1.0"
