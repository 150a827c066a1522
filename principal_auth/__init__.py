"""Principal auth service: credential verification, token issuance, sessions"""

__version__ = "0.1.0"
