"""libotp -- HOTP/TOTP one-time password engine and base32 secret codec"""

__version__ = "1.0.0"
