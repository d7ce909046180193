"""Chaincode preparation exports."""

from .chaincode_preparer import ChaincodePreparer, PrepareError

__all__ = ["ChaincodePreparer", "PrepareError"]
