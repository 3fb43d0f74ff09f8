"""Reputation domain exports."""

from .ledger import InvalidReaction, ReputationLedger
from .models import REACTION_KINDS, ReputationRecord, normalise_email

__all__ = [
	"InvalidReaction",
	"REACTION_KINDS",
	"ReputationLedger",
	"ReputationRecord",
	"normalise_email",
]
