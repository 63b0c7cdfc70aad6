from .decibel_models import *
from .exceptions import *
from .address_deriver import derive_object_address, normalize_address, addresses_equal
from .quantity_normalizer import normalize_order, to_chain_units, to_human_units, usdc_to_chain_units
from .confirmation_poller import ConfirmationPoller, poll_until_satisfied
from .reconciliation import ReconciliationEngine, resolve_created_entity, build_subaccount_hints
from .config_loader import SettingsStore

__all__ = [
    "derive_object_address",
    "normalize_address",
    "addresses_equal",
    "normalize_order",
    "to_chain_units",
    "to_human_units",
    "usdc_to_chain_units",
    "ConfirmationPoller",
    "poll_until_satisfied",
    "ReconciliationEngine",
    "resolve_created_entity",
    "build_subaccount_hints",
    "SettingsStore",
    "MarketSpec",
    "NormalizedOrderParams",
    "IdentifierSource",
    "ResolvedIdentifier",
    "CreatedEntityHints",
    "PollAttempt",
    "PollOutcome",
    "DecibelSettings",
    "DecibelError",
    "ConfigurationError",
    "InvalidInputError",
]
