# Brain module - reflex policy and action arbitration
from .contracts import ArbitratedAction, InstinctDecision
from .instinct import InstinctParams, InstinctPolicy, read_fovea, read_full_field, turn_right_prob
from .arbiter import arbitrate
