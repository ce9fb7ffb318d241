from .rules_engine import RulesEngine, RuleDefinition, RuleCondition, default_rules
from .alert_log import AlertLog
from .aggregator import SnapshotAggregator
from .poller import Poller

__all__ = [
    "RulesEngine",
    "RuleDefinition",
    "RuleCondition",
    "default_rules",
    "AlertLog",
    "SnapshotAggregator",
    "Poller",
]
