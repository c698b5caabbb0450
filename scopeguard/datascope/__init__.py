"""行级数据权限引擎。"""

from scopeguard.datascope.dialect import DataScopeDialect, authorize
from scopeguard.datascope.resolver import determine_relation_ids, determine_rule_scope

__all__ = ["DataScopeDialect", "authorize", "determine_relation_ids", "determine_rule_scope"]
