from scopeguard.query.dialect import QueryDialect, get_dialect, set_dialect
from scopeguard.query.wrapper import QueryJoin, QueryTable, QueryWrapper, SelectQueryTable

__all__ = [
    "QueryDialect",
    "QueryJoin",
    "QueryTable",
    "QueryWrapper",
    "SelectQueryTable",
    "get_dialect",
    "set_dialect",
]
