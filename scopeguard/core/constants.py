"""常量定义：集中维护数据权限涉及的字段名、表名与状态码。"""

# 行创建人字段
FIELD_CREATE_ID = "create_id"
# 行归属部门字段（JSON 数组）
FIELD_DEPT_SCOPE = "dept_scope"

USER_TABLE = "sys_user"
USER_DEPT_TABLE = "sys_user_dept"

# 查询对象 context 中标记“本次数据权限处理已降级”的键
CONTEXT_DEGRADED = "data_scope_degraded"

HTTP_STATUS_OK = 200
