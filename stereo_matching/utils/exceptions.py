"""
异常定义
"""


class ContractViolationError(RuntimeError):
    """内部契约被破坏 (编程错误, 不可恢复)

    正确的调用方永远不会触发此异常, 匹配失败不属于此类。
    """
