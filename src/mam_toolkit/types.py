"""
配置流程共享的轻量类型定义。
"""

from dataclasses import dataclass, field


class MissingArgumentError(ValueError):
    """必需参数缺失或无效时抛出；会中止整个配置流程。"""


@dataclass
class ProjectFileInfo:
    """一次配置流程涉及的全部文件，以及签名权限与 plist 的对应关系。"""

    # 所有 plist 与 entitlements 的相对路径（去重且保持发现顺序）。
    files: list[str] = field(default_factory=list)
    # entitlements 路径 -> 引用它的 plist 路径列表。
    entitlements_plist_mapping: dict[str, list[str]] = field(default_factory=dict)
    # 本次流程中新建并登记的 entitlements 路径。
    created: list[str] = field(default_factory=list)
