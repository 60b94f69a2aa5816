"""
工程只读信息查看模块。

用于在不修改任何文件的情况下，查看主 target 各构建配置引用的 plist 与签名权限文件。
"""

from __future__ import annotations

from dataclasses import dataclass

from .xcode_project import XcodeProject


@dataclass(frozen=True)
class ConfigInfo:
    """单个构建配置的关键信息。"""

    uuid: str
    name: str
    plist: str
    entitlements: str


@dataclass(frozen=True)
class ProjectInfo:
    """工程关键信息快照。"""

    pbxproj: str
    project_name: str
    target_name: str
    configs: list[ConfigInfo]


def inspect_project(project: XcodeProject) -> ProjectInfo:
    configs: list[ConfigInfo] = []
    for config in project.native_target_config_list():
        configs.append(
            ConfigInfo(
                uuid=config,
                name=project.config_name(config),
                plist=project.plist_file_name(config) or "",
                entitlements=project.entitlements_file_name(config) or "",
            )
        )
    return ProjectInfo(
        pbxproj=project.filepath,
        project_name=project.project_name(),
        target_name=project.target_name(),
        configs=configs,
    )


def print_project_info(info: ProjectInfo) -> None:
    """以对齐文本形式输出工程信息。"""
    print("Project:")
    print(f"  File   : {info.pbxproj}")
    print(f"  Name   : {info.project_name}")
    print(f"  Target : {info.target_name or '-'}")
    print("Configurations:")
    for c in info.configs:
        print(f"  {c.name} ({c.uuid})")
        print(f"    Info.plist  : {c.plist or '-'}")
        print(f"    Entitlements: {c.entitlements or '(none, will be created)'}")
