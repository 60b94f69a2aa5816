"""
把 Intune MAM 静态库链接进主 target 的构建参数修改。
"""

from __future__ import annotations

import os

from .pipeline_utils import log_step
from .xcode_project import XcodeProject

OBJC_LINKER_FLAG = "-ObjC"


def configure_build_settings(
    project: XcodeProject,
    *,
    library_path: str,
    header_path: str = "",
    verbose: bool = False,
) -> None:
    """为主 target 的每个构建配置强制加载 MAM 库、追加搜索路径并关闭 bitcode。"""
    if project.add_new_to_other_linker_flags(OBJC_LINKER_FLAG):
        log_step(f"Added {OBJC_LINKER_FLAG} to OTHER_LDFLAGS")

    library_dir = os.path.dirname(library_path) or "."
    for config in project.native_target_config_list():
        if verbose:
            print(f"Build settings: {project.config_name(config)}")
        project.add_force_load_library(config, library_path)
        project.add_library_search_path(config, library_dir)
        if header_path:
            project.add_header_search_path(config, header_path)
        project.disable_bitcode(config)

    project.enable_keychain_sharing()
