"""
对 Intune MAM 配置器（`IntuneMAMConfigurator`）二进制的轻量封装。

调用细节收敛在此模块，便于上层流程保持清晰并易于测试。
"""

from __future__ import annotations

import os
import stat

from .pipeline_utils import run_cmd


def ensure_executable(path: str) -> None:
    """为配置器补上可执行权限（等价于 `chmod +x`），文件不存在时报错。"""
    if not os.path.isfile(path):
        raise SystemExit(
            f"Error: configurator not found: {path}\n"
            "Hint: pass the IntuneMAMConfigurator binary via -c/--configurator.\n"
        )
    mode = os.stat(path).st_mode
    wanted = mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
    if wanted != mode:
        os.chmod(path, wanted)


def add_utis(configurator: str, plist_path: str, *, verbose: bool = False) -> None:
    """让配置器向指定 `Info.plist` 写入 Intune 所需的 UTI 声明。"""
    run_cmd([configurator, plist_path], verbose=verbose)
